"""Pydantic models for the JSON document ``yt-dlp --dump-single-json`` prints.

yt-dlp emits either a single item or a playlist object holding ``entries``.
Flat playlist entries are sparse, so every field is optional and garbage
values are coerced to ``None`` instead of failing the whole document.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, field_validator

from gurka_bot.domain.shared.types import NonEmptyStr, NonNegativeInt

UNKNOWN_TITLE: Final[str] = "Unknown title"


class YtDlpEntry(BaseModel):
    """One playable item: a search hit, a playlist entry, or a single video."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    title: NonEmptyStr = UNKNOWN_TITLE
    duration: NonNegativeInt | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        """Fall back to a placeholder when yt-dlp sends an empty or non-string title."""
        if not isinstance(v, str) or not v.strip():
            return UNKNOWN_TITLE
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """Round fractional seconds; return None for garbage or negative values."""
        if v is None or isinstance(v, bool):
            return None
        try:
            val = round(float(v))
        except (TypeError, ValueError, OverflowError):
            return None
        return val if val >= 0 else None


class YtDlpDocument(YtDlpEntry):
    """Top-level document. Playlists and searches carry ``entries``."""

    entries: list[YtDlpEntry | None] | None = None

    @field_validator("entries", mode="before")
    @classmethod
    def _coerce_entries(cls, v: Any) -> list[Any] | None:
        if v is None:
            return None
        if not isinstance(v, list):
            return None
        return [e if isinstance(e, dict) else None for e in v]

    def items(self) -> list[YtDlpEntry | None]:
        """Entries of a playlist, or the document itself for a single item."""
        if self.entries is not None:
            return list(self.entries)
        return [self]
