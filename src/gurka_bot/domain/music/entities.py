"""Core domain entities for the music bounded context."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, PrivateAttr

from gurka_bot.domain.music.snapshot import SerializedTrack
from gurka_bot.domain.shared.datetime_utils import SECONDS_PER_HOUR, format_clock, utcnow
from gurka_bot.domain.shared.types import NonEmptyStr, NonNegativeInt


class Track(BaseModel):
    """A playable item plus wall-clock bookkeeping of how far it has played.

    ``duration_seconds`` of 0 means the length is unknown and the item cannot
    be played; the resolver never hands such tracks to a session.

    Elapsed time is accumulated across pauses: while running it is the
    accumulator plus the time since the last resume, while paused it is the
    frozen accumulator.
    """

    model_config = ConfigDict(strict=True)

    WATCH_URL: ClassVar[str] = "https://www.youtube.com/watch?v={source_id}"

    title: NonEmptyStr
    duration_seconds: NonNegativeInt
    source_id: NonEmptyStr

    _elapsed: float = PrivateAttr(default=0.0)
    _paused: bool = PrivateAttr(default=False)
    _started_at: datetime = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._started_at = utcnow()

    @classmethod
    def create(cls, title: str, duration_seconds: int, source_id: str) -> Track:
        return cls(title=title, duration_seconds=duration_seconds, source_id=source_id)

    @classmethod
    def from_serialized(cls, data: SerializedTrack) -> Track:
        return cls.create(data.title, data.duration, data.source_id)

    @property
    def url(self) -> str:
        return self.WATCH_URL.format(source_id=self.source_id)

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def is_long(self) -> bool:
        return self.duration_seconds >= SECONDS_PER_HOUR

    def formatted_duration(self) -> str:
        return format_clock(self.duration_seconds)

    def elapsed_seconds(self) -> float:
        if self._paused:
            return self._elapsed
        return self._elapsed + (utcnow() - self._started_at).total_seconds()

    def formatted_elapsed(self) -> str:
        return format_clock(self.elapsed_seconds(), force_hours=self.is_long)

    def on_pause(self) -> None:
        """Freeze the elapsed clock. Calling it while already paused does nothing."""
        if self._paused:
            return
        self._elapsed += (utcnow() - self._started_at).total_seconds()
        self._paused = True

    def on_resume(self) -> None:
        """Restart the elapsed clock. Calling it while running does nothing."""
        if not self._paused:
            return
        self._started_at = utcnow()
        self._paused = False

    def reset(self) -> None:
        """Forget all progress; the clock starts counting from now."""
        self._elapsed = 0.0
        self._paused = False
        self._started_at = utcnow()

    def serialize(self) -> SerializedTrack:
        return SerializedTrack(
            title=self.title,
            duration=self.duration_seconds,
            source_id=self.source_id,
        )
