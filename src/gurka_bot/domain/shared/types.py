"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across the bot is defined here once,
so models can simply annotate their fields::

    from gurka_bot.domain.shared.types import DiscordSnowflake, NonEmptyStr

    class MyModel(BaseModel):
        guild_id: DiscordSnowflake
        name: NonEmptyStr
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator, Field, PlainSerializer

# ── Numeric constraints ─────────────────────────────────────────────

DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]
"""Positive integer that fits a Discord snowflake (1 … 2^64-1)."""

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveFloat = Annotated[float, Field(gt=0.0)]
"""Float > 0.0."""

VolumeFloat = Annotated[float, Field(ge=0.0, le=2.0)]
"""Audio volume multiplier in [0.0, 2.0]."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

CommandPrefixStr = Annotated[str, Field(min_length=1, max_length=5)]
"""Bot command prefix: 1-5 characters."""


# ── Wire formats ────────────────────────────────────────────────────


def _snowflake_from_wire(v: Any) -> Any:
    """Accept snowflakes written as decimal strings."""
    if isinstance(v, str) and v.strip().isdigit():
        return int(v)
    return v


SnowflakeString = Annotated[
    int,
    BeforeValidator(_snowflake_from_wire),
    Field(gt=0, lt=2**64),
    PlainSerializer(str, return_type=str, when_used="json"),
]
"""Discord snowflake stored as int, written to JSON as a string.

Snowflakes exceed the safe integer range of JSON readers in other
languages, so the state file keeps them as text.
"""
