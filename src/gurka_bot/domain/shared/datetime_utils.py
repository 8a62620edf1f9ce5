"""Date/time helpers.

Goal: centralize wall-clock access and the clock formats shown in Discord.

- Always operate on timezone-aware UTC datetimes.
- Track positions are rendered as ``mm:ss`` or ``hh:mm:ss``.
"""

from __future__ import annotations

from datetime import UTC, datetime

SECONDS_PER_HOUR = 3600


def utcnow() -> datetime:
    """Preferred replacement for `datetime.now(UTC)`.

    Returns a timezone-aware datetime in UTC.
    """
    return datetime.now(UTC)


def format_clock(seconds: int | float, *, force_hours: bool = False) -> str:
    """Render a number of seconds as a zero-padded clock.

    Produces ``mm:ss`` below one hour and ``hh:mm:ss`` from one hour on, or
    whenever *force_hours* is set (so elapsed time lines up with a long
    track's duration).
    """
    total_seconds = max(0, int(seconds))
    hours, remainder = divmod(total_seconds, SECONDS_PER_HOUR)
    minutes, secs = divmod(remainder, 60)

    if hours > 0 or force_hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
