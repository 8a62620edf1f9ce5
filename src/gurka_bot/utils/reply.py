"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache

DISCORD_MESSAGE_LIMIT = 2000


def split_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> list[str]:
    """Split *text* into messages Discord will accept.

    Cuts at the last newline that fits; a single line longer than *limit* is
    hard-cut. Blank text produces no messages.
    """
    remaining = text.strip()
    chunks: list[str] = []

    while len(remaining) > limit:
        cut = remaining.rfind("\n", 0, limit + 1)
        if cut <= 0:
            cut = limit
        chunk = remaining[:cut].rstrip()
        if chunk:
            chunks.append(chunk)
        remaining = remaining[cut:].lstrip("\n")

    if remaining:
        chunks.append(remaining)
    return chunks


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"
