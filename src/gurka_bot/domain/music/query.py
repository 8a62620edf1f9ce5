"""Splitting free-form ``play`` input into resolver requests."""

from __future__ import annotations

URL_PREFIXES = ("http://", "https://")


def is_url(word: str) -> bool:
    return word.lower().startswith(URL_PREFIXES)


def split_query(text: str) -> list[str]:
    """Split user input into the chunks the resolver is asked about, in order.

    Every URL becomes its own chunk; runs of other words between URLs are
    joined back into one search phrase::

        >>> split_query("https://a.example/x never gonna https://b.example/y")
        ['https://a.example/x', 'never gonna', 'https://b.example/y']
    """
    chunks: list[str] = []
    words: list[str] = []

    for word in text.split():
        if is_url(word):
            if words:
                chunks.append(" ".join(words))
                words = []
            chunks.append(word)
        else:
            words.append(word)

    if words:
        chunks.append(" ".join(words))
    return chunks
