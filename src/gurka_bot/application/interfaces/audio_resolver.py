"""Port interface for turning queries into tracks and tracks into audio streams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO

from pydantic import BaseModel, ConfigDict, Field

from gurka_bot.domain.music.entities import Track
from gurka_bot.domain.shared.types import NonEmptyStr, NonNegativeInt


class FetchResult(BaseModel):
    """Outcome of resolving one query chunk.

    ``removed`` counts entries dropped because they have no usable duration,
    ``long_tracks`` counts kept entries past the long-stream warning threshold.
    ``found`` is False when the resolver produced no readable document at all.
    """

    model_config = ConfigDict(frozen=True)

    tracks: list[Track] = Field(default_factory=list)
    removed: NonNegativeInt = 0
    long_tracks: NonNegativeInt = 0
    found: bool = True

    @classmethod
    def nothing(cls) -> FetchResult:
        return cls(found=False)

    @property
    def is_empty(self) -> bool:
        return not self.tracks and self.removed == 0


class AudioStream(ABC):
    """A running external process that writes raw audio to its stdout."""

    @property
    @abstractmethod
    def stdout(self) -> IO[bytes]:
        ...

    @property
    @abstractmethod
    def returncode(self) -> int | None:
        """Exit code, or None while the process is still running."""
        ...

    @abstractmethod
    def kill(self) -> None:
        """Terminate the process. Safe to call on an already finished process."""
        ...

    @abstractmethod
    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        ...


class AudioResolver(ABC):
    """Interface for resolving search text or URLs to tracks and opening their audio."""

    @abstractmethod
    async def fetch(self, query: NonEmptyStr) -> FetchResult:
        """Resolve one query chunk. Never raises; failures come back as empty results."""
        ...

    @abstractmethod
    async def open_stream(self, track: Track) -> AudioStream:
        """Start streaming audio for *track*; raises once the stream cannot start."""
        ...
