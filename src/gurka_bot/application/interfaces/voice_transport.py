"""Port interfaces for the chat platform: voice playback and text replies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from gurka_bot.domain.music.value_objects import TransportStatus

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ...domain.music.snapshot import JoinConfig
    from .audio_resolver import AudioStream

StatusListener = Callable[[TransportStatus, TransportStatus], Awaitable[None]]
"""Called with ``(old_status, new_status)`` for every status change, in emission order."""


class VoiceTransport(ABC):
    """A joined voice connection that can play one audio stream at a time."""

    @property
    @abstractmethod
    def join_config(self) -> JoinConfig:
        """Parameters this connection was joined with."""
        ...

    @property
    @abstractmethod
    def status(self) -> TransportStatus:
        ...

    @abstractmethod
    def subscribe(self, listener: StatusListener) -> None:
        """Register a status listener. Listeners must be bound methods or closures."""
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    async def play(self, stream: AudioStream, track: Track) -> None:
        """Start playing *stream*, replacing whatever is playing.

        Raises when the platform rejects the resource. The PLAYING status, and
        the IDLE status once the resource ends, arrive through listeners.
        """
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the current resource; an IDLE status follows if anything was playing."""
        ...

    @abstractmethod
    async def pause(self) -> None:
        ...

    @abstractmethod
    async def unpause(self) -> None:
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Leave the voice channel and release the connection."""
        ...


class TextDestination(ABC):
    """A text channel the bot can post to."""

    @property
    @abstractmethod
    def channel_id(self) -> int:
        ...

    @abstractmethod
    async def send(self, text: str) -> None:
        """Send one message. Callers keep *text* under the platform's length limit."""
        ...


class VoiceGateway(ABC):
    """Factory side of the platform: joins channels and looks up text channels."""

    @abstractmethod
    async def connect(self, join_config: JoinConfig) -> VoiceTransport:
        """Join the configured voice channel; raises VoiceConnectionError on failure."""
        ...

    @abstractmethod
    async def text_destination(self, channel_id: int) -> TextDestination:
        """Look up a text channel by id; raises LookupError when it is not reachable."""
        ...
