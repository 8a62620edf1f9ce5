"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from gurka_bot.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class ChannelKey:
    """Identity of a voice channel session: the guild plus the voice channel in it."""

    guild_id: int
    channel_id: int

    def __post_init__(self) -> None:
        if self.guild_id <= 0:
            raise ValueError(ErrorMessages.INVALID_GUILD_ID)
        if self.channel_id <= 0:
            raise ValueError(ErrorMessages.INVALID_CHANNEL_ID)

    def __str__(self) -> str:
        return f"guild {self.guild_id} / channel {self.channel_id}"


@dataclass(frozen=True)
class QueueRange:
    """Inclusive, 1-based span of queue positions (``>rm 2-4``)."""

    begin: int
    end: int

    def __str__(self) -> str:
        return f"{self.begin}-{self.end}"


QueueSelection = int | QueueRange


class PlayerMode(Enum):
    """What happens to a track once it has finished playing."""

    PLAY_ONCE = "play_once"
    LOOP_QUEUE = "loop_queue"

    def toggled(self) -> PlayerMode:
        if self is PlayerMode.PLAY_ONCE:
            return PlayerMode.LOOP_QUEUE
        return PlayerMode.PLAY_ONCE


class TransportStatus(Enum):
    """Status reported by a voice transport.

    State transitions reported by the transport:
    - IDLE -> PLAYING (audio resource accepted)
    - PLAYING -> PAUSED (explicit pause)
    - PLAYING -> AUTO_PAUSED (nobody left listening)
    - PAUSED/AUTO_PAUSED -> PLAYING (resume)
    - Any -> IDLE (resource finished, failed or was stopped)
    """

    IDLE = "idle"
    BUFFERING = "buffering"
    PLAYING = "playing"
    PAUSED = "paused"
    AUTO_PAUSED = "auto_paused"

    @property
    def is_paused(self) -> bool:
        return self in {TransportStatus.PAUSED, TransportStatus.AUTO_PAUSED}

    @property
    def is_active(self) -> bool:
        return self is not TransportStatus.IDLE
