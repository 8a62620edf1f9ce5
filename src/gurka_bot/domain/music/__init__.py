"""
Music Bounded Context

Tracks, playback value objects and the persisted session snapshot.
"""

from gurka_bot.domain.music.entities import Track
from gurka_bot.domain.music.snapshot import JoinConfig, SerializedTrack, SessionSnapshot
from gurka_bot.domain.music.value_objects import (
    ChannelKey,
    PlayerMode,
    QueueRange,
    QueueSelection,
    TransportStatus,
)

__all__ = [
    # Entities
    "Track",
    # Value Objects
    "ChannelKey",
    "PlayerMode",
    "QueueRange",
    "QueueSelection",
    "TransportStatus",
    # Snapshot
    "JoinConfig",
    "SerializedTrack",
    "SessionSnapshot",
]
