"""Registry of live music sessions keyed by voice channel."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterator
from typing import TYPE_CHECKING

from ...domain.shared.exceptions import ChannelConflictError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.value_objects import ChannelKey
    from ..interfaces.voice_transport import TextDestination, VoiceTransport
    from .session import MusicSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[["ChannelKey", "VoiceTransport", "TextDestination"], "MusicSession"]
TransportConnector = Callable[[], Awaitable["VoiceTransport"]]


class SessionRegistry:
    """Maps channel keys to sessions, at most one session per guild.

    Creation is serialised per guild so two near-simultaneous joins for the
    same channel share one session instead of racing to build two.
    """

    def __init__(self, *, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory
        self._sessions: dict[ChannelKey, MusicSession] = {}
        self._guild_locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    def __iter__(self) -> Iterator[MusicSession]:
        return iter(list(self._sessions.values()))

    def get(self, key: ChannelKey) -> MusicSession | None:
        return self._sessions.get(key)

    def get_for_guild(self, guild_id: int) -> MusicSession | None:
        for key, session in self._sessions.items():
            if key.guild_id == guild_id:
                return session
        return None

    def sessions(self) -> list[MusicSession]:
        return list(self._sessions.values())

    async def get_or_create(
        self,
        key: ChannelKey,
        reply: TextDestination,
        connect: TransportConnector,
    ) -> MusicSession:
        """Return the session for *key*, joining the channel first if there is none.

        An existing session is returned untouched, whatever *reply* is. Raises
        ChannelConflictError when the guild is bound to another channel, and
        lets connection errors from *connect* propagate with nothing registered.
        """
        async with self._guild_locks[key.guild_id]:
            existing = self._sessions.get(key)
            if existing is not None:
                return existing

            other = self.get_for_guild(key.guild_id)
            if other is not None:
                raise ChannelConflictError(
                    guild_id=key.guild_id,
                    active_channel_id=other.key.channel_id,
                    requested_channel_id=key.channel_id,
                )

            transport = await connect()
            session = self._session_factory(key, transport, reply)
            self._sessions[key] = session
            logger.info(LogTemplates.SESSION_CREATED, key)
            return session

    def remove(self, key: ChannelKey) -> MusicSession | None:
        """Forget the session for *key*. The caller tears its transport down first."""
        session = self._sessions.pop(key, None)
        if session is not None:
            logger.info(LogTemplates.SESSION_REMOVED, key)
        return session
