"""Snapshotting live sessions to durable storage and bringing them back on startup."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING

from ...domain.music.snapshot import SessionSnapshot
from ...domain.music.value_objects import ChannelKey
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ..interfaces.state_store import StateStore
    from ..interfaces.voice_transport import VoiceGateway
    from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class SessionPersistence:
    """Best-effort durability for the session registry.

    Snapshots are written eagerly (after every state-changing command and
    every finished track) and always contain every session. Nothing here
    raises into command handling: failures are logged and reported as False.
    Concurrent snapshots run one at a time, each capturing the registry as it
    stands when its turn comes.
    """

    def __init__(self, *, registry: SessionRegistry, store: StateStore) -> None:
        self._registry = registry
        self._store = store
        self._lock = asyncio.Lock()

    def build_snapshots(self) -> list[SessionSnapshot] | None:
        """Snapshot every session, or None if any transport has gone away."""
        snapshots: list[SessionSnapshot] = []
        for session in self._registry.sessions():
            if not session.transport.is_connected():
                logger.warning(LogTemplates.STATE_SAVE_SKIPPED, session.guild_id)
                return None
            snapshots.append(
                SessionSnapshot(
                    join_config=session.transport.join_config,
                    music_channel_id=session.reply.channel_id,
                    queue=session.resume_queue(),
                )
            )
        return snapshots

    async def snapshot(self) -> bool:
        async with self._lock:
            snapshots = self.build_snapshots()
            if snapshots is None:
                return False

            try:
                await self._store.save(snapshots)
            except Exception:
                logger.exception(LogTemplates.STATE_SAVE_FAILED, self._store)
                return False
            return True

    async def on_track_finished(self, track: Track | None) -> None:
        await self.snapshot()

    async def restore(self, gateway: VoiceGateway) -> int:
        """Rejoin every saved session and reload its queue. Returns how many came back."""
        try:
            entries = await self._store.load()
        except Exception:
            logger.exception(LogTemplates.STATE_RESTORE_FAILED)
            return 0

        restored = 0
        for entry in entries:
            join_config = entry.join_config
            try:
                key = ChannelKey(guild_id=join_config.guild_id, channel_id=join_config.channel_id)
                reply = await gateway.text_destination(entry.music_channel_id)
                session = await self._registry.get_or_create(
                    key, reply, partial(gateway.connect, join_config)
                )
                if await session.init_from_queue(entry.queue):
                    restored += 1
            except Exception:
                logger.exception(LogTemplates.STATE_RESTORE_ENTRY_FAILED, join_config.guild_id)

        logger.info(LogTemplates.STATE_RESTORED, restored, len(entries))
        return restored
