"""
Unit Tests for SessionPersistence

Tests for:
- Building snapshots from live sessions
- Skipping saves while a transport is disconnected
- Restoring sessions from stored snapshots
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from conftest import (
    GUILD_ID,
    TEXT_CHANNEL_ID,
    VOICE_CHANNEL_ID,
    FakeGateway,
    FakeReply,
    FakeResolver,
    FakeTransport,
    make_track,
)
from gurka_bot.application.interfaces.state_store import StateStore
from gurka_bot.application.services.persistence import SessionPersistence
from gurka_bot.application.services.session import MusicSession
from gurka_bot.application.services.session_registry import SessionRegistry
from gurka_bot.domain.music.snapshot import JoinConfig, SessionSnapshot
from gurka_bot.domain.music.value_objects import ChannelKey


class MemoryStateStore(StateStore):
    def __init__(self, snapshots=None) -> None:
        self.saved: list[list[SessionSnapshot]] = []
        self._snapshots = list(snapshots or [])

    async def load(self):
        return list(self._snapshots)

    async def save(self, snapshots):
        self.saved.append(list(snapshots))
        self._snapshots = list(snapshots)


def saved_entry(guild_id, titles, *, channel_id=VOICE_CHANNEL_ID, music_channel_id=TEXT_CHANNEL_ID):
    return SessionSnapshot(
        join_config=JoinConfig(guild_id=guild_id, channel_id=channel_id),
        music_channel_id=music_channel_id,
        queue=[make_track(n).serialize() for n in titles],
    )


@pytest_asyncio.fixture
async def registry():
    resolver = FakeResolver()

    def factory(key, transport, reply):
        return MusicSession(key=key, transport=transport, reply=reply, resolver=resolver)

    reg = SessionRegistry(session_factory=factory)
    yield reg
    for session in reg.sessions():
        await session.close()


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def persistence(registry, store):
    return SessionPersistence(registry=registry, store=store)


async def join(registry, guild_id=GUILD_ID, transport=None):
    key = ChannelKey(guild_id=guild_id, channel_id=VOICE_CHANNEL_ID)
    transport = transport or FakeTransport(JoinConfig(guild_id=guild_id, channel_id=VOICE_CHANNEL_ID))
    return await registry.get_or_create(key, FakeReply(), AsyncMock(return_value=transport))


# =============================================================================
# Snapshot Tests
# =============================================================================


class TestSnapshot:
    """Unit tests for writing session state."""

    @pytest.mark.asyncio
    async def test_snapshot_contains_current_and_queue(self, registry, persistence, store):
        session = await join(registry)
        for n in (1, 2, 3):
            await session.enqueue(make_track(n))

        assert await persistence.snapshot() is True

        [snapshots] = store.saved
        assert len(snapshots) == 1
        entry = snapshots[0]
        assert entry.join_config.guild_id == GUILD_ID
        assert entry.join_config.channel_id == VOICE_CHANNEL_ID
        assert entry.music_channel_id == TEXT_CHANNEL_ID
        assert [track.title for track in entry.queue] == ["Song 1", "Song 2", "Song 3"]

    @pytest.mark.asyncio
    async def test_no_sessions_writes_empty_list(self, persistence, store):
        assert await persistence.snapshot() is True
        assert store.saved == [[]]

    @pytest.mark.asyncio
    async def test_disconnected_transport_skips_save(self, registry, persistence, store):
        await join(registry)
        broken = FakeTransport(JoinConfig(guild_id=GUILD_ID + 1, channel_id=VOICE_CHANNEL_ID))
        broken.connected = False
        await join(registry, guild_id=GUILD_ID + 1, transport=broken)

        assert persistence.build_snapshots() is None
        assert await persistence.snapshot() is False
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_store_failure_is_reported(self, registry):
        store = MemoryStateStore()
        store.save = AsyncMock(side_effect=OSError("disk full"))
        persistence = SessionPersistence(registry=registry, store=store)

        assert await persistence.snapshot() is False

    @pytest.mark.asyncio
    async def test_concurrent_snapshots_never_overlap(self, registry):
        class SlowStore(MemoryStateStore):
            active = 0
            most_active = 0

            async def save(self, snapshots):
                self.active += 1
                self.most_active = max(self.most_active, self.active)
                await asyncio.sleep(0.01)
                await super().save(snapshots)
                self.active -= 1

        store = SlowStore()
        persistence = SessionPersistence(registry=registry, store=store)
        session = await join(registry)

        first = asyncio.create_task(persistence.snapshot())
        await asyncio.sleep(0)
        await session.enqueue(make_track(1))
        results = await asyncio.gather(first, persistence.snapshot(), persistence.snapshot())

        assert results == [True, True, True]
        assert store.most_active == 1
        assert [len(saved[0].queue) for saved in store.saved] == [0, 1, 1]

    @pytest.mark.asyncio
    async def test_track_finished_triggers_snapshot(self, registry, persistence, store):
        """Callbacks run before the queue advances, so the finished track is still in front."""
        session = await join(registry)
        session.on_track_finished(persistence.on_track_finished)
        await session.enqueue(make_track(1))
        await session.enqueue(make_track(2))

        await session.transport.finish()

        assert len(store.saved) == 1
        assert [track.title for track in store.saved[0][0].queue] == ["Song 1", "Song 2"]
        assert session.current.title == "Song 2"


# =============================================================================
# Restore Tests
# =============================================================================


class TestRestore:
    """Unit tests for bringing saved sessions back."""

    @pytest.mark.asyncio
    async def test_restores_every_entry(self, registry):
        store = MemoryStateStore([saved_entry(GUILD_ID, [1, 2]), saved_entry(GUILD_ID + 1, [3])])
        persistence = SessionPersistence(registry=registry, store=store)
        gateway = FakeGateway()

        restored = await persistence.restore(gateway)

        assert restored == 2
        assert len(registry) == 2
        session = registry.get_for_guild(GUILD_ID)
        assert session.current.title == "Song 1"
        assert [track.title for track in session.queue] == ["Song 2"]
        assert session.reply.channel_id == TEXT_CHANNEL_ID
        assert [track.title for track in gateway.transports[0].played] == ["Song 1"]

    @pytest.mark.asyncio
    async def test_failed_entry_does_not_block_others(self, registry):
        store = MemoryStateStore([saved_entry(GUILD_ID, [1]), saved_entry(GUILD_ID + 1, [2])])
        persistence = SessionPersistence(registry=registry, store=store)
        gateway = FakeGateway()
        gateway.refuse_guilds.add(GUILD_ID)

        restored = await persistence.restore(gateway)

        assert restored == 1
        assert registry.get_for_guild(GUILD_ID) is None
        assert registry.get_for_guild(GUILD_ID + 1) is not None

    @pytest.mark.asyncio
    async def test_empty_saved_queue_still_rejoins(self, registry):
        store = MemoryStateStore([saved_entry(GUILD_ID, [])])
        persistence = SessionPersistence(registry=registry, store=store)

        assert await persistence.restore(FakeGateway()) == 1
        assert registry.get_for_guild(GUILD_ID).is_idle

    @pytest.mark.asyncio
    async def test_unreadable_store_restores_nothing(self, registry):
        store = MemoryStateStore()
        store.load = AsyncMock(side_effect=OSError("permission denied"))
        persistence = SessionPersistence(registry=registry, store=store)

        assert await persistence.restore(FakeGateway()) == 0
        assert len(registry) == 0
