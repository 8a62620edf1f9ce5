"""
Unit Tests for JsonStateStore

Tests for:
- Saving and loading snapshots through a real file
- Missing and unreadable state files
- Wire format of the written document
- Concurrent saves
"""

import asyncio
import json

import pytest

from gurka_bot.domain.music.snapshot import JoinConfig, SerializedTrack, SessionSnapshot
from gurka_bot.infrastructure.persistence import JsonStateStore


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "data" / "session-state.json"


@pytest.fixture
def store(state_path):
    return JsonStateStore(state_path)


@pytest.fixture
def snapshot():
    return SessionSnapshot(
        join_config=JoinConfig(guild_id=111111111111111111, channel_id=222222222222222222),
        music_channel_id=333333333333333333,
        queue=[
            SerializedTrack(title="Song 1", duration=180, source_id="vid00000001"),
            SerializedTrack(title="Song 2", duration=3661, source_id="vid00000002"),
        ],
    )


class TestJsonStateStore:
    """Integration tests against a temporary directory."""

    @pytest.mark.asyncio
    async def test_save_then_load(self, store, snapshot):
        await store.save([snapshot])

        assert await store.load() == [snapshot]

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, store, state_path, snapshot):
        await store.save([snapshot])

        assert state_path.exists()
        assert list(state_path.parent.glob("*.tmp")) == []

    @pytest.mark.asyncio
    async def test_document_layout(self, store, state_path, snapshot):
        await store.save([snapshot])

        data = json.loads(state_path.read_text())

        assert data == [
            {
                "joinConfig": {
                    "guildId": "111111111111111111",
                    "channelId": "222222222222222222",
                    "selfMute": False,
                    "selfDeaf": True,
                    "group": "default",
                },
                "musicChannelId": "333333333333333333",
                "queue": [
                    {"title": "Song 1", "duration": 180, "youtubeId": "vid00000001"},
                    {"title": "Song 2", "duration": 3661, "youtubeId": "vid00000002"},
                ],
            }
        ]

    @pytest.mark.asyncio
    async def test_save_overwrites_previous_document(self, store, snapshot):
        await store.save([snapshot, snapshot])
        await store.save([])

        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_concurrent_saves_all_succeed_in_order(self, store, state_path, snapshot):
        batches = [[snapshot] * n for n in range(1, 9)]

        await asyncio.gather(*(store.save(batch) for batch in batches))

        assert await store.load() == batches[-1]
        assert list(state_path.parent.glob("*.tmp")) == []

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_temp_file(self, store, state_path, snapshot, monkeypatch):
        await store.save([snapshot])

        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("gurka_bot.infrastructure.persistence.state_store.os.replace", fail_replace)
        with pytest.raises(OSError):
            await store.save([])

        assert list(state_path.parent.glob("*.tmp")) == []
        monkeypatch.undo()
        assert await store.load() == [snapshot]

    @pytest.mark.asyncio
    async def test_missing_file_loads_empty(self, store):
        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_corrupt_file_loads_empty(self, store, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text("{not json")

        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_wrong_shape_loads_empty(self, store, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text(json.dumps([{"joinConfig": {"guildId": "x"}}]))

        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_reads_numeric_ids(self, store, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text(
            json.dumps(
                [
                    {
                        "joinConfig": {"guildId": 5, "channelId": 6},
                        "musicChannelId": 7,
                        "queue": [{"title": "A", "duration": 1, "youtubeId": "a"}],
                    }
                ]
            )
        )

        [entry] = await store.load()

        assert entry.join_config.guild_id == 5
        assert entry.music_channel_id == 7
        assert entry.queue[0].source_id == "a"

    def test_repr_names_path(self, store, state_path):
        assert str(state_path) in repr(store)
