import asyncio
import io
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
import pytest_asyncio

from gurka_bot.application.interfaces.audio_resolver import AudioResolver, AudioStream, FetchResult
from gurka_bot.application.interfaces.voice_transport import TextDestination, VoiceGateway, VoiceTransport
from gurka_bot.domain.music.entities import Track
from gurka_bot.domain.music.snapshot import JoinConfig
from gurka_bot.domain.music.value_objects import ChannelKey, TransportStatus
from gurka_bot.domain.shared.exceptions import ResolverError, VoiceConnectionError

GUILD_ID = 111111111111111111
VOICE_CHANNEL_ID = 222222222222222222
TEXT_CHANNEL_ID = 333333333333333333
OTHER_VOICE_CHANNEL_ID = 444444444444444444


# ============================================================================
# Fakes for the platform and resolver boundaries
# ============================================================================


class FakeStream(AudioStream):
    """Stands in for a yt-dlp process; exits when killed or finished."""

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._stdout = io.BytesIO(b"\x00" * 16)
        self._returncode: int | None = None
        self._exited = asyncio.Event()
        self.killed = False

    @property
    def stdout(self):
        return self._stdout

    @property
    def returncode(self) -> int | None:
        return self._returncode

    def kill(self) -> None:
        if self._returncode is not None:
            return
        self.killed = True
        self.finish(-9)

    def finish(self, code: int = 0) -> None:
        self._returncode = code
        self._exited.set()

    async def wait(self) -> int:
        await self._exited.wait()
        assert self._returncode is not None
        return self._returncode


class FakeResolver(AudioResolver):
    """Returns canned fetch results and hands out FakeStreams."""

    def __init__(self) -> None:
        self.results: dict[str, FetchResult] = {}
        self.queries: list[str] = []
        self.opened: list[Track] = []
        self.streams: list[FakeStream] = []
        self.fail_ids: set[str] = set()
        self.hang_ids: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}

    async def fetch(self, query: str) -> FetchResult:
        self.queries.append(query)
        return self.results.get(query, FetchResult.nothing())

    async def open_stream(self, track: Track) -> AudioStream:
        self.opened.append(track)
        if track.source_id in self.fail_ids:
            raise ResolverError(track.url, "stream ended before any audio")
        if track.source_id in self.hang_ids:
            await asyncio.Event().wait()
        gate = self.gates.get(track.source_id)
        if gate is not None:
            await gate.wait()

        stream = FakeStream(track.title)
        self.streams.append(stream)
        return stream


class FakeTransport(VoiceTransport):
    """Emits status changes synchronously, in the order a real transport would."""

    def __init__(self, join_config: JoinConfig | None = None) -> None:
        self._join_config = join_config or JoinConfig(guild_id=GUILD_ID, channel_id=VOICE_CHANNEL_ID)
        self._status = TransportStatus.IDLE
        self._listeners = []
        self.connected = True
        self.destroyed = False
        self.fail_play = False
        self.played: list[Track] = []
        self.stop_calls = 0

    @property
    def join_config(self) -> JoinConfig:
        return self._join_config

    @property
    def status(self) -> TransportStatus:
        return self._status

    def subscribe(self, listener) -> None:
        self._listeners.append(listener)

    def is_connected(self) -> bool:
        return self.connected

    async def emit(self, new: TransportStatus) -> None:
        old, self._status = self._status, new
        for listener in list(self._listeners):
            await listener(old, new)

    async def play(self, stream: AudioStream, track: Track) -> None:
        if self.fail_play:
            raise RuntimeError("Not connected to voice.")
        self.played.append(track)
        await self.emit(TransportStatus.PLAYING)

    async def finish(self) -> None:
        """The current resource ran out."""
        await self.emit(TransportStatus.IDLE)

    async def stop(self) -> None:
        self.stop_calls += 1
        if self._status is not TransportStatus.IDLE:
            await self.emit(TransportStatus.IDLE)

    async def pause(self) -> None:
        if self._status is TransportStatus.PLAYING:
            await self.emit(TransportStatus.PAUSED)

    async def unpause(self) -> None:
        if self._status is TransportStatus.PAUSED:
            await self.emit(TransportStatus.PLAYING)

    async def destroy(self) -> None:
        self.destroyed = True
        self.connected = False
        self._status = TransportStatus.IDLE


class FakeReply(TextDestination):
    def __init__(self, channel_id: int = TEXT_CHANNEL_ID) -> None:
        self._channel_id = channel_id
        self.messages: list[str] = []

    @property
    def channel_id(self) -> int:
        return self._channel_id

    async def send(self, text: str) -> None:
        self.messages.append(text)


class FakeGateway(VoiceGateway):
    """Hands out FakeTransports; guilds in ``refuse_guilds`` fail to connect."""

    def __init__(self) -> None:
        self.transports: list[FakeTransport] = []
        self.refuse_guilds: set[int] = set()
        self.missing_channels: set[int] = set()

    async def connect(self, join_config: JoinConfig) -> VoiceTransport:
        if join_config.guild_id in self.refuse_guilds:
            raise VoiceConnectionError(join_config.guild_id, join_config.channel_id, "forbidden")
        transport = FakeTransport(join_config)
        self.transports.append(transport)
        return transport

    async def text_destination(self, channel_id: int) -> TextDestination:
        if channel_id in self.missing_channels:
            raise LookupError(channel_id)
        return FakeReply(channel_id)


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


def make_track(n: int = 1, duration: int = 180) -> Track:
    return Track.create(f"Song {n}", duration, f"vid{n:08d}")


class FakeClock:
    """Callable stand-in for ``utcnow`` that only moves when told to."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    fake = FakeClock()
    with patch("gurka_bot.domain.music.entities.utcnow", fake):
        yield fake


@pytest.fixture
def tracks():
    """Five distinct tracks."""
    return [make_track(n) for n in range(1, 6)]


@pytest.fixture
def channel_key():
    return ChannelKey(guild_id=GUILD_ID, channel_id=VOICE_CHANNEL_ID)


# ============================================================================
# Session Fixtures
# ============================================================================


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def reply():
    return FakeReply()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest_asyncio.fixture
async def session(channel_key, transport, reply, resolver):
    """A session on fake boundaries, closed afterwards so stream watchers are cancelled."""
    from gurka_bot.application.services.session import MusicSession

    music_session = MusicSession(
        key=channel_key,
        transport=transport,
        reply=reply,
        resolver=resolver,
        stream_start_timeout=0.2,
    )
    yield music_session
    await music_session.close()
