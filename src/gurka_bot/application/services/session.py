"""Music Session - the queue and playback state machine of one voice channel."""

from __future__ import annotations

import asyncio
import logging
import random
from collections import deque
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from ...domain.music.entities import Track
from ...domain.music.query import split_query
from ...domain.music.value_objects import (
    PlayerMode,
    QueueRange,
    QueueSelection,
    TransportStatus,
)
from ...domain.shared.messages import DiscordUIMessages, LogTemplates
from ...utils.reply import split_message, truncate

if TYPE_CHECKING:
    from ...domain.music.snapshot import SerializedTrack
    from ...domain.music.value_objects import ChannelKey
    from ..interfaces.audio_resolver import AudioResolver, AudioStream, FetchResult
    from ..interfaces.voice_transport import TextDestination, VoiceTransport

logger = logging.getLogger(__name__)

TrackFinishedCallback = Callable[[Track | None], Any]

DEFAULT_STREAM_START_TIMEOUT: float = 30.0


class MusicSession:
    """Owns the queue, the now-playing slot and the player mode of one voice channel.

    The session reacts to transport status changes rather than driving the
    transport synchronously: starting a track means opening its stream and
    handing it to the transport, and the transport's later IDLE status is what
    advances the queue. Only one start runs at a time; IDLE reports that arrive
    while a start is in flight belong to audio that start already replaced and
    are ignored.

    All state is touched from the event loop only, so no locking is needed
    as long as handlers for one session are not run on other threads.
    """

    def __init__(
        self,
        *,
        key: ChannelKey,
        transport: VoiceTransport,
        reply: TextDestination,
        resolver: AudioResolver,
        stream_start_timeout: float = DEFAULT_STREAM_START_TIMEOUT,
    ) -> None:
        self._key = key
        self._transport = transport
        self._reply = reply
        self._resolver = resolver
        self._stream_start_timeout = stream_start_timeout

        self._queue: deque[Track] = deque()
        self._current: Track | None = None
        self._mode = PlayerMode.PLAY_ONCE

        # Last track that actually reached the transport; requeued in loop mode.
        self._last_played: Track | None = None
        self._starting = False
        self._idle_announced = True
        self._closed = False

        self._stream: AudioStream | None = None
        self._stream_watchers: set[asyncio.Task[None]] = set()
        self._finished_callbacks: list[TrackFinishedCallback] = []

        transport.subscribe(self.on_status_change)

    # === Read side ===

    @property
    def key(self) -> ChannelKey:
        return self._key

    @property
    def guild_id(self) -> int:
        return self._key.guild_id

    @property
    def transport(self) -> VoiceTransport:
        return self._transport

    @property
    def reply(self) -> TextDestination:
        return self._reply

    @property
    def current(self) -> Track | None:
        return self._current

    @property
    def queue(self) -> tuple[Track, ...]:
        return tuple(self._queue)

    @property
    def mode(self) -> PlayerMode:
        return self._mode

    @property
    def is_idle(self) -> bool:
        return self._current is None and not self._queue and not self._starting

    def resume_queue(self) -> list[SerializedTrack]:
        """What a restart should play: the current track first, then the queue."""
        tracks = list(self._queue)
        if self._current is not None:
            tracks.insert(0, self._current)
        return [track.serialize() for track in tracks]

    def describe_now_playing(self) -> str:
        current = self._current
        if current is None:
            return DiscordUIMessages.NOTHING_PLAYING
        return DiscordUIMessages.NOW_PLAYING_PROGRESS.format(
            title=current.title,
            elapsed=current.formatted_elapsed(),
            duration=current.formatted_duration(),
        )

    def describe_queue(self) -> str:
        current = self._current
        if current is None and not self._queue:
            return DiscordUIMessages.NOTHING_PLAYING
        if current is not None and not self._queue:
            return DiscordUIMessages.QUEUE_ONLY_CURRENT.format(
                title=current.title, duration=current.formatted_duration()
            )

        if current is None:
            lines = [DiscordUIMessages.QUEUE_UP_NEXT_NO_CURRENT]
        else:
            lines = [
                DiscordUIMessages.QUEUE_HEADER.format(
                    title=current.title, duration=current.formatted_duration()
                )
            ]
        lines.extend(
            DiscordUIMessages.QUEUE_LINE.format(
                position=position, title=track.title, duration=track.formatted_duration()
            )
            for position, track in enumerate(self._queue, start=1)
        )
        return "\n".join(lines)

    # === Callbacks ===

    def on_track_finished(self, callback: TrackFinishedCallback) -> None:
        """Register a callback run with the finished track on every IDLE transition."""
        self._finished_callbacks.append(callback)

    async def on_status_change(self, old: TransportStatus, new: TransportStatus) -> None:
        if self._closed:
            return

        if new is TransportStatus.IDLE:
            await self._on_idle()
        elif new is TransportStatus.PLAYING:
            if self._current is not None:
                self._current.on_resume()
        elif new.is_paused:
            if self._current is not None:
                self._current.on_pause()

    async def _on_idle(self) -> None:
        if self._starting:
            logger.debug(LogTemplates.PLAYBACK_IDLE_DURING_START, self.guild_id)
            return

        finished = self._current if self._current is not None else self._last_played
        await self._run_finished_callbacks(finished)
        await self._advance()

    async def _run_finished_callbacks(self, track: Track | None) -> None:
        for callback in list(self._finished_callbacks):
            try:
                result = callback(track)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception(LogTemplates.PLAYBACK_CALLBACK_ERROR, self.guild_id)

    # === Queue input ===

    async def play(self, text: str) -> int:
        """Resolve every chunk of *text* in order and queue what was found.

        One summary is sent per chunk. Returns the number of tracks queued.
        """
        added = 0
        for chunk in split_query(text):
            result = await self._resolver.fetch(chunk)
            await self._notify(self._describe_fetch(chunk, result))
            if result.tracks:
                await self._enqueue_tracks(result.tracks)
                added += len(result.tracks)
        return added

    async def enqueue(self, track: Track) -> bool:
        """Queue *track*; returns True when it started playing straight away."""
        return await self._enqueue_tracks([track])

    async def _enqueue_tracks(self, tracks: Iterable[Track]) -> bool:
        added = list(tracks)
        should_start = self.is_idle
        self._queue.extend(added)
        logger.info(LogTemplates.QUEUE_ENQUEUED, len(added), self.guild_id, len(self._queue))

        if should_start:
            await self._advance()
        return should_start

    async def init_from_queue(self, tracks: Iterable[SerializedTrack]) -> bool:
        """Rehydrate a saved queue into an empty session and start its head."""
        if self._queue or self._current is not None:
            logger.warning(LogTemplates.QUEUE_INIT_REFUSED, self.guild_id)
            return False

        restored = [Track.from_serialized(track) for track in tracks]
        logger.info(LogTemplates.QUEUE_INITIALISED, len(restored), self.guild_id)
        if restored:
            await self._enqueue_tracks(restored)
        return True

    # === Playback control ===

    async def skip(self) -> Track | None:
        """Stop the current track; the transport's IDLE report advances the queue.

        Returns the skipped track, or None when nothing was playing.
        """
        skipped = self._current
        if skipped is None:
            return None

        self._current = None
        self._kill_stream()
        await self._transport.stop()
        logger.info(LogTemplates.QUEUE_SKIPPED, skipped.title, self.guild_id)
        return skipped

    async def pause(self) -> bool:
        if self._transport.status is not TransportStatus.PLAYING:
            return False
        await self._transport.pause()
        logger.info(LogTemplates.PLAYBACK_PAUSED, self.guild_id)
        return True

    async def unpause(self) -> bool:
        if self._transport.status is not TransportStatus.PAUSED:
            return False
        await self._transport.unpause()
        logger.info(LogTemplates.PLAYBACK_RESUMED, self.guild_id)
        return True

    async def clear_queue(self) -> int:
        """Drop everything, stop playback and stay joined. Returns the number of queued tracks dropped."""
        dropped = len(self._queue)
        self._queue.clear()
        self._current = None
        self._last_played = None
        self._kill_stream()
        await self._transport.stop()
        logger.info(LogTemplates.QUEUE_CLEARED, dropped, self.guild_id)
        return dropped

    def change_mode(self) -> PlayerMode:
        self._mode = self._mode.toggled()
        logger.info(LogTemplates.LOOP_MODE_CHANGED, self._mode.value, self.guild_id)
        return self._mode

    # === Queue editing ===

    async def remove(self, selection: QueueSelection) -> bool:
        """Remove 1-based queue position(s); out-of-range input changes nothing."""
        if isinstance(selection, QueueRange):
            begin, end = selection.begin, selection.end
        else:
            begin = end = selection

        if not 1 <= begin <= end <= len(self._queue):
            return False

        tracks = list(self._queue)
        del tracks[begin - 1 : end]
        self._queue = deque(tracks)

        count = end - begin + 1
        logger.info(LogTemplates.QUEUE_REMOVED, begin, end, self.guild_id)
        await self._notify(DiscordUIMessages.SUCCESS_REMOVED.format(count=count))
        return True

    async def shuffle(self) -> bool:
        count = len(self._queue)
        if count < 2:
            return False

        if count == 2:
            self._queue.reverse()
        else:
            tracks = list(self._queue)
            random.shuffle(tracks)
            self._queue = deque(tracks)

        logger.info(LogTemplates.QUEUE_SHUFFLED, count, self.guild_id)
        await self._notify(DiscordUIMessages.SUCCESS_SHUFFLED.format(count=count))
        return True

    # === Lifecycle ===

    async def close(self) -> None:
        """Tear the session down: kill the stream and leave the voice channel."""
        if self._closed:
            return
        self._closed = True
        self._current = None
        self._kill_stream()
        for watcher in list(self._stream_watchers):
            watcher.cancel()
        await self._transport.destroy()
        logger.info(LogTemplates.SESSION_CLOSED, self._key)

    # === Internals ===

    async def _advance(self) -> None:
        finished, self._last_played = self._last_played, None
        if finished is not None and self._mode is PlayerMode.LOOP_QUEUE:
            finished.reset()
            self._queue.append(finished)
        await self._start_next()

    async def _start_next(self) -> None:
        started: Track | None = None

        self._starting = True
        try:
            while self._queue and started is None and not self._closed:
                track = self._queue.popleft()
                track.reset()
                self._current = track
                self._idle_announced = False

                if await self._start(track):
                    started = track
                elif self._current is track:
                    self._current = None
        finally:
            self._starting = False

        if self._closed:
            return
        if started is None:
            self._current = None
            await self._announce_idle()
        else:
            await self._notify(
                DiscordUIMessages.NOW_PLAYING.format(
                    title=started.title, duration=started.formatted_duration()
                )
            )

    async def _start(self, track: Track) -> bool:
        try:
            async with asyncio.timeout(self._stream_start_timeout):
                stream = await self._resolver.open_stream(track)
        except TimeoutError:
            logger.warning(LogTemplates.PLAYBACK_START_TIMEOUT, track.title, self.guild_id)
            await self._notify(DiscordUIMessages.START_FAILED.format(title=track.title))
            return False
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_START_FAILED, track.title, self.guild_id)
            await self._notify(DiscordUIMessages.START_FAILED.format(title=track.title))
            return False

        if self._current is not track:
            logger.info(LogTemplates.PLAYBACK_START_SUPERSEDED, track.title, self.guild_id)
            stream.kill()
            return False

        self._track_stream(stream, track)
        try:
            await self._transport.play(stream, track)
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_START_FAILED, track.title, self.guild_id)
            self._kill_stream()
            await self._notify(DiscordUIMessages.START_FAILED.format(title=track.title))
            return False

        self._last_played = track
        logger.info(LogTemplates.PLAYBACK_STARTED, track.title, self.guild_id)
        return True

    def _track_stream(self, stream: AudioStream, track: Track) -> None:
        self._kill_stream()
        self._stream = stream
        watcher = asyncio.create_task(self._watch_stream(stream, track))
        self._stream_watchers.add(watcher)
        watcher.add_done_callback(self._stream_watchers.discard)

    async def _watch_stream(self, stream: AudioStream, track: Track) -> None:
        code = await stream.wait()
        if stream is not self._stream:
            logger.debug(LogTemplates.STREAM_STALE_EXIT, code, self.guild_id)
            return

        self._stream = None
        if code != 0:
            logger.warning(LogTemplates.STREAM_EXITED, track.title, code, self.guild_id)

    def _kill_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None and stream.returncode is None:
            stream.kill()

    async def _announce_idle(self) -> None:
        if self._idle_announced:
            return
        self._idle_announced = True
        logger.info(LogTemplates.PLAYBACK_QUEUE_EXHAUSTED, self.guild_id)
        await self._notify(DiscordUIMessages.END_OF_QUEUE)

    def _describe_fetch(self, query: str, result: FetchResult) -> str:
        if result.is_empty:
            return DiscordUIMessages.FETCH_NOTHING_FOUND.format(query=truncate(query))

        if result.removed:
            text = DiscordUIMessages.FETCH_ADDED_WITH_REMOVED.format(
                added=len(result.tracks), removed=result.removed
            )
        else:
            text = DiscordUIMessages.FETCH_ADDED.format(added=len(result.tracks))

        if result.long_tracks:
            text += "\n" + DiscordUIMessages.FETCH_LONG_WARNING.format(count=result.long_tracks)
        return text

    async def _notify(self, text: str) -> None:
        for chunk in split_message(text):
            try:
                await self._reply.send(chunk)
            except Exception:
                logger.exception(LogTemplates.NOTIFY_FAILED, self.guild_id)
                return
