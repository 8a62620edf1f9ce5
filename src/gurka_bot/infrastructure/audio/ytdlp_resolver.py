"""AudioResolver implementation that shells out to the yt-dlp executable."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import subprocess
import threading
from typing import IO, Any, Final

from pydantic import ValidationError

from gurka_bot.application.interfaces.audio_resolver import AudioResolver, AudioStream, FetchResult
from gurka_bot.config.settings import ResolverSettings
from gurka_bot.domain.music.entities import Track
from gurka_bot.domain.shared.exceptions import ResolverError
from gurka_bot.domain.shared.messages import LogTemplates
from gurka_bot.infrastructure.audio.models import YtDlpDocument

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE: Final[int] = 64 * 1024
STDERR_LOG_TRUNCATE: Final[int] = 300
KILL_WAIT_TIMEOUT: Final[float] = 5.0


def parse_document(data: Any, *, long_track_seconds: int) -> FetchResult:
    """Map a decoded yt-dlp JSON value into tracks and drop counters."""
    if not isinstance(data, dict):
        return FetchResult.nothing()

    document = YtDlpDocument.model_validate(data)

    tracks: list[Track] = []
    removed = 0
    long_tracks = 0
    for entry in document.items():
        if entry is None or entry.id is None or not entry.duration:
            removed += 1
            continue

        tracks.append(Track.create(entry.title, entry.duration, entry.id))
        if entry.duration >= long_track_seconds:
            long_tracks += 1

    return FetchResult(tracks=tracks, removed=removed, long_tracks=long_tracks)


class YtDlpAudioStream(AudioStream):
    """A ``yt-dlp -o -`` process whose stdout carries the encoded audio.

    A daemon thread per process drains stderr into the log, reaps the
    process and hands the exit code to the event loop, so a playing track
    never occupies a worker of the loop's default executor.
    """

    def __init__(self, process: subprocess.Popen[bytes], label: str) -> None:
        self._process = process
        self._label = label
        self._loop = asyncio.get_running_loop()
        self._exit: asyncio.Future[int] = self._loop.create_future()
        threading.Thread(
            target=self._monitor,
            name=f"yt-dlp-{process.pid}",
            daemon=True,
        ).start()

    def __repr__(self) -> str:
        return f"YtDlpAudioStream(pid={self._process.pid}, {self._label!r})"

    @property
    def stdout(self) -> IO[bytes]:
        assert self._process.stdout is not None
        return self._process.stdout

    @property
    def returncode(self) -> int | None:
        return self._process.poll()

    def kill(self) -> None:
        if self._process.poll() is not None:
            return
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    async def wait(self) -> int:
        return await asyncio.shield(self._exit)

    def _monitor(self) -> None:
        drain_stderr_sync(self._process.stderr, self._process.pid)
        code = self._process.wait()
        try:
            self._loop.call_soon_threadsafe(self._report_exit, code)
        except RuntimeError:
            logger.debug(LogTemplates.STREAM_EXIT_AFTER_LOOP_CLOSED, self._process.pid, code)

    def _report_exit(self, code: int) -> None:
        if not self._exit.done():
            self._exit.set_result(code)


def drain_stderr_sync(stderr: IO[bytes] | None, pid: int) -> None:
    if stderr is None:
        return
    with stderr:
        for line in stderr:
            text = line.decode("utf-8", errors="replace").rstrip()
            if text:
                logger.debug(LogTemplates.RESOLVER_STDERR, pid, text[:STDERR_LOG_TRUNCATE])


def _kill_abandoned(spawn: asyncio.Future[subprocess.Popen[bytes]]) -> None:
    """Done-callback for a spawn whose caller was cancelled while it ran."""
    if spawn.cancelled() or spawn.exception() is not None:
        return
    process = spawn.result()
    logger.info(LogTemplates.STREAM_SPAWN_ABANDONED, process.pid)
    YtDlpAudioStream(process, "abandoned").kill()


class YtDlpProcessResolver(AudioResolver):
    """Resolves queries with ``--dump-single-json`` and streams with ``-o -``.

    Every call spawns its own process; nothing is cached between calls.
    """

    def __init__(self, settings: ResolverSettings | None = None) -> None:
        self._settings = settings or ResolverSettings()

    def _fetch_args(self, query: str) -> list[str]:
        return [
            self._settings.executable,
            "--default-search",
            self._settings.default_search,
            "--flat-playlist",
            "--dump-single-json",
            query,
        ]

    def _stream_args(self, track: Track) -> list[str]:
        return [
            self._settings.executable,
            "-f",
            self._settings.stream_format,
            "-o",
            "-",
            "--default-search",
            self._settings.default_search,
            track.url,
        ]

    async def fetch(self, query: str) -> FetchResult:
        try:
            process = await asyncio.create_subprocess_exec(
                *self._fetch_args(query),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError:
            logger.exception(LogTemplates.RESOLVER_SPAWN_FAILED, query)
            return FetchResult.nothing()

        stderr_task = asyncio.create_task(self._drain_stderr(process.stderr, process.pid))
        try:
            async with asyncio.timeout(self._settings.fetch_timeout_s):
                data = await self._read_document(process.stdout)
                returncode = await process.wait()
        except TimeoutError:
            logger.warning(LogTemplates.RESOLVER_TIMEOUT, self._settings.fetch_timeout_s, query)
            await self._kill(process)
            return FetchResult.nothing()
        except asyncio.CancelledError:
            await self._kill(process)
            raise
        finally:
            await stderr_task

        if returncode != 0:
            logger.warning(LogTemplates.RESOLVER_EXIT_CODE, returncode, query)
            return FetchResult.nothing()

        if data is None:
            logger.warning(LogTemplates.RESOLVER_NO_JSON, query)
            return FetchResult.nothing()

        try:
            result = parse_document(data, long_track_seconds=self._settings.long_track_seconds)
        except ValidationError as e:
            logger.warning(LogTemplates.RESOLVER_INVALID_DOCUMENT, query, e.error_count())
            return FetchResult.nothing()

        logger.info(
            LogTemplates.RESOLVER_RESULT,
            query,
            len(result.tracks),
            result.removed,
            result.long_tracks,
        )
        return result

    @staticmethod
    async def _read_document(stdout: asyncio.StreamReader | None) -> Any | None:
        """Accumulate stdout, trying to decode it after every chunk.

        Returns the first complete JSON value, or None if the stream ended
        before the buffer ever decoded.
        """
        if stdout is None:
            return None

        buffer = bytearray()
        while chunk := await stdout.read(READ_CHUNK_SIZE):
            buffer.extend(chunk)
            try:
                data = json.loads(buffer)
            except ValueError:
                continue
            # Keep draining so the process never blocks on a full pipe.
            while await stdout.read(READ_CHUNK_SIZE):
                pass
            return data
        return None

    @staticmethod
    async def _drain_stderr(stderr: asyncio.StreamReader | None, pid: int) -> None:
        if stderr is None:
            return
        while line := await stderr.readline():
            text = line.decode("utf-8", errors="replace").rstrip()
            if text:
                logger.debug(LogTemplates.RESOLVER_STDERR, pid, text[:STDERR_LOG_TRUNCATE])

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        try:
            async with asyncio.timeout(KILL_WAIT_TIMEOUT):
                await process.wait()
        except TimeoutError:
            logger.warning(LogTemplates.RESOLVER_KILL_TIMEOUT, process.pid)

    async def open_stream(self, track: Track) -> AudioStream:
        loop = asyncio.get_running_loop()
        spawn = loop.run_in_executor(
            None,
            functools.partial(
                subprocess.Popen,
                self._stream_args(track),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            ),
        )
        try:
            process = await asyncio.shield(spawn)
        except OSError as e:
            raise ResolverError(track.url, f"could not start {self._settings.executable}: {e}") from e
        except asyncio.CancelledError:
            spawn.add_done_callback(_kill_abandoned)
            raise

        stream = YtDlpAudioStream(process, track.title)
        assert process.stdout is not None
        try:
            head = await asyncio.to_thread(process.stdout.peek, 1)
        except BaseException:
            stream.kill()
            raise

        if not head:
            stream.kill()
            raise ResolverError(track.url, f"stream ended before any audio (exit {process.poll()})")
        return stream
