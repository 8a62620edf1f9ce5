"""JSON file implementation of the session state store."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from gurka_bot.application.interfaces.state_store import StateStore
from gurka_bot.domain.music.snapshot import SessionSnapshot
from gurka_bot.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

_SNAPSHOTS = TypeAdapter(list[SessionSnapshot])


class JsonStateStore(StateStore):
    """Keeps every session snapshot in one JSON document.

    Writes go to a uniquely named sibling temp file that is then renamed over
    the target, so a crash mid-write leaves the previous document intact.
    Saves are serialized and land in call order.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def __repr__(self) -> str:
        return f"JsonStateStore({str(self._path)!r})"

    async def load(self) -> list[SessionSnapshot]:
        return await asyncio.to_thread(self._read)

    async def save(self, snapshots: list[SessionSnapshot]) -> None:
        payload = _SNAPSHOTS.dump_json(snapshots, by_alias=True, indent=2)
        async with self._lock:
            await asyncio.to_thread(self._write, payload)
        logger.debug(LogTemplates.STATE_SAVED, len(snapshots), self._path)

    def _read(self) -> list[SessionSnapshot]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            logger.info(LogTemplates.STATE_MISSING, self._path)
            return []

        try:
            snapshots = _SNAPSHOTS.validate_json(raw)
        except ValidationError as e:
            logger.warning(LogTemplates.STATE_CORRUPT, self._path, e.error_count())
            return []

        logger.info(LogTemplates.STATE_LOADED, len(snapshots), self._path)
        return snapshots

    def _write(self, payload: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f"{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
