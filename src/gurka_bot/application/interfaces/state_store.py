"""Port interface for durable session state."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.snapshot import SessionSnapshot


class StateStore(ABC):
    """Stores the full collection of session snapshots, overwritten wholesale."""

    @abstractmethod
    async def load(self) -> list[SessionSnapshot]:
        """Return saved snapshots; missing or unreadable storage yields an empty list."""
        ...

    @abstractmethod
    async def save(self, snapshots: list[SessionSnapshot]) -> None:
        """Replace the stored collection. Raises OSError when the write fails."""
        ...
