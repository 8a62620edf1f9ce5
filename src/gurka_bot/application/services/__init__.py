"""Application services: the session state machine, its registry and persistence."""

from gurka_bot.application.services.persistence import SessionPersistence
from gurka_bot.application.services.session import MusicSession
from gurka_bot.application.services.session_registry import SessionRegistry

__all__ = ["MusicSession", "SessionPersistence", "SessionRegistry"]
