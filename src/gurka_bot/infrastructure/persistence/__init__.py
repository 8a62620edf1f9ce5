from gurka_bot.infrastructure.persistence.state_store import JsonStateStore

__all__ = ["JsonStateStore"]
