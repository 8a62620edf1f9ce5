"""gurka-bot: a Discord music bot with a persistent per-channel playback queue."""

__version__ = "1.0.0"
