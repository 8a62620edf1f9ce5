"""Application layer: playback sessions, their registry, persistence and the command surface."""
