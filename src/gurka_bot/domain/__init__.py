"""Domain layer: tracks, playback value objects and the persisted snapshot format."""
