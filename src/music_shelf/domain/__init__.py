"""Domain layer: library storage and playback."""
