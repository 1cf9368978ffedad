"""
Playback state records exposed to the presentation layer.
"""

from enum import Enum
from typing import NamedTuple, Optional

from music_shelf.domain.library.models import Track


class PlaybackState(Enum):
    """Transport state of the playback controller."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class PlayerStatus(NamedTuple):
    """Immutable view of the controller's observable state."""

    current_track: Optional[Track] = None
    state: PlaybackState = PlaybackState.IDLE
    current_time: float = 0.0
    duration: float = 0.0

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    @property
    def progress(self) -> float:
        """Fraction of the track played, 0.0 when the duration is unknown."""
        if self.duration <= 0:
            return 0.0
        return min(1.0, self.current_time / self.duration)
