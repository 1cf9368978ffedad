"""Playback domain - transport control over a single audio session.

This domain handles:
- MPV integration via JSON IPC
- The play/pause/stop/seek state machine
- Periodic progress polling and end-of-track detection
"""

from .backend import (
    AudioBackend,
    MpvBackend,
    check_mpv_available,
    get_mpv_property,
    send_mpv_command,
)
from .controller import PlaybackController
from .state import PlaybackState, PlayerStatus

__all__ = [
    # Backend
    "AudioBackend",
    "MpvBackend",
    "check_mpv_available",
    "get_mpv_property",
    "send_mpv_command",
    # Controller
    "PlaybackController",
    "PlaybackState",
    "PlayerStatus",
]
