"""music-shelf: a local music library with playlists and mpv playback.

The package is an embedded library surface. A host (usually a UI) builds a
LibraryStore and a PlaybackController, passes them around explicitly, and
reads their state or subscribes to their change events.
"""

from typing import Optional

from music_shelf.core.config import Config, load_config
from music_shelf.core.output import setup_logging_from_config
from music_shelf.domain.library import LibraryStore, Playlist, Track
from music_shelf.domain.playback import MpvBackend, PlaybackController, PlaybackState

__version__ = "0.1.0"


def create_app(config: Optional[Config] = None) -> tuple[LibraryStore, PlaybackController]:
    """Build a store and controller wired from configuration.

    Loads config.toml when no config is given and configures logging.
    """
    config = config or load_config()
    setup_logging_from_config(config.logging)

    store = LibraryStore(config=config)
    controller = PlaybackController(
        MpvBackend(config.player),
        resolve_path=store.file_path,
        tick_interval=config.player.tick_interval,
    )
    return store, controller


__all__ = [
    "Config",
    "LibraryStore",
    "PlaybackController",
    "PlaybackState",
    "Playlist",
    "Track",
    "create_app",
    "load_config",
    "__version__",
]
