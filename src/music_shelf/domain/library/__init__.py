"""Library domain - tracks, playlists, persistence and import.

This domain handles:
- Track and playlist data models
- The file-backed library store and its JSON snapshot
- Importing external files and scanning the managed Songs folder
- Duration probing with mutagen
"""

# Models
from .models import (
    LibrarySnapshot,
    Playlist,
    Track,
    normalize_playlist_name,
)

# Storage and import
from .storage import AUDIO_EXTENSIONS, StorageLayout, is_audio_file, unique_file_name
from .metadata import probe_duration, read_duration
from .importer import ImportReport, import_single, read_grant, scan_folder, seed_bundled_songs

# Persistence
from .snapshot import read_snapshot, write_snapshot

# Store
from .store import LibraryStore

__all__ = [
    # Models
    "LibrarySnapshot",
    "Playlist",
    "Track",
    "normalize_playlist_name",
    # Storage and import
    "AUDIO_EXTENSIONS",
    "StorageLayout",
    "is_audio_file",
    "unique_file_name",
    "probe_duration",
    "read_duration",
    "ImportReport",
    "import_single",
    "read_grant",
    "scan_folder",
    "seed_bundled_songs",
    # Persistence
    "read_snapshot",
    "write_snapshot",
    # Store
    "LibraryStore",
]
