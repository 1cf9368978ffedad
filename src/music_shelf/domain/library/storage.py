"""
Managed storage layout and file naming.

The storage root holds the snapshot file plus two audio directories:
"Tracks" for copies of user-imported files and "Songs" for files placed
there externally or seeded from the bundled songs.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from loguru import logger

SNAPSHOT_FILE_NAME = "library.json"
TRACKS_DIR_NAME = "Tracks"
SONGS_DIR_NAME = "Songs"

AUDIO_EXTENSIONS = frozenset({"mp3", "m4a", "aac", "wav", "aiff", "caf"})


@dataclass(frozen=True)
class StorageLayout:
    """Paths of the managed storage area under one root."""

    root: Path

    @property
    def snapshot_path(self) -> Path:
        return self.root / SNAPSHOT_FILE_NAME

    @property
    def tracks_dir(self) -> Path:
        return self.root / TRACKS_DIR_NAME

    @property
    def songs_dir(self) -> Path:
        return self.root / SONGS_DIR_NAME

    def ensure_directories(self) -> None:
        """Create the managed directories; failures are logged, not raised."""
        for directory in (self.tracks_dir, self.songs_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Failed to create directory {directory}: {e}")

    def relative_path(self, path: Path) -> str:
        """Storage-relative path of a managed file, with POSIX separators."""
        return PurePosixPath(*Path(path).relative_to(self.root).parts).as_posix()

    def resolve(self, relative_path: str) -> Path:
        """Absolute location of a storage-relative path."""
        return self.root.joinpath(*PurePosixPath(relative_path).parts)


def is_audio_file(path: Path) -> bool:
    """Check whether a file has a recognized audio extension (case-insensitive)."""
    if path.name.startswith("."):
        return False
    return path.suffix[1:].lower() in AUDIO_EXTENSIONS


def unique_file_name(directory: Path, name: str) -> str:
    """Pick a file name that does not exist yet in directory.

    Tries "base.ext", then "base 1.ext", "base 2.ext", ... until one is free.
    """
    candidate = name
    path = Path(name)
    base, ext = path.stem, path.suffix
    index = 1
    while (directory / candidate).exists():
        candidate = f"{base} {index}{ext}"
        index += 1
    return candidate
