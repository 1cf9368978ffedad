"""Error kinds for the library store, import pipeline and playback controller.

These are raised by the low-level helpers and caught at the store/controller
boundary, where they are logged and recorded instead of propagated.
"""

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class MusicShelfError(Exception):
    """Base exception for music-shelf operations."""

    def __init__(self, message: str, path: Optional[PathLike] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class ImportIOError(MusicShelfError):
    """Raised when copying or reading a source file during import fails."""

    pass


class ProbeError(MusicShelfError):
    """Raised when the duration of an audio file cannot be determined."""

    pass


class DecodeLoadError(MusicShelfError):
    """Raised when the playback backend cannot open a file."""

    pass


class PersistenceError(MusicShelfError):
    """Base exception for snapshot persistence failures."""

    pass


class PersistenceWriteError(PersistenceError):
    """Raised when the library snapshot cannot be written."""

    pass


class PersistenceReadError(PersistenceError):
    """Raised when the library snapshot is unreadable or corrupt."""

    pass
