"""
Music library domain models.

Contains data structures for tracks, playlists and the persisted snapshot.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional


def new_id() -> str:
    """Generate a fresh opaque identifier."""
    return str(uuid.uuid4())


@dataclass(eq=False)
class Track:
    """Represents an imported audio track.

    The relative_path points at the backing file under the managed storage
    root (e.g. "Tracks/song.mp3") and never changes once set. Identity is
    the id alone: two Track records with the same id are the same track.
    """

    id: str
    title: str
    relative_path: str
    duration: Optional[float] = None  # in seconds, None when probing failed

    @classmethod
    def create(
        cls, title: str, relative_path: str, duration: Optional[float] = None
    ) -> "Track":
        return cls(id=new_id(), title=title, relative_path=relative_path, duration=duration)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Track):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(eq=False)
class Playlist:
    """A user-defined, ordered list of track ids.

    track_ids never holds duplicates. Ids of tracks that no longer exist are
    kept and filtered out on lookup.
    """

    id: str
    name: str
    track_ids: list[str] = field(default_factory=list)

    @classmethod
    def create(cls, name: str) -> "Playlist":
        return cls(id=new_id(), name=name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Playlist):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass
class LibrarySnapshot:
    """Complete persisted state: every track and playlist, in order."""

    tracks: list[Track] = field(default_factory=list)
    playlists: list[Playlist] = field(default_factory=list)


def normalize_playlist_name(name: str) -> Optional[str]:
    """Trim a playlist name, returning None when nothing is left."""
    trimmed = name.strip()
    return trimmed or None
