"""
Library snapshot persistence.

The whole library is stored as one JSON document holding two ordered lists,
"tracks" and "playlists". Every save re-encodes the full snapshot and
atomically replaces the previous file.
"""

import json
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from music_shelf.core.errors import PersistenceReadError, PersistenceWriteError

from .models import LibrarySnapshot, Playlist, Track

SNAPSHOT_VERSION = 1


def encode_track(track: Track) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": track.id,
        "title": track.title,
        "relativePath": track.relative_path,
    }
    if track.duration is not None:
        data["duration"] = track.duration
    return data


def encode_playlist(playlist: Playlist) -> dict[str, Any]:
    return {
        "id": playlist.id,
        "name": playlist.name,
        "trackIDs": list(playlist.track_ids),
    }


def encode_snapshot(snapshot: LibrarySnapshot) -> str:
    """Serialize a snapshot to its JSON document."""
    document = {
        "version": SNAPSHOT_VERSION,
        "tracks": [encode_track(t) for t in snapshot.tracks],
        "playlists": [encode_playlist(p) for p in snapshot.playlists],
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def _decode_duration(value: Any) -> Optional[float]:
    """Missing, malformed, non-finite or non-positive durations become None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        duration = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(duration) or duration <= 0:
        return None
    return duration


def decode_track(data: dict[str, Any]) -> Track:
    return Track(
        id=str(data["id"]),
        title=str(data["title"]),
        relative_path=str(data["relativePath"]),
        duration=_decode_duration(data.get("duration")),
    )


def decode_playlist(data: dict[str, Any]) -> Playlist:
    track_ids: list[str] = []
    for track_id in data.get("trackIDs", []):
        # Drop duplicates that a hand-edited file might contain
        if str(track_id) not in track_ids:
            track_ids.append(str(track_id))
    return Playlist(id=str(data["id"]), name=str(data["name"]), track_ids=track_ids)


def decode_snapshot(text: str) -> LibrarySnapshot:
    """Parse a JSON document into a snapshot.

    Raises:
        ValueError: If the document is not valid JSON or has the wrong shape
    """
    document = json.loads(text)
    if not isinstance(document, dict):
        raise ValueError("Snapshot document must be a JSON object")

    version = document.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        logger.warning(
            f"Snapshot version {version} differs from supported version "
            f"{SNAPSHOT_VERSION}, attempting to read it anyway"
        )

    tracks = document.get("tracks", [])
    playlists = document.get("playlists", [])
    if not isinstance(tracks, list) or not isinstance(playlists, list):
        raise ValueError("Snapshot 'tracks' and 'playlists' must be lists")

    try:
        return LibrarySnapshot(
            tracks=[decode_track(t) for t in tracks],
            playlists=[decode_playlist(p) for p in playlists],
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed snapshot entry: {e!r}") from e


def read_snapshot(path: Path) -> Optional[LibrarySnapshot]:
    """Read the snapshot file.

    Returns:
        The decoded snapshot, or None if no snapshot file exists yet

    Raises:
        PersistenceReadError: If the file exists but cannot be read or decoded
    """
    if not path.exists():
        return None

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PersistenceReadError(f"Could not read library snapshot: {e}", path) from e

    try:
        return decode_snapshot(text)
    except ValueError as e:
        raise PersistenceReadError(f"Corrupt library snapshot: {e}", path) from e


def write_snapshot(path: Path, snapshot: LibrarySnapshot) -> None:
    """Atomically replace the snapshot file with a fresh encoding.

    The document is written to a temp file in the same directory and then
    moved over the target, so a crash leaves either the old or the new file.

    Raises:
        PersistenceWriteError: If encoding or writing fails
    """
    try:
        payload = encode_snapshot(snapshot)
    except (TypeError, ValueError) as e:
        raise PersistenceWriteError(f"Could not encode library snapshot: {e}", path) from e

    temp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError as e:
        # Clean up temp file on failure
        if temp_path and os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                logger.warning(f"Could not remove temp snapshot: {temp_path}")
        raise PersistenceWriteError(f"Could not write library snapshot: {e}", path) from e
