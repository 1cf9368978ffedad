"""
Library store: the single owner of tracks and playlists.

Every mutation goes through LibraryStore and is followed by a full snapshot
save. Persistence failures are logged and recorded but never raised: the
in-memory state stays authoritative even when a flush fails, so a crash
before the next successful save loses that change.

The store is meant to be driven from one thread (or one asyncio loop). It
does no internal locking apart from serializing overlapping imports.
"""

import asyncio
import os
import time
from collections import deque
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional, Union

from loguru import logger

from music_shelf.core.config import Config, get_storage_root
from music_shelf.core.errors import (
    ImportIOError,
    MusicShelfError,
    PersistenceError,
    PersistenceReadError,
)
from music_shelf.core.observable import Observable

from . import snapshot as snapshot_io
from .importer import (
    ImportReport,
    ReadGrant,
    SourceLike,
    import_single,
    read_grant,
    scan_folder,
    seed_bundled_songs,
)
from .models import LibrarySnapshot, Playlist, Track, normalize_playlist_name
from .storage import StorageLayout

TrackRef = Union[Track, str]
PlaylistRef = Union[Playlist, str]

MAX_RECENT_ERRORS = 50

TRACKS_CHANGED = "tracks_changed"
PLAYLISTS_CHANGED = "playlists_changed"
ERROR = "error"


def _ref_id(ref: Union[Track, Playlist, str]) -> str:
    return ref if isinstance(ref, str) else ref.id


def _copy_track(track: Track) -> Track:
    return replace(track)


def _copy_playlist(playlist: Playlist) -> Playlist:
    return replace(playlist, track_ids=list(playlist.track_ids))


class LibraryStore(Observable):
    """File-backed store of tracks and playlists.

    Args:
        layout: Managed storage layout (default: derived from config)
        bundled_dir: Read-only directory of songs to seed into Songs/
        config: Configuration used to derive defaults
        grant: Read-grant factory used when copying external files
    """

    def __init__(
        self,
        layout: Optional[StorageLayout] = None,
        *,
        bundled_dir: Optional[Path] = None,
        config: Optional[Config] = None,
        grant: ReadGrant = read_grant,
    ):
        super().__init__()
        config = config or Config()
        self.layout = layout or StorageLayout(get_storage_root(config))
        if bundled_dir is None and config.storage.bundled_songs_dir:
            bundled_dir = Path(config.storage.bundled_songs_dir).expanduser()
        self.bundled_dir = bundled_dir
        self._grant = grant

        self._tracks: list[Track] = []
        self._playlists: list[Playlist] = []
        self.recent_errors: deque[MusicShelfError] = deque(maxlen=MAX_RECENT_ERRORS)
        self._import_lock = asyncio.Lock()

        self.layout.ensure_directories()
        self._load()
        if self.bundled_dir is not None:
            seed_bundled_songs(self.bundled_dir, self.layout.songs_dir)
        self._tracks.extend(scan_folder(self.layout, self._known_paths()))
        self.save()

    # Observable state
    #
    # Records handed out are copies. Changing one does not touch the store;
    # go through the mutation methods instead.

    @property
    def tracks(self) -> tuple[Track, ...]:
        return tuple(_copy_track(t) for t in self._tracks)

    @property
    def playlists(self) -> tuple[Playlist, ...]:
        return tuple(_copy_playlist(p) for p in self._playlists)

    def snapshot(self) -> LibrarySnapshot:
        """Current state as a snapshot record."""
        return LibrarySnapshot(tracks=list(self.tracks), playlists=list(self.playlists))

    # Lookups

    def track_by_id(self, track_id: str) -> Optional[Track]:
        found = self._find_track(track_id)
        return _copy_track(found) if found is not None else None

    def playlist_by_id(self, playlist_id: str) -> Optional[Playlist]:
        found = self._find_playlist(playlist_id)
        return _copy_playlist(found) if found is not None else None

    def file_path(self, track: Track) -> Path:
        """Absolute location of a track's backing file."""
        return self.layout.resolve(track.relative_path)

    def tracks_in(self, playlist: PlaylistRef) -> list[Track]:
        """Tracks of a stored playlist in playlist order, skipping dangling ids.

        The playlist is looked up by id, so a stale or edited record passed in
        still yields the stored membership.
        """
        found = self._find_playlist(_ref_id(playlist))
        if found is None:
            return []
        by_id = {t.id: t for t in self._tracks}
        return [_copy_track(by_id[tid]) for tid in found.track_ids if tid in by_id]

    def _find_track(self, track_id: str) -> Optional[Track]:
        return next((t for t in self._tracks if t.id == track_id), None)

    def _find_playlist(self, playlist_id: str) -> Optional[Playlist]:
        return next((p for p in self._playlists if p.id == playlist_id), None)

    # Playlist CRUD

    def add_playlist(self, name: str) -> Playlist:
        """Create an empty playlist and append it.

        Raises:
            ValueError: If the name is blank after trimming
        """
        normalized = normalize_playlist_name(name)
        if normalized is None:
            raise ValueError("Playlist name must not be empty")

        playlist = Playlist.create(normalized)
        self._playlists.append(playlist)
        logger.info(f"Created playlist '{normalized}' ({playlist.id})")
        self._publish(PLAYLISTS_CHANGED, self.playlists)
        self.save()
        return _copy_playlist(playlist)

    def delete_playlists(self, positions: Iterable[int]) -> None:
        """Remove playlists at the given positions of the current order.

        Positions refer to the order before any removal. Out-of-range
        positions are ignored.
        """
        removed = 0
        for index in sorted(set(positions), reverse=True):
            if not 0 <= index < len(self._playlists):
                continue
            playlist = self._playlists.pop(index)
            logger.info(f"Deleted playlist '{playlist.name}' ({playlist.id})")
            removed += 1

        if removed:
            self._publish(PLAYLISTS_CHANGED, self.playlists)
        self.save()

    def rename_playlist(self, playlist: PlaylistRef, new_name: str) -> None:
        found = self._find_playlist(_ref_id(playlist))
        if found is None:
            return
        found.name = new_name
        self._publish(PLAYLISTS_CHANGED, self.playlists)
        self.save()

    def add_track_to_playlist(self, track: TrackRef, playlist: PlaylistRef) -> None:
        found = self._find_playlist(_ref_id(playlist))
        if found is None:
            return
        track_id = _ref_id(track)
        if track_id in found.track_ids:
            return
        found.track_ids.append(track_id)
        self._publish(PLAYLISTS_CHANGED, self.playlists)
        self.save()

    def remove_track_from_playlist(self, track: TrackRef, playlist: PlaylistRef) -> None:
        found = self._find_playlist(_ref_id(playlist))
        if found is None:
            return
        track_id = _ref_id(track)
        found.track_ids[:] = [tid for tid in found.track_ids if tid != track_id]
        self._publish(PLAYLISTS_CHANGED, self.playlists)
        self.save()

    # Tracks

    def retitle_track(self, track: TrackRef, title: str) -> None:
        """Change a track's display title. Unknown tracks are ignored."""
        found = self._find_track(_ref_id(track))
        if found is None:
            return
        found.title = title
        self._publish(TRACKS_CHANGED, self.tracks)
        self.save()

    async def import_tracks(self, sources: Iterable[SourceLike]) -> ImportReport:
        """Import external files one by one, then save once.

        A failing source is logged and skipped; the remaining sources are
        still imported. Tracks are appended in source order. A source that is
        not a path at all (None, a number) counts as a failed source.
        """
        imported: list[Track] = []
        failed: list[tuple[SourceLike, MusicShelfError]] = []

        async with self._import_lock:
            for source in sources:
                try:
                    source_path = Path(source)
                except TypeError as e:
                    logger.error(f"Failed to import track {source!r}: not a path")
                    error = ImportIOError(f"Invalid source reference {source!r}: {e}")
                    self._record_error(error)
                    failed.append((source, error))
                    continue

                try:
                    # Copy and probe off the event loop
                    track = await asyncio.to_thread(
                        import_single, source_path, self.layout, self._grant
                    )
                except MusicShelfError as e:
                    logger.error(f"Failed to import track {source_path}: {e}")
                    self._record_error(e)
                    failed.append((source_path, e))
                    continue
                except Exception as e:
                    logger.exception(f"Failed to import track {source_path}")
                    error = ImportIOError(f"Unexpected import failure: {e}", source_path)
                    self._record_error(error)
                    failed.append((source_path, error))
                    continue

                self._tracks.append(track)
                imported.append(track)

            if imported:
                self._publish(TRACKS_CHANGED, self.tracks)
            self.save()

        logger.info(f"Import finished: {len(imported)} imported, {len(failed)} failed")
        return ImportReport(imported=[_copy_track(t) for t in imported], failed=failed)

    def rescan(self) -> list[Track]:
        """Register audio files added to Songs/ since the last scan, then save."""
        discovered = scan_folder(self.layout, self._known_paths())
        if discovered:
            self._tracks.extend(discovered)
            self._publish(TRACKS_CHANGED, self.tracks)
        self.save()
        return [_copy_track(t) for t in discovered]

    # Persistence

    def save(self) -> bool:
        """Write the full snapshot. Failures are logged, never raised.

        Returns:
            True if the snapshot was written
        """
        try:
            snapshot_io.write_snapshot(self.layout.snapshot_path, self.snapshot())
            return True
        except PersistenceError as e:
            logger.error(f"Failed to save library: {e}")
            self._record_error(e)
            return False

    def _load(self) -> None:
        try:
            loaded = snapshot_io.read_snapshot(self.layout.snapshot_path)
        except PersistenceReadError as e:
            logger.error(f"Failed to load library, starting empty: {e}")
            self._record_error(e)
            self._set_aside_corrupt_snapshot()
            return

        if loaded is None:
            logger.info(f"No library snapshot at {self.layout.snapshot_path}, starting empty")
            return

        self._tracks = loaded.tracks
        self._playlists = loaded.playlists
        logger.info(
            f"Loaded library: {len(self._tracks)} tracks, {len(self._playlists)} playlists"
        )

    def _set_aside_corrupt_snapshot(self) -> None:
        """Move an unreadable snapshot out of the way so the next save keeps it."""
        path = self.layout.snapshot_path
        backup = path.with_name(f"{path.stem}.corrupt-{time.strftime('%Y%m%d-%H%M%S')}{path.suffix}")
        try:
            os.replace(path, backup)
            logger.warning(f"Moved corrupt library snapshot to {backup}")
        except OSError as e:
            logger.error(f"Could not move corrupt library snapshot aside: {e}")

    def _known_paths(self) -> set[str]:
        return {t.relative_path for t in self._tracks}

    def _record_error(self, error: MusicShelfError) -> None:
        self.recent_errors.append(error)
        self._publish(ERROR, error)
