"""
Import pipeline: bring audio files under store management.

Handles copying external files into Tracks/, seeding bundled songs into
Songs/, and scanning Songs/ for files that are not registered yet. These
functions do the file work and build Track records; registering them and
persisting is left to the LibraryStore.
"""

import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, ContextManager, Iterable, Iterator, NamedTuple, Union

from loguru import logger

from music_shelf.core.errors import ImportIOError, MusicShelfError

from .metadata import probe_duration, title_from_file_name
from .models import Track
from .storage import StorageLayout, is_audio_file, unique_file_name

SourceLike = Union[str, os.PathLike]
ReadGrant = Callable[[Path], ContextManager[Path]]


class ImportReport(NamedTuple):
    """Outcome of a batch import."""

    imported: list[Track]
    failed: list[tuple[SourceLike, MusicShelfError]]

    @property
    def ok(self) -> bool:
        return not self.failed


@contextmanager
def read_grant(source: Path) -> Iterator[Path]:
    """Hold a temporary read grant on an external file for the duration of a copy.

    Plain local files need no grant beyond being readable, so this only
    verifies access. Hosts with sandboxed file access can pass their own
    grant factory to the import functions; it must release the grant on exit
    whether or not the copy succeeded.
    """
    if not os.access(source, os.R_OK):
        raise ImportIOError("Source file is not readable", source)
    logger.debug(f"Acquired read grant: {source}")
    try:
        yield source
    finally:
        logger.debug(f"Released read grant: {source}")


def register_file(layout: StorageLayout, managed_path: Path) -> Track:
    """Build a Track for a file that already lives in managed storage."""
    return Track.create(
        title=title_from_file_name(managed_path.name),
        relative_path=layout.relative_path(managed_path),
        duration=probe_duration(managed_path),
    )


def import_single(
    source: SourceLike, layout: StorageLayout, grant: ReadGrant = read_grant
) -> Track:
    """Copy one external file into Tracks/ and build its Track.

    The destination name never overwrites an existing managed file; see
    unique_file_name.

    Raises:
        ImportIOError: If the source cannot be read or the copy fails
    """
    source = Path(source)
    if not source.is_file():
        raise ImportIOError("Source is not a file", source)

    unique_name = unique_file_name(layout.tracks_dir, source.name)
    destination = layout.tracks_dir / unique_name

    try:
        with grant(source) as readable:
            shutil.copy2(readable, destination)
    except ImportIOError:
        raise
    except OSError as e:
        # Don't leave a partial copy behind
        if destination.exists():
            try:
                destination.unlink()
            except OSError:
                logger.warning(f"Could not remove partial copy: {destination}")
        raise ImportIOError(f"Failed to copy file: {e}", source) from e

    track = register_file(layout, destination)
    logger.info(f"Imported {source} as {track.relative_path}")
    return track


def seed_bundled_songs(bundled_dir: Path, songs_dir: Path) -> list[Path]:
    """Copy bundled audio files into Songs/ when a file of that name is missing.

    Returns:
        Paths of the files that were copied
    """
    if not bundled_dir.is_dir():
        logger.debug(f"No bundled songs directory at {bundled_dir}")
        return []

    copied = []
    for source in sorted(bundled_dir.iterdir()):
        if not source.is_file() or not is_audio_file(source):
            continue
        destination = songs_dir / source.name
        if destination.exists():
            continue
        try:
            shutil.copy2(source, destination)
            copied.append(destination)
        except OSError as e:
            logger.error(f"Failed to copy bundled song {source}: {e}")

    if copied:
        logger.info(f"Seeded {len(copied)} bundled songs into {songs_dir}")
    return copied


def scan_folder(layout: StorageLayout, known_paths: Iterable[str]) -> list[Track]:
    """Register audio files in Songs/ whose relative path is not known yet.

    Only the top level of Songs/ is scanned. Files are visited in name order
    so repeated scans produce tracks in a stable order.
    """
    known = set(known_paths)
    try:
        entries = sorted(layout.songs_dir.iterdir())
    except OSError as e:
        logger.error(f"Failed to scan {layout.songs_dir}: {e}")
        return []

    discovered = []
    for file_path in entries:
        if not file_path.is_file() or not is_audio_file(file_path):
            continue
        relative = layout.relative_path(file_path)
        # Avoid duplicates by relative path
        if relative in known:
            continue
        track = register_file(layout, file_path)
        known.add(relative)
        discovered.append(track)

    if discovered:
        logger.info(f"Scan found {len(discovered)} new tracks in {layout.songs_dir}")
    return discovered
