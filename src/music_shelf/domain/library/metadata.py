"""
Audio metadata probing.
"""

import math
from pathlib import Path
from typing import Optional

from loguru import logger
from mutagen import File as MutagenFile

from music_shelf.core.errors import ProbeError


def read_duration(local_path: Path) -> float:
    """Read the duration of an audio file using mutagen.

    Raises:
        ProbeError: If the file cannot be parsed or reports no usable length
    """
    try:
        audio_file = MutagenFile(local_path)
    except Exception as e:
        # mutagen surfaces damaged files through many parser-specific errors
        raise ProbeError(f"Could not read audio file: {e}", local_path) from e

    if audio_file is None:
        raise ProbeError("Unrecognized audio format", local_path)

    length = getattr(getattr(audio_file, "info", None), "length", None)
    if length is None:
        raise ProbeError("Audio file reports no duration", local_path)

    try:
        duration = float(length)
    except (TypeError, ValueError) as e:
        raise ProbeError(f"Invalid duration value: {length!r}", local_path) from e

    # Only finite, positive durations are meaningful
    if not math.isfinite(duration) or duration <= 0:
        raise ProbeError(f"Invalid duration value: {duration}", local_path)

    return duration


def probe_duration(local_path: Path) -> Optional[float]:
    """Probe an audio file's duration, returning None when it can't be determined."""
    try:
        return read_duration(local_path)
    except ProbeError as e:
        logger.warning(f"Could not determine duration of {local_path}: {e}")
        return None


def title_from_file_name(file_name: str) -> str:
    """Derive a display title from a file name by dropping its extension."""
    return Path(file_name).stem
