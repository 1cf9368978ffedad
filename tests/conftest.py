"""Shared fixtures for music-shelf tests."""

import wave
from pathlib import Path
from typing import Optional

import pytest

from music_shelf.core.errors import DecodeLoadError
from music_shelf.domain.library.storage import StorageLayout
from music_shelf.domain.playback.backend import AudioBackend


def _write_wav(path: Path, seconds: float = 1.0, rate: int = 8000) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(b"\x00\x00" * int(seconds * rate))
    return path


@pytest.fixture
def make_wav():
    """Factory writing a silent mono WAV file of the given length."""
    return _write_wav


@pytest.fixture
def layout(tmp_path):
    """Managed storage layout under a temp root, with directories created."""
    storage = StorageLayout(tmp_path / "library")
    storage.ensure_directories()
    return storage


@pytest.fixture
def source_dir(tmp_path):
    """Directory standing in for files picked from outside managed storage."""
    directory = tmp_path / "external"
    directory.mkdir()
    return directory


class FakeBackend(AudioBackend):
    """In-memory AudioBackend recording the calls it receives."""

    def __init__(self, duration: float = 180.0):
        self.duration = duration
        self.loaded: Optional[Path] = None
        self.playing = False
        self.pos = 0.0
        self.fail_paths: set[Path] = set()
        self.calls: list[tuple] = []

    def load(self, path: Path) -> float:
        self.calls.append(("load", path))
        if path in self.fail_paths:
            raise DecodeLoadError("cannot decode", path)
        self.loaded = path
        self.playing = True
        self.pos = 0.0
        return self.duration

    def resume(self) -> None:
        self.calls.append(("resume",))
        self.playing = True

    def pause(self) -> None:
        self.calls.append(("pause",))
        self.playing = False

    def stop(self) -> None:
        self.calls.append(("stop",))
        self.loaded = None
        self.playing = False
        self.pos = 0.0

    def seek(self, position: float) -> None:
        self.calls.append(("seek", position))
        self.pos = position

    def position(self) -> Optional[float]:
        return self.pos if self.loaded else None

    def is_playing(self) -> bool:
        return self.playing

    def close(self) -> None:
        self.calls.append(("close",))


@pytest.fixture
def backend():
    return FakeBackend()
