"""
Audio output backends.

MpvBackend drives a single headless mpv process over its JSON IPC socket.
The controller talks to backends only through the AudioBackend interface,
so tests can substitute an in-memory fake.
"""

import json
import os
import socket
import subprocess
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from music_shelf.core.config import PlayerConfig
from music_shelf.core.errors import DecodeLoadError


class AudioBackend(ABC):
    """A single decoder/output session."""

    @abstractmethod
    def load(self, path: Path) -> float:
        """Open a file and start playing it.

        Returns:
            Duration in seconds, or 0.0 if the backend could not tell

        Raises:
            DecodeLoadError: If the file cannot be opened
        """

    @abstractmethod
    def resume(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def stop(self) -> None:
        """Stop output and unload the current file."""

    @abstractmethod
    def seek(self, position: float) -> None: ...

    @abstractmethod
    def position(self) -> Optional[float]:
        """Current position in seconds, None if unavailable."""

    @abstractmethod
    def is_playing(self) -> bool: ...

    def close(self) -> None:
        """Release backend resources."""
        self.stop()


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def _ipc_request(socket_path: Optional[str], command: dict[str, Any]) -> Optional[dict]:
    """Send one JSON IPC command and return mpv's decoded reply."""
    if not socket_path or not os.path.exists(socket_path):
        return None

    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(2.0)
            sock.connect(socket_path)
            sock.sendall((json.dumps(command) + "\n").encode("utf-8"))
            response = sock.recv(4096).decode("utf-8").strip()
    except (socket.error, OSError):
        return None

    # mpv may interleave event lines; take the first reply carrying "error"
    for line in response.splitlines():
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if "error" in data:
            return data
    return None


def send_mpv_command(socket_path: Optional[str], command: dict[str, Any]) -> bool:
    """Send JSON IPC command to MPV."""
    reply = _ipc_request(socket_path, command)
    return reply is not None and reply.get("error") == "success"


def get_mpv_property(socket_path: Optional[str], property_name: str) -> Any:
    """Get a property value from MPV."""
    reply = _ipc_request(socket_path, {"command": ["get_property", property_name]})
    if reply is not None and reply.get("error") == "success":
        return reply.get("data")
    return None


class MpvBackend(AudioBackend):
    """Playback through a headless mpv process started on first use."""

    def __init__(self, config: Optional[PlayerConfig] = None):
        self.config = config or PlayerConfig()
        self.socket_path: Optional[str] = None
        self.process: Optional[subprocess.Popen] = None

    def is_running(self) -> bool:
        """Check if MPV process is still running."""
        if not self.process or self.process.poll() is not None:
            return False
        return bool(self.socket_path and os.path.exists(self.socket_path))

    def start(self) -> None:
        """Start MPV with JSON IPC.

        Raises:
            DecodeLoadError: If mpv is not installed or cannot be started
        """
        if self.is_running():
            return

        if not check_mpv_available():
            raise DecodeLoadError("mpv not found on PATH")

        if self.config.mpv_socket_path:
            socket_path = self.config.mpv_socket_path
        else:
            socket_path = str(Path(tempfile.gettempdir()) / f"music-shelf-mpv-{os.getpid()}")

        logger.info(f"Starting MPV player with socket: {socket_path}")

        try:
            if os.path.exists(socket_path):
                logger.debug(f"Removing existing socket: {socket_path}")
                os.unlink(socket_path)

            cmd = [
                "mpv",
                "--idle=yes",
                "--no-video",
                "--no-terminal",
                f"--input-ipc-server={socket_path}",
                f"--volume={self.config.volume}",
                "--keep-open=yes",
                "--load-scripts=no",
            ]
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise DecodeLoadError(f"Failed to start MPV: {e}") from e

        # Wait for socket to be created
        timeout = 5.0
        start_time = time.monotonic()
        while not os.path.exists(socket_path):
            if time.monotonic() - start_time > timeout or process.poll() is not None:
                process.kill()
                raise DecodeLoadError(f"MPV socket creation timeout after {timeout}s")
            time.sleep(0.1)

        if not send_mpv_command(socket_path, {"command": ["get_property", "idle-active"]}):
            process.kill()
            raise DecodeLoadError("MPV socket connection test failed")

        self.process = process
        self.socket_path = socket_path
        logger.info("MPV started successfully")

    def load(self, path: Path) -> float:
        if not path.is_file():
            raise DecodeLoadError("Audio file not found", path)

        self.start()
        if not send_mpv_command(
            self.socket_path, {"command": ["loadfile", str(path), "replace"]}
        ):
            raise DecodeLoadError("MPV rejected loadfile command", path)

        # Wait for file metadata with stability checks
        poll_interval = 0.05
        elapsed = 0.0
        last_duration = None
        stable_reads = 0
        while elapsed < self.config.load_timeout:
            duration = get_mpv_property(self.socket_path, "duration")
            if duration and duration > 0:
                if last_duration is not None and abs(duration - last_duration) < 0.1:
                    stable_reads += 1
                    if stable_reads >= 2:
                        break
                else:
                    stable_reads = 0
                last_duration = duration
            time.sleep(poll_interval)
            elapsed += poll_interval

        if last_duration is None:
            # mpv drops back to idle when it can't decode the file
            if get_mpv_property(self.socket_path, "idle-active"):
                raise DecodeLoadError("MPV could not decode file", path)
            logger.warning(f"Metadata load incomplete after {self.config.load_timeout}s: {path}")

        # Explicitly unpause to ensure playback starts
        send_mpv_command(self.socket_path, {"command": ["set_property", "pause", False]})
        return float(last_duration or 0.0)

    def resume(self) -> None:
        send_mpv_command(self.socket_path, {"command": ["set_property", "pause", False]})

    def pause(self) -> None:
        send_mpv_command(self.socket_path, {"command": ["set_property", "pause", True]})

    def stop(self) -> None:
        if self.is_running():
            send_mpv_command(self.socket_path, {"command": ["stop"]})

    def seek(self, position: float) -> None:
        send_mpv_command(self.socket_path, {"command": ["seek", position, "absolute"]})

    def position(self) -> Optional[float]:
        return get_mpv_property(self.socket_path, "time-pos")

    def is_playing(self) -> bool:
        """Whether mpv is rendering audio right now.

        Only a confirmed end of file or an explicit pause counts as not
        playing. An unreadable pause property (slow or dropped IPC reply)
        reads as still playing.
        """
        if not self.is_running():
            return False
        if get_mpv_property(self.socket_path, "eof-reached") is True:
            return False
        paused = get_mpv_property(self.socket_path, "pause")
        if paused is None:
            return True
        return not paused

    def close(self) -> None:
        """Stop MPV process and cleanup."""
        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired):
                pass  # Process already terminated or couldn't be killed
        self.process = None

        if self.socket_path and os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass
        self.socket_path = None
