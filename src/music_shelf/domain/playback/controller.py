"""
Playback controller: transport state machine over one AudioBackend session.

States: IDLE (nothing loaded), PLAYING and PAUSED. play() always tears the
current session down through stop() before loading the next track, and
stop() cancels the progress observer synchronously, so a tick scheduled by
an old session can never touch the state of a new one.

The observer is an asyncio task on the running loop that calls tick() every
tick_interval seconds. Without a running loop no observer is started and
the host may call tick() itself.
"""

import asyncio
import math
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from music_shelf.core.errors import DecodeLoadError, MusicShelfError
from music_shelf.core.observable import Observable
from music_shelf.domain.library.models import Track

from .backend import AudioBackend
from .state import PlaybackState, PlayerStatus

STATUS = "status"
ERROR = "error"


class PlaybackController(Observable):
    """Plays one track at a time with play/pause/stop/seek.

    Args:
        backend: Audio output session
        resolve_path: Maps a Track to its backing file (e.g. LibraryStore.file_path)
        tick_interval: Seconds between progress updates while a track is loaded
    """

    def __init__(
        self,
        backend: AudioBackend,
        resolve_path: Callable[[Track], Path],
        tick_interval: float = 0.5,
    ):
        super().__init__()
        self.backend = backend
        self.resolve_path = resolve_path
        self.tick_interval = tick_interval
        self.last_error: Optional[MusicShelfError] = None

        self._status = PlayerStatus()
        self._ended = False
        self._generation = 0
        self._observer: Optional[asyncio.Task] = None

    # Observable state

    @property
    def status(self) -> PlayerStatus:
        return self._status

    @property
    def state(self) -> PlaybackState:
        return self._status.state

    @property
    def current_track(self) -> Optional[Track]:
        return self._status.current_track

    @property
    def is_playing(self) -> bool:
        return self._status.is_playing

    @property
    def current_time(self) -> float:
        return self._status.current_time

    @property
    def duration(self) -> float:
        return self._status.duration

    # Transport

    def play(self, track: Track) -> bool:
        """Stop whatever is playing, then load and start track.

        Returns:
            True if playback started; on failure the controller stays IDLE
        """
        self.stop()

        path = self.resolve_path(track)
        try:
            reported = self.backend.load(path)
        except DecodeLoadError as e:
            logger.error(f"Failed to play {track.title}: {e}")
            self._record_error(e)
            return False
        except Exception as e:
            logger.exception(f"Failed to play {track.title}")
            self._record_error(DecodeLoadError(f"Unexpected playback failure: {e}", path))
            return False

        # Fall back to the probed duration when the backend can't tell
        duration = reported if reported and reported > 0 else (track.duration or 0.0)

        self._ended = False
        self._set_status(
            PlayerStatus(
                current_track=track,
                state=PlaybackState.PLAYING,
                current_time=0.0,
                duration=duration,
            )
        )
        logger.info(f"Playing {track.title} ({track.relative_path})")
        self._start_observer()
        return True

    def toggle_play_pause(self) -> None:
        """Pause when playing, resume when paused. Does nothing when IDLE."""
        if self.state is PlaybackState.IDLE:
            return

        if self.state is PlaybackState.PLAYING:
            self.backend.pause()
            self._set_status(self._status._replace(state=PlaybackState.PAUSED))
            return

        if self._ended:
            # Replay from the start once the track has run out
            self.backend.seek(0.0)
            self._ended = False
            self._status = self._status._replace(current_time=0.0)
        self.backend.resume()
        self._set_status(self._status._replace(state=PlaybackState.PLAYING))

    def stop(self) -> None:
        """Tear down the session and return to IDLE."""
        self._cancel_observer()
        was_loaded = self.state is not PlaybackState.IDLE
        if was_loaded:
            try:
                self.backend.stop()
            except Exception:
                logger.exception("Backend failed to stop cleanly")
        self._ended = False
        self._set_status(PlayerStatus())

    def seek(self, position: float) -> Optional[float]:
        """Move to position, clamped into [0, duration].

        Non-finite positions (nan, inf) are rejected and leave the state
        unchanged.

        Returns:
            The position actually applied, or None when IDLE or rejected
        """
        if self.state is PlaybackState.IDLE:
            return None

        target = float(position)
        if not math.isfinite(target):
            logger.warning(f"Ignoring seek to non-finite position {position!r}")
            return None

        target = max(0.0, target)
        if self.duration > 0:
            target = min(target, self.duration)

        self.backend.seek(target)
        if target < self.duration:
            self._ended = False
        self._set_status(self._status._replace(current_time=target))
        return target

    def tick(self) -> None:
        """One observation step: refresh current time and detect end of media."""
        if self.state is PlaybackState.IDLE:
            return

        status = self._status
        position = self.backend.position()
        if position is not None:
            status = status._replace(current_time=float(position))

        if status.state is PlaybackState.PLAYING and not self.backend.is_playing():
            logger.debug(f"Reached end of {status.current_track.title}")
            self._ended = True
            status = status._replace(state=PlaybackState.PAUSED)

        self._set_status(status)

    def close(self) -> None:
        """Stop playback and release the backend."""
        self.stop()
        self.backend.close()

    # Observer task

    def _start_observer(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, progress updates rely on manual tick()")
            return
        self._observer = loop.create_task(self._observe(self._generation))

    def _cancel_observer(self) -> None:
        # Bumping the generation invalidates a tick that is already running
        self._generation += 1
        if self._observer is not None:
            self._observer.cancel()
            self._observer = None

    async def _observe(self, generation: int) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if generation != self._generation:
                return
            try:
                self.tick()
            except Exception:
                logger.exception("Playback progress tick failed")

    # Helpers

    def _set_status(self, status: PlayerStatus) -> None:
        if status == self._status:
            return
        self._status = status
        self._publish(STATUS, status)

    def _record_error(self, error: MusicShelfError) -> None:
        self.last_error = error
        self._publish(ERROR, error)
