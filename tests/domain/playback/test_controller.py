"""Tests for the playback controller state machine."""

import asyncio
from pathlib import Path

import pytest

from music_shelf.core.errors import DecodeLoadError
from music_shelf.domain.library.models import Track
from music_shelf.domain.playback.controller import PlaybackController
from music_shelf.domain.playback.state import PlaybackState, PlayerStatus

ROOT = Path("/music")


@pytest.fixture
def controller(backend):
    return PlaybackController(backend, resolve_path=lambda t: ROOT / t.relative_path, tick_interval=0.01)


@pytest.fixture
def track_a():
    return Track.create("A", "Tracks/a.mp3", duration=120.0)


@pytest.fixture
def track_b():
    return Track.create("B", "Tracks/b.mp3")


class TestPlay:
    """Tests for play()."""

    def test_starts_idle(self, controller):
        assert controller.status == PlayerStatus()
        assert controller.state is PlaybackState.IDLE
        assert controller.current_track is None

    def test_play_loads_and_plays(self, controller, backend, track_a):
        assert controller.play(track_a) is True

        assert controller.current_track == track_a
        assert controller.is_playing
        assert controller.duration == 180.0
        assert backend.loaded == ROOT / "Tracks/a.mp3"

    def test_play_replaces_current_track(self, controller, backend, track_a, track_b):
        controller.play(track_a)
        controller.play(track_b)

        assert controller.current_track == track_b
        assert controller.is_playing
        assert backend.calls.count(("stop",)) == 1

    def test_load_failure_stays_idle(self, controller, backend, track_a):
        backend.fail_paths.add(ROOT / "Tracks/a.mp3")

        assert controller.play(track_a) is False

        assert controller.status == PlayerStatus()
        assert isinstance(controller.last_error, DecodeLoadError)

    def test_load_failure_after_playing_leaves_idle(self, controller, backend, track_a, track_b):
        controller.play(track_a)
        backend.fail_paths.add(ROOT / "Tracks/b.mp3")

        controller.play(track_b)

        assert controller.state is PlaybackState.IDLE
        assert controller.current_track is None

    def test_unknown_backend_duration_falls_back_to_track(self, controller, backend, track_a):
        backend.duration = 0.0

        controller.play(track_a)

        assert controller.duration == 120.0


class TestTransport:
    """Tests for toggle, stop and seek."""

    def test_toggle_when_idle_is_noop(self, controller, backend):
        controller.toggle_play_pause()
        assert controller.state is PlaybackState.IDLE
        assert backend.calls == []

    def test_toggle_pauses_and_resumes_without_reset(self, controller, backend, track_a):
        controller.play(track_a)
        controller.seek(30.0)

        controller.toggle_play_pause()
        assert controller.state is PlaybackState.PAUSED
        assert not backend.playing
        assert controller.current_time == 30.0

        controller.toggle_play_pause()
        assert controller.state is PlaybackState.PLAYING
        assert backend.playing
        assert controller.current_time == 30.0

    def test_stop_resets_everything(self, controller, backend, track_a):
        controller.play(track_a)
        controller.seek(42.0)

        controller.stop()

        assert controller.current_track is None
        assert controller.current_time == 0.0
        assert controller.duration == 0.0
        assert not controller.is_playing
        assert backend.loaded is None

    def test_seek_when_idle_is_noop(self, controller, backend):
        assert controller.seek(10.0) is None
        assert backend.calls == []

    def test_seek_updates_time_immediately(self, controller, backend, track_a):
        controller.play(track_a)

        assert controller.seek(12.5) == 12.5

        assert controller.current_time == 12.5
        assert backend.pos == 12.5

    def test_seek_beyond_duration_is_clamped(self, controller, backend, track_a):
        controller.play(track_a)

        assert controller.seek(999.0) == 180.0

        assert controller.current_time == 180.0
        assert backend.pos == 180.0

    def test_negative_seek_is_clamped_to_zero(self, controller, track_a):
        controller.play(track_a)
        assert controller.seek(-5.0) == 0.0

    def test_non_finite_seek_with_unknown_duration_is_rejected(
        self, controller, backend, track_b
    ):
        backend.duration = 0.0
        controller.play(track_b)
        controller.seek(4.0)
        assert controller.duration == 0.0
        seeks_before = [c for c in backend.calls if c[0] == "seek"]

        assert controller.seek(float("inf")) is None
        assert controller.seek(float("nan")) is None
        assert controller.seek(float("-inf")) is None

        assert controller.current_time == 4.0
        assert controller.state is PlaybackState.PLAYING
        assert [c for c in backend.calls if c[0] == "seek"] == seeks_before


class TestObservation:
    """Tests for tick() and the background observer."""

    def test_tick_refreshes_time(self, controller, backend, track_a):
        controller.play(track_a)
        backend.pos = 7.0

        controller.tick()

        assert controller.current_time == 7.0

    def test_tick_detects_end_of_media(self, controller, backend, track_a):
        controller.play(track_a)
        backend.pos = 180.0
        backend.playing = False

        controller.tick()

        assert controller.state is PlaybackState.PAUSED
        assert not controller.is_playing
        assert controller.current_track == track_a

    def test_resume_after_end_restarts(self, controller, backend, track_a):
        controller.play(track_a)
        backend.playing = False
        controller.tick()

        controller.toggle_play_pause()

        assert controller.is_playing
        assert controller.current_time == 0.0
        assert ("seek", 0.0) in backend.calls

    def test_tick_when_idle_is_noop(self, controller, backend):
        backend.pos = 5.0
        controller.tick()
        assert controller.current_time == 0.0

    def test_no_observer_without_event_loop(self, controller, track_a):
        controller.play(track_a)
        assert controller._observer is None

    @pytest.mark.asyncio
    async def test_observer_updates_time(self, controller, backend, track_a):
        controller.play(track_a)
        backend.pos = 3.0

        await asyncio.sleep(0.05)

        assert controller.current_time == 3.0
        controller.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_observer(self, controller, backend, track_a):
        controller.play(track_a)
        observer = controller._observer

        controller.stop()
        backend.loaded = Path("/stale")
        backend.pos = 99.0
        await asyncio.sleep(0.05)

        assert observer.cancelled() or observer.done()
        assert controller.current_time == 0.0
        assert controller.state is PlaybackState.IDLE

    @pytest.mark.asyncio
    async def test_replaced_session_gets_no_stale_ticks(self, controller, backend, track_a, track_b):
        statuses = []
        controller.play(track_a)
        first_observer = controller._observer
        controller.play(track_b)
        controller.subscribe(lambda event, status: statuses.append(status))

        backend.pos = 4.0
        await asyncio.sleep(0.05)
        controller.stop()

        assert first_observer.cancelled() or first_observer.done()
        assert statuses
        assert all(s.current_track in (track_b, None) for s in statuses)


class TestLifecycle:
    """Tests for notifications and shutdown."""

    def test_status_events(self, controller, track_a):
        events = []
        controller.subscribe(lambda event, status: events.append((event, status.state)))

        controller.play(track_a)
        controller.toggle_play_pause()
        controller.stop()

        assert events == [
            ("status", PlaybackState.PLAYING),
            ("status", PlaybackState.PAUSED),
            ("status", PlaybackState.IDLE),
        ]

    def test_close_stops_and_closes_backend(self, controller, backend, track_a):
        controller.play(track_a)

        controller.close()

        assert controller.state is PlaybackState.IDLE
        assert backend.calls[-1] == ("close",)
