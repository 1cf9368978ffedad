"""Tests for library models and name normalization."""

from music_shelf.domain.library.models import (
    Playlist,
    Track,
    normalize_playlist_name,
)


class TestTrack:
    """Tests for Track identity."""

    def test_create_assigns_unique_ids(self):
        first = Track.create("Song", "Tracks/song.mp3")
        second = Track.create("Song", "Tracks/song.mp3")
        assert first.id != second.id
        assert first != second

    def test_equality_is_by_id(self):
        track = Track(id="abc", title="One", relative_path="Tracks/one.mp3")
        retitled = Track(id="abc", title="Other", relative_path="Tracks/one.mp3", duration=3.0)
        assert track == retitled
        assert len({track, retitled}) == 1

    def test_duration_defaults_to_none(self):
        assert Track.create("Song", "Tracks/song.mp3").duration is None


class TestPlaylist:
    """Tests for Playlist defaults."""

    def test_create_is_empty(self):
        playlist = Playlist.create("Road trip")
        assert playlist.name == "Road trip"
        assert playlist.track_ids == []

    def test_track_lists_are_not_shared(self):
        first = Playlist.create("A")
        second = Playlist.create("B")
        first.track_ids.append("x")
        assert second.track_ids == []


class TestHelpers:
    """Tests for playlist name normalization."""

    def test_normalize_trims(self):
        assert normalize_playlist_name("  Chill  ") == "Chill"

    def test_normalize_rejects_blank(self):
        assert normalize_playlist_name("   ") is None
        assert normalize_playlist_name("") is None
