"""Tests for artist uploads and analytics."""

import sqlite3
from datetime import datetime, timezone

import pytest

from tunestream.core.exceptions import AccessDeniedError, NotFoundError, ValidationError
from tunestream.domain.artists import (
    AlbumUploadDetails,
    TrackUploadDetails,
    UploadedTrack,
    get_artist_analytics,
    process_upload,
)


@pytest.fixture
def artist(store):
    return store.create_artist(name="Kite")


class TestTrackUpload:
    def test_track_without_album_becomes_single(self, store, artist):
        details = TrackUploadDetails(
            title="Paper Sky",
            duration=210,
            audio_url="/audio/paper-sky.mp3",
            purchase_price=99,
            purchase_available=True,
        )

        upload = process_upload(store, artist.id, details)

        assert upload.status == "completed"
        assert upload.upload_type == "track"
        assert upload.details["kind"] == "track"
        album = store.get_album(upload.album_id)
        assert album.album_type == "single"
        assert album.title == "Paper Sky"
        track = store.get_track(upload.track_id)
        assert track.is_purchasable

    def test_track_appended_to_own_album(self, store, artist):
        album = store.create_album(title="Winds", artist_id=artist.id)
        store.create_track(
            title="One", artist_id=artist.id, album_id=album.id, duration=60, audio_url="/a/1.mp3"
        )

        upload = process_upload(
            store,
            artist.id,
            TrackUploadDetails(title="Two", duration=60, audio_url="/a/2.mp3", album_id=album.id),
        )

        assert store.get_track(upload.track_id).track_number == 2

    def test_album_of_another_artist(self, store, artist):
        other = store.create_artist(name="Someone else")
        album = store.create_album(title="Theirs", artist_id=other.id)
        details = TrackUploadDetails(
            title="Sneaky", duration=60, audio_url="/a/s.mp3", album_id=album.id
        )

        with pytest.raises(AccessDeniedError):
            process_upload(store, artist.id, details)

        (upload,) = store.get_artist_uploads(artist.id)
        assert upload.status == "failed"
        assert upload.error_message == "Album belongs to another artist"

    def test_invalid_duration_marks_failed(self, store, artist):
        with pytest.raises(ValidationError):
            process_upload(
                store, artist.id, TrackUploadDetails(title="Bad", duration=0, audio_url="/a/b.mp3")
            )

        assert store.get_artist_uploads(artist.id)[0].status == "failed"

    def test_storage_error_marks_failed(self, store, artist, monkeypatch):
        def broken_insert(**fields):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(store, "create_track", broken_insert)

        with pytest.raises(sqlite3.OperationalError):
            process_upload(
                store, artist.id, TrackUploadDetails(title="Late", duration=90, audio_url="/a/l.mp3")
            )

        (upload,) = store.get_artist_uploads(artist.id)
        assert upload.status == "failed"
        assert upload.error_message == "database is locked"

    def test_default_collections_are_empty(self, store, artist):
        details = TrackUploadDetails(title="A", duration=60, audio_url="/a/a.mp3")

        assert details.genres == () and details.featuring == ()

        upload = process_upload(store, artist.id, details)

        assert store.get_track(upload.track_id).featuring == []
        assert store.get_album(upload.album_id).genres == []


class TestAlbumUpload:
    def test_album_with_tracklist(self, store, artist):
        details = AlbumUploadDetails(
            title="Tidal",
            tracks=[
                UploadedTrack(title="Low", duration=100, audio_url="/a/low.mp3"),
                UploadedTrack(title="High", duration=120, audio_url="/a/high.mp3"),
            ],
            release_date=datetime(2024, 6, 1, tzinfo=timezone.utc),
            album_type="ep",
        )

        upload = process_upload(store, artist.id, details)

        assert upload.status == "completed"
        assert upload.track_id is None
        assert upload.details["release_date"] == "2024-06-01T00:00:00+00:00"
        assert [t["title"] for t in upload.details["tracks"]] == ["Low", "High"]
        tracks = store.get_album_tracks(upload.album_id)
        assert [(t.title, t.track_number) for t in tracks] == [("Low", 1), ("High", 2)]
        assert store.get_album(upload.album_id).album_type == "ep"

    def test_album_needs_tracks(self, store, artist):
        with pytest.raises(ValidationError):
            process_upload(store, artist.id, AlbumUploadDetails(title="Empty", tracks=[]))


class TestAnalytics:
    def test_unknown_artist(self, store):
        with pytest.raises(NotFoundError):
            get_artist_analytics(store, 999)

    def test_invalid_period(self, store, artist):
        with pytest.raises(ValidationError):
            get_artist_analytics(store, artist.id, "fortnight")

    def test_counts_streams(self, store, user, catalog):
        store.record_stream(catalog["tracks"][0].id, user.id)
        store.follow_artist(user.id, catalog["artist"].id)

        analytics = get_artist_analytics(store, catalog["artist"].id, "month")

        assert analytics.stream_count == 1
        assert analytics.follower_count == 1
        assert analytics.period == "month"
