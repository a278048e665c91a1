"""Shared fixtures for domain tests."""

from datetime import datetime, timezone

import pytest

from tunestream.domain.models import Track
from tunestream.domain.store import SqliteStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store(tmp_path):
    """Fresh file-backed store per test."""
    store = SqliteStore(str(tmp_path / "tunestream.db"))
    yield store
    store.close()


@pytest.fixture
def catalog(store):
    """One artist with a two-track album and a single."""
    artist = store.create_artist(name="Nova Lane", genres=["synthpop"])
    album = store.create_album(
        title="Night Drive",
        artist_id=artist.id,
        release_date=datetime(2023, 5, 1, tzinfo=timezone.utc),
        album_type="album",
    )
    first = store.create_track(
        title="Neon Streets",
        artist_id=artist.id,
        album_id=album.id,
        duration=200,
        audio_url="/audio/neon.mp3",
        purchase_price=129,
        purchase_available=True,
        track_number=1,
    )
    second = store.create_track(
        title="Afterglow",
        artist_id=artist.id,
        album_id=album.id,
        duration=180,
        audio_url="/audio/afterglow.mp3",
        track_number=2,
    )
    single = store.create_album(
        title="Static",
        artist_id=artist.id,
        release_date=datetime(2024, 2, 1, tzinfo=timezone.utc),
        album_type="single",
    )
    third = store.create_track(
        title="Static",
        artist_id=artist.id,
        album_id=single.id,
        duration=150,
        audio_url="/audio/static.mp3",
        purchase_price=99,
        purchase_available=True,
    )
    return {
        "artist": artist,
        "album": album,
        "single": single,
        "tracks": [first, second, third],
    }


@pytest.fixture
def user(store):
    return store.create_user(
        email="listener@example.com",
        username="listener",
        display_name="Listener",
        password_hash="not-a-real-hash",
    )


@pytest.fixture
def make_track():
    """Factory for in-memory tracks used by playback tests."""

    def factory(track_id: int, duration: int = 120, **overrides) -> Track:
        fields = dict(
            id=track_id,
            title=f"Track {track_id}",
            artist_id=1,
            artist_name="Artist",
            album_id=1,
            album_title="Album",
            duration=duration,
            audio_url=f"/audio/{track_id}.mp3",
        )
        fields.update(overrides)
        return Track(**fields)

    return factory
