"""Pytest configuration for backend tests.

Importing ``web.backend.main`` builds a module-level app from the user's
config, so point it at a throwaway config file and database first.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

_scratch = Path(tempfile.mkdtemp(prefix="tunestream-tests-"))
os.environ.setdefault("TUNESTREAM_CONFIG", str(_scratch / "config.toml"))
os.environ.setdefault("TUNESTREAM_DATABASE", ":memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tunestream.core.config import Config, PlayerConfig, StorageConfig  # noqa: E402
from tunestream.domain.accounts import hash_password  # noqa: E402
from tunestream.domain.store import SqliteStore  # noqa: E402
from web.backend.main import create_app  # noqa: E402

PREVIEW_SECONDS = 30


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config():
    return Config(
        storage=StorageConfig(database_path=":memory:"),
        player=PlayerConfig(preview_duration=PREVIEW_SECONDS),
    )


@pytest.fixture
def store():
    store = SqliteStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def app(config, store):
    return create_app(config, store)


@pytest.fixture
def client(app):
    """Anonymous client. Each TestClient keeps its own session cookie."""
    return TestClient(app)


@pytest.fixture
def signup(app):
    """Factory: register an account and return a client logged in as it.

    The registered user is available as ``client.user``.
    """

    def factory(username, role="user", password="secret1"):
        client = TestClient(app)
        response = client.post(
            "/api/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": password,
                "confirmPassword": password,
                "role": role,
            },
        )
        assert response.status_code == 201, response.text
        client.user = response.json()
        return client

    return factory


@pytest.fixture
def listener(signup):
    """Client logged in as a free-tier listener."""
    return signup("listener")


@pytest.fixture
def other_listener(signup):
    return signup("someone")


@pytest.fixture
def artist_client(signup):
    return signup("producer", role="artist")


@pytest.fixture
def admin(app, store):
    store.create_user(
        email="admin@example.com",
        username="admin",
        display_name="Admin",
        password_hash=hash_password("adminpass"),
        role="admin",
    )
    client = TestClient(app)
    response = client.post("/api/login", json={"username": "admin", "password": "adminpass"})
    assert response.status_code == 200
    return client


@pytest.fixture
def catalog(store):
    """One artist with a two-track album and a purchasable single."""
    artist = store.create_artist(name="Nova Lane")
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
