"""
SQLite database operations for Tunestream
"""

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from loguru import logger

# Database schema version for migrations
SCHEMA_VERSION = 1


def memory_database_uri() -> str:
    """Return a unique shared-cache URI for a process-lifetime in-memory database.

    All connections opened on the same URI see the same tables for as long as
    at least one of them stays open.
    """
    return f"file:tunestream-{uuid.uuid4().hex}?mode=memory&cache=shared"


def is_memory_database(db_path: str) -> bool:
    return db_path.startswith("file:") and "mode=memory" in db_path


@contextmanager
def get_db_connection(db_path: str):
    """Get a database connection with proper cleanup."""
    conn = open_connection(db_path)
    try:
        yield conn
    finally:
        conn.close()


def open_connection(db_path: str) -> sqlite3.Connection:
    """Open a connection with row access by name and foreign keys enforced."""
    uri = db_path.startswith("file:")
    conn = sqlite3.connect(db_path, timeout=30.0, uri=uri, check_same_thread=False)
    conn.row_factory = sqlite3.Row  # Enable dict-like access
    conn.execute("PRAGMA foreign_keys = ON")

    if not is_memory_database(db_path):
        # WAL allows reads during writes
        conn.execute("PRAGMA journal_mode=WAL")

    return conn


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as fixed-width UTC ISO text so string order is time order."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def get_schema_version(conn) -> int:
    try:
        row = conn.execute("SELECT version FROM schema_version").fetchone()
    except sqlite3.OperationalError:
        return 0
    return row["version"] if row else 0


def init_database(conn) -> None:
    """Create all tables if they do not exist yet."""
    current_version = get_schema_version(conn)
    if current_version >= SCHEMA_VERSION:
        return

    conn.executescript("""
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS artists (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            image TEXT NOT NULL DEFAULT '',
            bio TEXT NOT NULL DEFAULT '',
            genres TEXT NOT NULL DEFAULT '[]', -- JSON array
            social_links TEXT NOT NULL DEFAULT '{}', -- JSON object
            verified INTEGER NOT NULL DEFAULT 0,
            monthly_listeners INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE COLLATE NOCASE,
            username TEXT NOT NULL UNIQUE COLLATE NOCASE,
            password_hash TEXT NOT NULL,
            display_name TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user', -- 'user', 'artist' or 'admin'
            artist_id INTEGER REFERENCES artists (id) ON DELETE SET NULL,
            subscription_tier TEXT NOT NULL DEFAULT 'free',
            subscription_end_date TEXT,
            profile_image TEXT,
            city TEXT,
            favorite_artists TEXT,
            social_media TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS user_preferences (
            user_id INTEGER PRIMARY KEY REFERENCES users (id) ON DELETE CASCADE,
            language TEXT NOT NULL DEFAULT 'en',
            theme TEXT NOT NULL DEFAULT 'dark',
            audio_quality TEXT NOT NULL DEFAULT 'standard',
            autoplay INTEGER NOT NULL DEFAULT 1,
            notifications TEXT NOT NULL DEFAULT '{}'
        );

        CREATE TABLE IF NOT EXISTS albums (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            artist_id INTEGER NOT NULL REFERENCES artists (id) ON DELETE CASCADE,
            artist_name TEXT NOT NULL,
            cover_image TEXT NOT NULL DEFAULT '',
            release_date TEXT NOT NULL,
            genres TEXT NOT NULL DEFAULT '[]',
            album_type TEXT -- 'album', 'single', 'ep'
        );

        CREATE TABLE IF NOT EXISTS tracks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            artist_id INTEGER NOT NULL REFERENCES artists (id) ON DELETE CASCADE,
            artist_name TEXT NOT NULL,
            album_id INTEGER NOT NULL REFERENCES albums (id) ON DELETE CASCADE,
            album_title TEXT NOT NULL,
            duration INTEGER NOT NULL, -- seconds
            audio_url TEXT NOT NULL,
            purchase_price INTEGER, -- cents, NULL if streaming only
            purchase_available INTEGER NOT NULL DEFAULT 0,
            explicit INTEGER NOT NULL DEFAULT 0,
            track_number INTEGER NOT NULL DEFAULT 1,
            featuring TEXT NOT NULL DEFAULT '[]' -- JSON array of artist ids
        );

        CREATE TABLE IF NOT EXISTS user_library_tracks (
            user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            track_id INTEGER NOT NULL REFERENCES tracks (id) ON DELETE CASCADE,
            collection TEXT NOT NULL CHECK (collection IN ('liked', 'purchased', 'downloaded')),
            added_at TEXT NOT NULL,
            PRIMARY KEY (user_id, track_id, collection)
        );

        CREATE TABLE IF NOT EXISTS user_library_albums (
            user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            album_id INTEGER NOT NULL REFERENCES albums (id) ON DELETE CASCADE,
            collection TEXT NOT NULL CHECK (collection IN ('liked', 'purchased')),
            added_at TEXT NOT NULL,
            PRIMARY KEY (user_id, album_id, collection)
        );

        CREATE TABLE IF NOT EXISTS playlists (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            cover_image TEXT,
            is_public INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS playlist_tracks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            playlist_id INTEGER NOT NULL REFERENCES playlists (id) ON DELETE CASCADE,
            track_id INTEGER NOT NULL REFERENCES tracks (id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            added_at TEXT NOT NULL,
            UNIQUE (playlist_id, track_id)
        );

        CREATE TABLE IF NOT EXISTS subscription_plans (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            price INTEGER NOT NULL, -- cents
            interval TEXT NOT NULL CHECK (interval IN ('month', 'year')),
            features TEXT NOT NULL DEFAULT '[]'
        );

        CREATE TABLE IF NOT EXISTS user_subscriptions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            plan_id INTEGER NOT NULL REFERENCES subscription_plans (id),
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            auto_renew INTEGER NOT NULL DEFAULT 1,
            payment_method TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS purchases (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            total_amount INTEGER NOT NULL,
            payment_method TEXT NOT NULL,
            purchase_date TEXT NOT NULL,
            receipt_url TEXT NOT NULL DEFAULT ''
        );

        CREATE TABLE IF NOT EXISTS purchase_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            purchase_id INTEGER NOT NULL REFERENCES purchases (id) ON DELETE CASCADE,
            track_id INTEGER REFERENCES tracks (id) ON DELETE SET NULL,
            album_id INTEGER REFERENCES albums (id) ON DELETE SET NULL,
            item_type TEXT NOT NULL CHECK (item_type IN ('track', 'album')),
            price INTEGER NOT NULL,
            title TEXT NOT NULL,
            artist_name TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS artist_followers (
            user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            artist_id INTEGER NOT NULL REFERENCES artists (id) ON DELETE CASCADE,
            followed_at TEXT NOT NULL,
            PRIMARY KEY (user_id, artist_id)
        );

        CREATE TABLE IF NOT EXISTS analytics_events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            artist_id INTEGER NOT NULL REFERENCES artists (id) ON DELETE CASCADE,
            track_id INTEGER REFERENCES tracks (id) ON DELETE SET NULL,
            album_id INTEGER REFERENCES albums (id) ON DELETE SET NULL,
            user_id INTEGER REFERENCES users (id) ON DELETE SET NULL,
            event_type TEXT NOT NULL CHECK (event_type IN ('stream', 'purchase')),
            amount INTEGER NOT NULL DEFAULT 0, -- cents, purchases only
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS artist_uploads (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            artist_id INTEGER NOT NULL REFERENCES artists (id) ON DELETE CASCADE,
            upload_type TEXT NOT NULL CHECK (upload_type IN ('track', 'album')),
            title TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            details TEXT NOT NULL DEFAULT '{}',
            track_id INTEGER REFERENCES tracks (id) ON DELETE SET NULL,
            album_id INTEGER REFERENCES albums (id) ON DELETE SET NULL,
            error_message TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_playlist_tracks_playlist_id
            ON playlist_tracks (playlist_id, position);
        CREATE INDEX IF NOT EXISTS idx_playlist_tracks_track_id
            ON playlist_tracks (track_id);
        CREATE INDEX IF NOT EXISTS idx_tracks_artist_id ON tracks (artist_id);
        CREATE INDEX IF NOT EXISTS idx_tracks_album_id ON tracks (album_id, track_number);
        CREATE INDEX IF NOT EXISTS idx_albums_artist_id ON albums (artist_id);
        CREATE INDEX IF NOT EXISTS idx_albums_release_date ON albums (release_date);
        CREATE INDEX IF NOT EXISTS idx_analytics_artist
            ON analytics_events (artist_id, created_at);
    """)

    conn.execute("DELETE FROM schema_version")
    conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
    conn.commit()
    logger.info(f"Database schema initialized (version {SCHEMA_VERSION})")
