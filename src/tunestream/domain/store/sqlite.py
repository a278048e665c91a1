"""
SQLite-backed catalog store.

Every public method opens its own short-lived connection. Multi-step writes
run inside an explicit transaction so a failure leaves no partial state.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger

from tunestream.core.database import (
    from_db_timestamp,
    get_db_connection,
    init_database,
    is_memory_database,
    memory_database_uri,
    open_connection,
    to_db_timestamp,
    utc_now,
)
from tunestream.core.exceptions import ConflictError, NotFoundError, ValidationError

from ..library.ordering import insert_track_id, positions_for, remove_track_id
from ..library.search import filter_catalog
from ..models import (
    ALBUM_COLLECTIONS,
    TRACK_COLLECTIONS,
    Album,
    AnalyticsPeriod,
    Artist,
    ArtistAnalytics,
    ArtistUpload,
    NotificationSettings,
    Playlist,
    PlaylistTrack,
    Purchase,
    PurchaseItem,
    SearchResults,
    SubscriptionPlan,
    Track,
    TrackStats,
    User,
    UserPreferences,
    UserSubscription,
)
from .base import CatalogStore, NewPurchaseItem
from .sample_data import seed_subscription_plans

# Writable columns per table. Anything else passed to create/update is rejected.
USER_FIELDS = (
    "email",
    "username",
    "display_name",
    "password_hash",
    "role",
    "artist_id",
    "subscription_tier",
    "subscription_end_date",
    "profile_image",
    "city",
    "favorite_artists",
    "social_media",
)
ARTIST_FIELDS = (
    "name",
    "image",
    "bio",
    "genres",
    "social_links",
    "verified",
    "monthly_listeners",
)
ALBUM_FIELDS = (
    "title",
    "artist_id",
    "artist_name",
    "cover_image",
    "release_date",
    "genres",
    "album_type",
)
TRACK_FIELDS = (
    "title",
    "artist_id",
    "artist_name",
    "album_id",
    "album_title",
    "duration",
    "audio_url",
    "purchase_price",
    "purchase_available",
    "explicit",
    "track_number",
    "featuring",
)
PLAYLIST_FIELDS = ("name", "is_public", "cover_image")
UPLOAD_FIELDS = ("title", "status", "details", "track_id", "album_id", "error_message")
SUBSCRIPTION_FIELDS = ("plan_id", "start_date", "end_date", "auto_renew", "payment_method")

PERIOD_DAYS: dict[str, Optional[int]] = {
    "day": 1,
    "week": 7,
    "month": 30,
    "year": 365,
    "all": None,
}

TOP_TRACKS_LIMIT = 10


def _encode(value: Any) -> Any:
    """Convert a Python value into something sqlite3 can bind."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return json.dumps(value._asdict())
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return value


def _check_fields(fields: dict[str, Any], allowed: tuple[str, ...]) -> None:
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


def _row_to_artist(row) -> Artist:
    return Artist(
        id=row["id"],
        name=row["name"],
        image=row["image"],
        bio=row["bio"],
        genres=json.loads(row["genres"]),
        social_links=json.loads(row["social_links"]),
        verified=bool(row["verified"]),
        monthly_listeners=row["monthly_listeners"],
    )


def _row_to_album(row) -> Album:
    return Album(
        id=row["id"],
        title=row["title"],
        artist_id=row["artist_id"],
        artist_name=row["artist_name"],
        release_date=from_db_timestamp(row["release_date"]),
        cover_image=row["cover_image"],
        genres=json.loads(row["genres"]),
        album_type=row["album_type"],
    )


def _row_to_track(row) -> Track:
    return Track(
        id=row["id"],
        title=row["title"],
        artist_id=row["artist_id"],
        artist_name=row["artist_name"],
        album_id=row["album_id"],
        album_title=row["album_title"],
        duration=row["duration"],
        audio_url=row["audio_url"],
        purchase_price=row["purchase_price"],
        purchase_available=bool(row["purchase_available"]),
        explicit=bool(row["explicit"]),
        track_number=row["track_number"],
        featuring=json.loads(row["featuring"]),
    )


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        username=row["username"],
        display_name=row["display_name"],
        password_hash=row["password_hash"],
        created_at=from_db_timestamp(row["created_at"]),
        role=row["role"],
        artist_id=row["artist_id"],
        subscription_tier=row["subscription_tier"],
        subscription_end_date=from_db_timestamp(row["subscription_end_date"]),
        profile_image=row["profile_image"],
        city=row["city"],
        favorite_artists=row["favorite_artists"],
        social_media=json.loads(row["social_media"]),
    )


def _row_to_plan(row) -> SubscriptionPlan:
    return SubscriptionPlan(
        id=row["id"],
        name=row["name"],
        price=row["price"],
        interval=row["interval"],
        features=json.loads(row["features"]),
    )


def _row_to_subscription(row) -> UserSubscription:
    return UserSubscription(
        id=row["id"],
        user_id=row["user_id"],
        plan_id=row["plan_id"],
        start_date=from_db_timestamp(row["start_date"]),
        end_date=from_db_timestamp(row["end_date"]),
        payment_method=row["payment_method"],
        auto_renew=bool(row["auto_renew"]),
    )


def _row_to_upload(row) -> ArtistUpload:
    return ArtistUpload(
        id=row["id"],
        artist_id=row["artist_id"],
        upload_type=row["upload_type"],
        title=row["title"],
        status=row["status"],
        details=json.loads(row["details"]),
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
        track_id=row["track_id"],
        album_id=row["album_id"],
        error_message=row["error_message"],
    )


class SqliteStore(CatalogStore):
    """CatalogStore backed by a SQLite database file (or shared in-memory database)."""

    def __init__(self, db_path: str, seed_plans: bool = True):
        self._anchor: Optional[sqlite3.Connection] = None

        if db_path == ":memory:":
            db_path = memory_database_uri()
        if is_memory_database(db_path):
            # Shared-cache memory databases vanish when the last connection closes
            self._anchor = open_connection(db_path)
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.db_path = db_path

        with self._connect() as conn:
            init_database(conn)

        if seed_plans:
            seed_subscription_plans(self)

    @contextmanager
    def _connect(self):
        with get_db_connection(self.db_path) as conn:
            yield conn

    def close(self) -> None:
        if self._anchor is not None:
            self._anchor.close()
            self._anchor = None

    # -- Generic helpers -----------------------------------------------------

    @staticmethod
    def _insert(conn, table: str, fields: dict[str, Any]) -> int:
        columns = ", ".join(fields)
        placeholders = ", ".join("?" * len(fields))
        cursor = conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            [_encode(v) for v in fields.values()],
        )
        return cursor.lastrowid

    @staticmethod
    def _update(conn, table: str, row_id: int, changes: dict[str, Any]) -> bool:
        if not changes:
            row = conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (row_id,)).fetchone()
            return row is not None
        assignments = ", ".join(f"{column} = ?" for column in changes)
        cursor = conn.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            [_encode(v) for v in changes.values()] + [row_id],
        )
        return cursor.rowcount > 0

    @staticmethod
    def _fetch_tracks(conn, query: str, params: Iterable[Any] = ()) -> list[Track]:
        return [_row_to_track(row) for row in conn.execute(query, tuple(params)).fetchall()]

    @staticmethod
    def _fetch_albums(conn, query: str, params: Iterable[Any] = ()) -> list[Album]:
        return [_row_to_album(row) for row in conn.execute(query, tuple(params)).fetchall()]

    @staticmethod
    def _require(conn, table: str, row_id: int, entity: str) -> sqlite3.Row:
        row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
        if row is None:
            raise NotFoundError(entity, row_id)
        return row

    # -- Users -------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return _row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE username = ? COLLATE NOCASE", (username,)
            ).fetchone()
            return _row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ? COLLATE NOCASE", (email,)
            ).fetchone()
            return _row_to_user(row) if row else None

    def create_user(
        self,
        email: str,
        username: str,
        display_name: str,
        password_hash: str,
        role: str = "user",
        artist_id: Optional[int] = None,
    ) -> User:
        with self._connect() as conn:
            try:
                user_id = self._insert(
                    conn,
                    "users",
                    {
                        "email": email,
                        "username": username,
                        "display_name": display_name,
                        "password_hash": password_hash,
                        "role": role,
                        "artist_id": artist_id,
                        "created_at": utc_now(),
                    },
                )
                self._insert(
                    conn,
                    "user_preferences",
                    {
                        "user_id": user_id,
                        "notifications": NotificationSettings(),
                    },
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                if "UNIQUE constraint failed" in str(e):
                    field = "Username" if "username" in str(e) else "Email"
                    raise ConflictError(f"{field} already exists")
                raise

        logger.info(f"Created user {user_id} ({username}, role={role})")
        return self.get_user(user_id)

    def update_user(self, user_id: int, **changes: Any) -> Optional[User]:
        _check_fields(changes, USER_FIELDS)
        with self._connect() as conn:
            try:
                updated = self._update(conn, "users", user_id, changes)
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                if "UNIQUE constraint failed" in str(e):
                    raise ConflictError("Username or email already exists")
                raise
        return self.get_user(user_id) if updated else None

    # -- Preferences -------------------------------------------------------

    def get_user_preferences(self, user_id: int) -> Optional[UserPreferences]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM user_preferences WHERE user_id = ?", (user_id,)
            ).fetchone()
        if row is None:
            return None

        stored = json.loads(row["notifications"])
        notifications = NotificationSettings(
            **{k: bool(v) for k, v in stored.items() if k in NotificationSettings._fields}
        )
        return UserPreferences(
            language=row["language"],
            theme=row["theme"],
            audio_quality=row["audio_quality"],
            autoplay=bool(row["autoplay"]),
            notifications=notifications,
        )

    def save_user_preferences(
        self, user_id: int, preferences: UserPreferences
    ) -> UserPreferences:
        with self._connect() as conn:
            self._require(conn, "users", user_id, "user")
            conn.execute(
                """
                INSERT OR REPLACE INTO user_preferences
                    (user_id, language, theme, audio_quality, autoplay, notifications)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    preferences.language,
                    preferences.theme,
                    preferences.audio_quality,
                    int(preferences.autoplay),
                    _encode(preferences.notifications),
                ),
            )
            conn.commit()
        return preferences

    # -- Library -----------------------------------------------------------

    def _library_tracks(self, user_id: int, collection: str) -> list[Track]:
        with self._connect() as conn:
            return self._fetch_tracks(
                conn,
                """
                SELECT t.* FROM user_library_tracks l
                JOIN tracks t ON t.id = l.track_id
                WHERE l.user_id = ? AND l.collection = ?
                ORDER BY l.added_at, t.id
                """,
                (user_id, collection),
            )

    def _library_albums(self, user_id: int, collection: str) -> list[Album]:
        with self._connect() as conn:
            return self._fetch_albums(
                conn,
                """
                SELECT a.* FROM user_library_albums l
                JOIN albums a ON a.id = l.album_id
                WHERE l.user_id = ? AND l.collection = ?
                ORDER BY l.added_at, a.id
                """,
                (user_id, collection),
            )

    def get_liked_tracks(self, user_id: int) -> list[Track]:
        return self._library_tracks(user_id, "liked")

    def get_liked_albums(self, user_id: int) -> list[Album]:
        return self._library_albums(user_id, "liked")

    def get_downloaded_tracks(self, user_id: int) -> list[Track]:
        return self._library_tracks(user_id, "downloaded")

    def get_purchased_tracks(self, user_id: int) -> list[Track]:
        return self._library_tracks(user_id, "purchased")

    def get_purchased_albums(self, user_id: int) -> list[Album]:
        return self._library_albums(user_id, "purchased")

    def add_track_to_library(
        self,
        user_id: int,
        track_id: int,
        liked: bool = False,
        purchased: bool = False,
        downloaded: bool = False,
    ) -> None:
        flags = {"liked": liked, "purchased": purchased, "downloaded": downloaded}
        with self._connect() as conn:
            self._require(conn, "tracks", track_id, "track")
            now = to_db_timestamp(utc_now())
            for collection, enabled in flags.items():
                if enabled:
                    conn.execute(
                        """
                        INSERT OR IGNORE INTO user_library_tracks
                            (user_id, track_id, collection, added_at)
                        VALUES (?, ?, ?, ?)
                        """,
                        (user_id, track_id, collection, now),
                    )
            conn.commit()

    def add_album_to_library(
        self, user_id: int, album_id: int, liked: bool = False, purchased: bool = False
    ) -> None:
        flags = {"liked": liked, "purchased": purchased}
        with self._connect() as conn:
            self._require(conn, "albums", album_id, "album")
            now = to_db_timestamp(utc_now())
            for collection, enabled in flags.items():
                if enabled:
                    conn.execute(
                        """
                        INSERT OR IGNORE INTO user_library_albums
                            (user_id, album_id, collection, added_at)
                        VALUES (?, ?, ?, ?)
                        """,
                        (user_id, album_id, collection, now),
                    )
            conn.commit()

    def remove_track_from_library(
        self, user_id: int, track_id: int, collection: Optional[str] = None
    ) -> None:
        if collection is not None and collection not in TRACK_COLLECTIONS:
            raise ValidationError(f"Invalid library collection: {collection}")
        with self._connect() as conn:
            if collection is None:
                conn.execute(
                    "DELETE FROM user_library_tracks WHERE user_id = ? AND track_id = ?",
                    (user_id, track_id),
                )
            else:
                conn.execute(
                    """
                    DELETE FROM user_library_tracks
                    WHERE user_id = ? AND track_id = ? AND collection = ?
                    """,
                    (user_id, track_id, collection),
                )
            conn.commit()

    def remove_album_from_library(
        self, user_id: int, album_id: int, collection: Optional[str] = None
    ) -> None:
        if collection is not None and collection not in ALBUM_COLLECTIONS:
            raise ValidationError(f"Invalid library collection: {collection}")
        with self._connect() as conn:
            if collection is None:
                conn.execute(
                    "DELETE FROM user_library_albums WHERE user_id = ? AND album_id = ?",
                    (user_id, album_id),
                )
            else:
                conn.execute(
                    """
                    DELETE FROM user_library_albums
                    WHERE user_id = ? AND album_id = ? AND collection = ?
                    """,
                    (user_id, album_id, collection),
                )
            conn.commit()

    def has_purchased_track(self, user_id: int, track_id: int) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT 1 FROM user_library_tracks
                WHERE user_id = ? AND track_id = ? AND collection = 'purchased'
                """,
                (user_id, track_id),
            ).fetchone()
            return row is not None

    # -- Playlists ---------------------------------------------------------

    def _load_playlist(self, conn, row) -> Playlist:
        entries = conn.execute(
            """
            SELECT pt.id AS entry_id, pt.position, pt.added_at AS entry_added_at, t.*
            FROM playlist_tracks pt
            JOIN tracks t ON t.id = pt.track_id
            WHERE pt.playlist_id = ?
            ORDER BY pt.position
            """,
            (row["id"],),
        ).fetchall()

        tracks = [
            PlaylistTrack(
                id=entry["entry_id"],
                playlist_id=row["id"],
                track_id=entry["id"],
                position=entry["position"],
                added_at=from_db_timestamp(entry["entry_added_at"]),
                track=_row_to_track(entry),
            )
            for entry in entries
        ]
        return Playlist(
            id=row["id"],
            name=row["name"],
            user_id=row["user_id"],
            created_at=from_db_timestamp(row["created_at"]),
            is_public=bool(row["is_public"]),
            cover_image=row["cover_image"],
            tracks=tracks,
        )

    @staticmethod
    def _playlist_order(conn, playlist_id: int) -> list[int]:
        cursor = conn.execute(
            "SELECT track_id FROM playlist_tracks WHERE playlist_id = ? ORDER BY position",
            (playlist_id,),
        )
        return [row["track_id"] for row in cursor.fetchall()]

    @staticmethod
    def _write_positions(conn, playlist_id: int, order: list[int]) -> None:
        for track_id, position in positions_for(order):
            conn.execute(
                "UPDATE playlist_tracks SET position = ? WHERE playlist_id = ? AND track_id = ?",
                (position, playlist_id, track_id),
            )

    def get_user_playlists(self, user_id: int) -> list[Playlist]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM playlists WHERE user_id = ? ORDER BY id", (user_id,)
            ).fetchall()
            return [self._load_playlist(conn, row) for row in rows]

    def get_playlist(self, playlist_id: int) -> Optional[Playlist]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM playlists WHERE id = ?", (playlist_id,)
            ).fetchone()
            return self._load_playlist(conn, row) if row else None

    def create_playlist(
        self,
        user_id: int,
        name: str,
        is_public: bool = False,
        cover_image: Optional[str] = None,
    ) -> Playlist:
        with self._connect() as conn:
            self._require(conn, "users", user_id, "user")
            playlist_id = self._insert(
                conn,
                "playlists",
                {
                    "name": name,
                    "user_id": user_id,
                    "is_public": is_public,
                    "cover_image": cover_image,
                    "created_at": utc_now(),
                },
            )
            conn.commit()

        logger.info(f"Created playlist {playlist_id} '{name}' for user {user_id}")
        return self.get_playlist(playlist_id)

    def update_playlist(self, playlist_id: int, **changes: Any) -> Optional[Playlist]:
        _check_fields(changes, PLAYLIST_FIELDS)
        with self._connect() as conn:
            updated = self._update(conn, "playlists", playlist_id, changes)
            conn.commit()
        return self.get_playlist(playlist_id) if updated else None

    def delete_playlist(self, playlist_id: int) -> bool:
        with self._connect() as conn:
            # CASCADE removes playlist_tracks
            cursor = conn.execute("DELETE FROM playlists WHERE id = ?", (playlist_id,))
            conn.commit()
            return cursor.rowcount > 0

    def add_track_to_playlist(
        self, playlist_id: int, track_id: int, position: int = 0
    ) -> Playlist:
        with self._connect() as conn:
            self._require(conn, "playlists", playlist_id, "playlist")
            self._require(conn, "tracks", track_id, "track")

            order = self._playlist_order(conn, playlist_id)
            new_order = insert_track_id(order, track_id, position)

            # Begin explicit transaction for atomicity
            conn.execute("BEGIN")
            try:
                if track_id not in order:
                    self._insert(
                        conn,
                        "playlist_tracks",
                        {
                            "playlist_id": playlist_id,
                            "track_id": track_id,
                            "position": new_order.index(track_id),
                            "added_at": utc_now(),
                        },
                    )
                self._write_positions(conn, playlist_id, new_order)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return self.get_playlist(playlist_id)

    def remove_track_from_playlist(self, playlist_id: int, track_id: int) -> Playlist:
        with self._connect() as conn:
            self._require(conn, "playlists", playlist_id, "playlist")

            order = self._playlist_order(conn, playlist_id)
            new_order = remove_track_id(order, track_id)

            conn.execute("BEGIN")
            try:
                conn.execute(
                    "DELETE FROM playlist_tracks WHERE playlist_id = ? AND track_id = ?",
                    (playlist_id, track_id),
                )
                self._write_positions(conn, playlist_id, new_order)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return self.get_playlist(playlist_id)

    def _renumber_playlists(self, conn, playlist_ids: Iterable[int]) -> None:
        for playlist_id in playlist_ids:
            self._write_positions(conn, playlist_id, self._playlist_order(conn, playlist_id))

    @staticmethod
    def _playlists_containing(conn, where: str, params: tuple) -> list[int]:
        cursor = conn.execute(
            f"""
            SELECT DISTINCT pt.playlist_id FROM playlist_tracks pt
            JOIN tracks t ON t.id = pt.track_id
            WHERE {where}
            """,
            params,
        )
        return [row["playlist_id"] for row in cursor.fetchall()]

    # -- Catalog: artists ----------------------------------------------------

    def list_artists(self, limit: int = 50, offset: int = 0) -> list[Artist]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM artists ORDER BY id LIMIT ? OFFSET ?", (limit, offset)
            ).fetchall()
            return [_row_to_artist(row) for row in rows]

    def get_artist(self, artist_id: int) -> Optional[Artist]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM artists WHERE id = ?", (artist_id,)).fetchone()
            return _row_to_artist(row) if row else None

    def create_artist(self, **fields: Any) -> Artist:
        _check_fields(fields, ARTIST_FIELDS)
        if not fields.get("name"):
            raise ValidationError("Artist name is required")
        with self._connect() as conn:
            artist_id = self._insert(conn, "artists", fields)
            conn.commit()
        return self.get_artist(artist_id)

    def update_artist(self, artist_id: int, **changes: Any) -> Optional[Artist]:
        _check_fields(changes, ARTIST_FIELDS)
        with self._connect() as conn:
            conn.execute("BEGIN")
            try:
                updated = self._update(conn, "artists", artist_id, changes)
                if updated and "name" in changes:
                    # Keep denormalized artist names in sync
                    conn.execute(
                        "UPDATE albums SET artist_name = ? WHERE artist_id = ?",
                        (changes["name"], artist_id),
                    )
                    conn.execute(
                        "UPDATE tracks SET artist_name = ? WHERE artist_id = ?",
                        (changes["name"], artist_id),
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        return self.get_artist(artist_id) if updated else None

    def delete_artist(self, artist_id: int) -> bool:
        with self._connect() as conn:
            conn.execute("BEGIN")
            try:
                affected = self._playlists_containing(conn, "t.artist_id = ?", (artist_id,))
                # CASCADE removes albums, tracks and their playlist entries
                cursor = conn.execute("DELETE FROM artists WHERE id = ?", (artist_id,))
                self._renumber_playlists(conn, affected)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return cursor.rowcount > 0

    # -- Catalog: albums -----------------------------------------------------

    def list_albums(self, limit: int = 50, offset: int = 0) -> list[Album]:
        with self._connect() as conn:
            return self._fetch_albums(
                conn, "SELECT * FROM albums ORDER BY id LIMIT ? OFFSET ?", (limit, offset)
            )

    def get_album(self, album_id: int) -> Optional[Album]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM albums WHERE id = ?", (album_id,)).fetchone()
            return _row_to_album(row) if row else None

    def create_album(self, **fields: Any) -> Album:
        _check_fields(fields, ALBUM_FIELDS)
        if not fields.get("title"):
            raise ValidationError("Album title is required")
        with self._connect() as conn:
            artist = self._require(conn, "artists", fields.get("artist_id"), "artist")
            fields.setdefault("artist_name", artist["name"])
            fields.setdefault("release_date", utc_now())
            album_id = self._insert(conn, "albums", fields)
            conn.commit()
        return self.get_album(album_id)

    def update_album(self, album_id: int, **changes: Any) -> Optional[Album]:
        _check_fields(changes, ALBUM_FIELDS)
        with self._connect() as conn:
            conn.execute("BEGIN")
            try:
                updated = self._update(conn, "albums", album_id, changes)
                if updated and "title" in changes:
                    conn.execute(
                        "UPDATE tracks SET album_title = ? WHERE album_id = ?",
                        (changes["title"], album_id),
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        return self.get_album(album_id) if updated else None

    def delete_album(self, album_id: int) -> bool:
        with self._connect() as conn:
            conn.execute("BEGIN")
            try:
                affected = self._playlists_containing(conn, "t.album_id = ?", (album_id,))
                cursor = conn.execute("DELETE FROM albums WHERE id = ?", (album_id,))
                self._renumber_playlists(conn, affected)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return cursor.rowcount > 0

    # -- Catalog: tracks -----------------------------------------------------

    def list_tracks(self, limit: int = 50, offset: int = 0) -> list[Track]:
        with self._connect() as conn:
            return self._fetch_tracks(
                conn, "SELECT * FROM tracks ORDER BY id LIMIT ? OFFSET ?", (limit, offset)
            )

    def get_track(self, track_id: int) -> Optional[Track]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tracks WHERE id = ?", (track_id,)).fetchone()
            return _row_to_track(row) if row else None

    def get_tracks(self, track_ids: Iterable[int]) -> list[Track]:
        track_ids = list(track_ids)
        if not track_ids:
            return []

        placeholders = ",".join("?" * len(track_ids))
        with self._connect() as conn:
            tracks = self._fetch_tracks(
                conn, f"SELECT * FROM tracks WHERE id IN ({placeholders})", track_ids
            )

        # Preserve requested order
        tracks_by_id = {track.id: track for track in tracks}
        return [tracks_by_id[tid] for tid in track_ids if tid in tracks_by_id]

    def create_track(self, **fields: Any) -> Track:
        _check_fields(fields, TRACK_FIELDS)
        for required in ("title", "duration", "audio_url"):
            if fields.get(required) in (None, ""):
                raise ValidationError(f"Track {required} is required")
        with self._connect() as conn:
            artist = self._require(conn, "artists", fields.get("artist_id"), "artist")
            album = self._require(conn, "albums", fields.get("album_id"), "album")
            fields.setdefault("artist_name", artist["name"])
            fields.setdefault("album_title", album["title"])
            track_id = self._insert(conn, "tracks", fields)
            conn.commit()
        return self.get_track(track_id)

    def update_track(self, track_id: int, **changes: Any) -> Optional[Track]:
        _check_fields(changes, TRACK_FIELDS)
        with self._connect() as conn:
            updated = self._update(conn, "tracks", track_id, changes)
            conn.commit()
        return self.get_track(track_id) if updated else None

    def delete_track(self, track_id: int) -> bool:
        with self._connect() as conn:
            conn.execute("BEGIN")
            try:
                affected = self._playlists_containing(conn, "t.id = ?", (track_id,))
                cursor = conn.execute("DELETE FROM tracks WHERE id = ?", (track_id,))
                self._renumber_playlists(conn, affected)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return cursor.rowcount > 0

    def get_new_releases(self, limit: int = 10) -> list[Track]:
        with self._connect() as conn:
            return self._fetch_tracks(
                conn,
                """
                SELECT t.* FROM tracks t
                JOIN albums a ON a.id = t.album_id
                ORDER BY a.release_date DESC, t.track_number ASC, t.id ASC
                LIMIT ?
                """,
                (limit,),
            )

    def get_artist_tracks(self, artist_id: int) -> list[Track]:
        with self._connect() as conn:
            return self._fetch_tracks(
                conn, "SELECT * FROM tracks WHERE artist_id = ? ORDER BY id", (artist_id,)
            )

    def get_artist_albums(self, artist_id: int) -> list[Album]:
        with self._connect() as conn:
            return self._fetch_albums(
                conn,
                "SELECT * FROM albums WHERE artist_id = ? ORDER BY release_date DESC, id",
                (artist_id,),
            )

    def get_album_tracks(self, album_id: int) -> list[Track]:
        with self._connect() as conn:
            return self._fetch_tracks(
                conn,
                "SELECT * FROM tracks WHERE album_id = ? ORDER BY track_number, id",
                (album_id,),
            )

    def search(self, query: str) -> SearchResults:
        with self._connect() as conn:
            tracks = self._fetch_tracks(conn, "SELECT * FROM tracks ORDER BY id")
            albums = self._fetch_albums(conn, "SELECT * FROM albums ORDER BY id")
            artists = [
                _row_to_artist(row)
                for row in conn.execute("SELECT * FROM artists ORDER BY id").fetchall()
            ]
        return filter_catalog(query, tracks, albums, artists)

    # -- Followers and analytics ---------------------------------------------

    def follow_artist(self, user_id: int, artist_id: int) -> None:
        with self._connect() as conn:
            self._require(conn, "artists", artist_id, "artist")
            conn.execute(
                """
                INSERT OR IGNORE INTO artist_followers (user_id, artist_id, followed_at)
                VALUES (?, ?, ?)
                """,
                (user_id, artist_id, to_db_timestamp(utc_now())),
            )
            conn.commit()

    def unfollow_artist(self, user_id: int, artist_id: int) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM artist_followers WHERE user_id = ? AND artist_id = ?",
                (user_id, artist_id),
            )
            conn.commit()

    def is_following(self, user_id: int, artist_id: int) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM artist_followers WHERE user_id = ? AND artist_id = ?",
                (user_id, artist_id),
            ).fetchone()
            return row is not None

    def get_follower_count(self, artist_id: int) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS count FROM artist_followers WHERE artist_id = ?",
                (artist_id,),
            ).fetchone()
            return row["count"]

    def record_stream(self, track_id: int, user_id: Optional[int] = None) -> None:
        with self._connect() as conn:
            track = self._require(conn, "tracks", track_id, "track")
            self._insert(
                conn,
                "analytics_events",
                {
                    "artist_id": track["artist_id"],
                    "track_id": track_id,
                    "album_id": track["album_id"],
                    "user_id": user_id,
                    "event_type": "stream",
                    "created_at": utc_now(),
                },
            )
            conn.commit()

    def record_purchase_event(
        self,
        artist_id: int,
        amount: int,
        track_id: Optional[int] = None,
        album_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> None:
        with self._connect() as conn:
            self._insert(
                conn,
                "analytics_events",
                {
                    "artist_id": artist_id,
                    "track_id": track_id,
                    "album_id": album_id,
                    "user_id": user_id,
                    "event_type": "purchase",
                    "amount": amount,
                    "created_at": utc_now(),
                },
            )
            conn.commit()

    def get_artist_analytics(
        self,
        artist_id: int,
        period: AnalyticsPeriod = "all",
        now: Optional[datetime] = None,
    ) -> ArtistAnalytics:
        if period not in PERIOD_DAYS:
            raise ValidationError(f"Invalid analytics period: {period}")

        days = PERIOD_DAYS[period]
        since = None
        if days is not None:
            since = to_db_timestamp((now or utc_now()) - timedelta(days=days))

        time_filter = " AND e.created_at >= ?" if since else ""
        params: tuple = (artist_id, since) if since else (artist_id,)

        with self._connect() as conn:
            totals = conn.execute(
                f"""
                SELECT
                    COALESCE(SUM(e.event_type = 'stream'), 0) AS streams,
                    COALESCE(SUM(e.event_type = 'purchase'), 0) AS purchases,
                    COALESCE(SUM(CASE WHEN e.event_type = 'purchase' THEN e.amount END), 0) AS revenue
                FROM analytics_events e
                WHERE e.artist_id = ?{time_filter}
                """,
                params,
            ).fetchone()

            top_rows = conn.execute(
                f"""
                SELECT
                    t.id AS track_id,
                    t.title,
                    SUM(e.event_type = 'stream') AS streams,
                    SUM(e.event_type = 'purchase') AS purchases
                FROM analytics_events e
                JOIN tracks t ON t.id = e.track_id
                WHERE e.artist_id = ?{time_filter}
                GROUP BY t.id
                ORDER BY streams DESC, purchases DESC, t.id ASC
                LIMIT ?
                """,
                params + (TOP_TRACKS_LIMIT,),
            ).fetchall()

            followers = conn.execute(
                "SELECT COUNT(*) AS count FROM artist_followers WHERE artist_id = ?",
                (artist_id,),
            ).fetchone()["count"]

        return ArtistAnalytics(
            artist_id=artist_id,
            period=period,
            stream_count=totals["streams"],
            purchase_count=totals["purchases"],
            revenue=totals["revenue"],
            follower_count=followers,
            top_tracks=[
                TrackStats(
                    track_id=row["track_id"],
                    title=row["title"],
                    stream_count=row["streams"],
                    purchase_count=row["purchases"],
                )
                for row in top_rows
            ],
        )

    # -- Uploads -----------------------------------------------------------

    def create_upload(
        self, artist_id: int, upload_type: str, title: str, details: dict[str, Any]
    ) -> ArtistUpload:
        now = utc_now()
        with self._connect() as conn:
            self._require(conn, "artists", artist_id, "artist")
            upload_id = self._insert(
                conn,
                "artist_uploads",
                {
                    "artist_id": artist_id,
                    "upload_type": upload_type,
                    "title": title,
                    "status": "pending",
                    "details": details,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            conn.commit()
        return self.get_upload(upload_id)

    def update_upload(self, upload_id: int, **changes: Any) -> Optional[ArtistUpload]:
        _check_fields(changes, UPLOAD_FIELDS)
        changes["updated_at"] = utc_now()
        with self._connect() as conn:
            updated = self._update(conn, "artist_uploads", upload_id, changes)
            conn.commit()
        return self.get_upload(upload_id) if updated else None

    def get_upload(self, upload_id: int) -> Optional[ArtistUpload]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM artist_uploads WHERE id = ?", (upload_id,)
            ).fetchone()
            return _row_to_upload(row) if row else None

    def get_artist_uploads(self, artist_id: int) -> list[ArtistUpload]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM artist_uploads WHERE artist_id = ? ORDER BY created_at DESC, id DESC",
                (artist_id,),
            ).fetchall()
            return [_row_to_upload(row) for row in rows]

    # -- Subscriptions -----------------------------------------------------

    def get_subscription_plans(self) -> list[SubscriptionPlan]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM subscription_plans ORDER BY price, id").fetchall()
            return [_row_to_plan(row) for row in rows]

    def get_subscription_plan(self, plan_id: int) -> Optional[SubscriptionPlan]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM subscription_plans WHERE id = ?", (plan_id,)
            ).fetchone()
            return _row_to_plan(row) if row else None

    def create_subscription_plan(
        self, name: str, price: int, interval: str, features: list[str]
    ) -> SubscriptionPlan:
        with self._connect() as conn:
            plan_id = self._insert(
                conn,
                "subscription_plans",
                {"name": name, "price": price, "interval": interval, "features": features},
            )
            conn.commit()
        return self.get_subscription_plan(plan_id)

    def get_user_subscription(self, user_id: int) -> Optional[UserSubscription]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM user_subscriptions
                WHERE user_id = ?
                ORDER BY start_date DESC, id DESC
                LIMIT 1
                """,
                (user_id,),
            ).fetchone()
            return _row_to_subscription(row) if row else None

    @staticmethod
    def _sync_user_tier(conn, user_id: int, plan_row, end_date: Optional[datetime]) -> None:
        """Mirror the subscription onto the user's tier and end date."""
        changes: dict[str, Any] = {}
        if plan_row is not None:
            changes["subscription_tier"] = plan_row["name"].lower()
        if end_date is not None:
            changes["subscription_end_date"] = end_date
        if changes:
            SqliteStore._update(conn, "users", user_id, changes)

    def create_user_subscription(
        self,
        user_id: int,
        plan_id: int,
        start_date: datetime,
        end_date: datetime,
        payment_method: str,
        auto_renew: bool = True,
    ) -> UserSubscription:
        with self._connect() as conn:
            self._require(conn, "users", user_id, "user")
            plan = self._require(conn, "subscription_plans", plan_id, "subscription plan")

            conn.execute("BEGIN")
            try:
                subscription_id = self._insert(
                    conn,
                    "user_subscriptions",
                    {
                        "user_id": user_id,
                        "plan_id": plan_id,
                        "start_date": start_date,
                        "end_date": end_date,
                        "auto_renew": auto_renew,
                        "payment_method": payment_method,
                    },
                )
                self._sync_user_tier(conn, user_id, plan, end_date)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

            row = conn.execute(
                "SELECT * FROM user_subscriptions WHERE id = ?", (subscription_id,)
            ).fetchone()

        logger.info(f"User {user_id} subscribed to plan {plan['name']} until {end_date}")
        return _row_to_subscription(row)

    def update_user_subscription(
        self, subscription_id: int, **changes: Any
    ) -> Optional[UserSubscription]:
        _check_fields(changes, SUBSCRIPTION_FIELDS)
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM user_subscriptions WHERE id = ?", (subscription_id,)
            ).fetchone()
            if row is None:
                return None

            plan = None
            if "plan_id" in changes:
                plan = self._require(
                    conn, "subscription_plans", changes["plan_id"], "subscription plan"
                )

            conn.execute("BEGIN")
            try:
                self._update(conn, "user_subscriptions", subscription_id, changes)
                self._sync_user_tier(conn, row["user_id"], plan, changes.get("end_date"))
                conn.commit()
            except Exception:
                conn.rollback()
                raise

            row = conn.execute(
                "SELECT * FROM user_subscriptions WHERE id = ?", (subscription_id,)
            ).fetchone()
            return _row_to_subscription(row)

    # -- Purchases ---------------------------------------------------------

    def _load_purchase(self, conn, row) -> Purchase:
        items = [
            PurchaseItem(
                id=item["id"],
                purchase_id=item["purchase_id"],
                item_type=item["item_type"],
                price=item["price"],
                title=item["title"],
                artist_name=item["artist_name"],
                track_id=item["track_id"],
                album_id=item["album_id"],
            )
            for item in conn.execute(
                "SELECT * FROM purchase_items WHERE purchase_id = ? ORDER BY id",
                (row["id"],),
            ).fetchall()
        ]
        return Purchase(
            id=row["id"],
            user_id=row["user_id"],
            total_amount=row["total_amount"],
            payment_method=row["payment_method"],
            purchase_date=from_db_timestamp(row["purchase_date"]),
            receipt_url=row["receipt_url"],
            items=items,
        )

    def create_purchase(
        self, user_id: int, items: list[NewPurchaseItem], payment_method: str
    ) -> Purchase:
        if not items:
            raise ValidationError("A purchase needs at least one item")

        with self._connect() as conn:
            self._require(conn, "users", user_id, "user")

            conn.execute("BEGIN")
            try:
                purchase_id = self._insert(
                    conn,
                    "purchases",
                    {
                        "user_id": user_id,
                        "total_amount": sum(item.price for item in items),
                        "payment_method": payment_method,
                        "purchase_date": utc_now(),
                    },
                )
                conn.execute(
                    "UPDATE purchases SET receipt_url = ? WHERE id = ?",
                    (f"/api/me/purchases/{purchase_id}", purchase_id),
                )
                for item in items:
                    self._insert(
                        conn,
                        "purchase_items",
                        {"purchase_id": purchase_id, **item._asdict()},
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

            row = conn.execute("SELECT * FROM purchases WHERE id = ?", (purchase_id,)).fetchone()
            return self._load_purchase(conn, row)

    def get_user_purchases(self, user_id: int) -> list[Purchase]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM purchases WHERE user_id = ? ORDER BY purchase_date DESC, id DESC",
                (user_id,),
            ).fetchall()
            return [self._load_purchase(conn, row) for row in rows]
