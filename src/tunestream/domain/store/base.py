"""
Catalog/Library store contract.

The web layer receives a ``CatalogStore`` through dependency injection and
never touches a database directly. Writes are visible to subsequent reads
immediately.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, Literal, NamedTuple, Optional

from ..models import (
    Album,
    AnalyticsPeriod,
    Artist,
    ArtistAnalytics,
    ArtistUpload,
    Playlist,
    Purchase,
    SearchResults,
    SubscriptionPlan,
    Track,
    User,
    UserPreferences,
    UserSubscription,
)


class NewPurchaseItem(NamedTuple):
    """Line item handed to ``create_purchase``."""

    item_type: Literal["track", "album"]
    price: int
    title: str
    artist_name: str
    track_id: Optional[int] = None
    album_id: Optional[int] = None


class CatalogStore(ABC):
    """Repository interface for users, catalog, libraries and artist data."""

    # -- Users -------------------------------------------------------------

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(
        self,
        email: str,
        username: str,
        display_name: str,
        password_hash: str,
        role: str = "user",
        artist_id: Optional[int] = None,
    ) -> User: ...

    @abstractmethod
    def update_user(self, user_id: int, **changes: Any) -> Optional[User]: ...

    # -- Preferences -------------------------------------------------------

    @abstractmethod
    def get_user_preferences(self, user_id: int) -> Optional[UserPreferences]: ...

    @abstractmethod
    def save_user_preferences(
        self, user_id: int, preferences: UserPreferences
    ) -> UserPreferences: ...

    # -- Library -----------------------------------------------------------

    @abstractmethod
    def get_liked_tracks(self, user_id: int) -> list[Track]: ...

    @abstractmethod
    def get_liked_albums(self, user_id: int) -> list[Album]: ...

    @abstractmethod
    def get_downloaded_tracks(self, user_id: int) -> list[Track]: ...

    @abstractmethod
    def get_purchased_tracks(self, user_id: int) -> list[Track]: ...

    @abstractmethod
    def get_purchased_albums(self, user_id: int) -> list[Album]: ...

    @abstractmethod
    def add_track_to_library(
        self,
        user_id: int,
        track_id: int,
        liked: bool = False,
        purchased: bool = False,
        downloaded: bool = False,
    ) -> None: ...

    @abstractmethod
    def add_album_to_library(
        self, user_id: int, album_id: int, liked: bool = False, purchased: bool = False
    ) -> None: ...

    @abstractmethod
    def remove_track_from_library(
        self, user_id: int, track_id: int, collection: Optional[str] = None
    ) -> None: ...

    @abstractmethod
    def remove_album_from_library(
        self, user_id: int, album_id: int, collection: Optional[str] = None
    ) -> None: ...

    @abstractmethod
    def has_purchased_track(self, user_id: int, track_id: int) -> bool: ...

    # -- Playlists ---------------------------------------------------------

    @abstractmethod
    def get_user_playlists(self, user_id: int) -> list[Playlist]: ...

    @abstractmethod
    def get_playlist(self, playlist_id: int) -> Optional[Playlist]: ...

    @abstractmethod
    def create_playlist(
        self,
        user_id: int,
        name: str,
        is_public: bool = False,
        cover_image: Optional[str] = None,
    ) -> Playlist: ...

    @abstractmethod
    def update_playlist(self, playlist_id: int, **changes: Any) -> Optional[Playlist]: ...

    @abstractmethod
    def delete_playlist(self, playlist_id: int) -> bool: ...

    @abstractmethod
    def add_track_to_playlist(
        self, playlist_id: int, track_id: int, position: int = 0
    ) -> Playlist: ...

    @abstractmethod
    def remove_track_from_playlist(self, playlist_id: int, track_id: int) -> Playlist: ...

    # -- Catalog -----------------------------------------------------------

    @abstractmethod
    def list_tracks(self, limit: int = 50, offset: int = 0) -> list[Track]: ...

    @abstractmethod
    def get_track(self, track_id: int) -> Optional[Track]: ...

    @abstractmethod
    def get_tracks(self, track_ids: Iterable[int]) -> list[Track]:
        """Fetch several tracks, preserving the order of ``track_ids``."""

    @abstractmethod
    def create_track(self, **fields: Any) -> Track: ...

    @abstractmethod
    def update_track(self, track_id: int, **changes: Any) -> Optional[Track]: ...

    @abstractmethod
    def delete_track(self, track_id: int) -> bool: ...

    @abstractmethod
    def list_albums(self, limit: int = 50, offset: int = 0) -> list[Album]: ...

    @abstractmethod
    def get_album(self, album_id: int) -> Optional[Album]: ...

    @abstractmethod
    def create_album(self, **fields: Any) -> Album: ...

    @abstractmethod
    def update_album(self, album_id: int, **changes: Any) -> Optional[Album]: ...

    @abstractmethod
    def delete_album(self, album_id: int) -> bool: ...

    @abstractmethod
    def list_artists(self, limit: int = 50, offset: int = 0) -> list[Artist]: ...

    @abstractmethod
    def get_artist(self, artist_id: int) -> Optional[Artist]: ...

    @abstractmethod
    def create_artist(self, **fields: Any) -> Artist: ...

    @abstractmethod
    def update_artist(self, artist_id: int, **changes: Any) -> Optional[Artist]: ...

    @abstractmethod
    def delete_artist(self, artist_id: int) -> bool: ...

    @abstractmethod
    def get_new_releases(self, limit: int = 10) -> list[Track]: ...

    @abstractmethod
    def get_artist_tracks(self, artist_id: int) -> list[Track]: ...

    @abstractmethod
    def get_artist_albums(self, artist_id: int) -> list[Album]: ...

    @abstractmethod
    def get_album_tracks(self, album_id: int) -> list[Track]: ...

    @abstractmethod
    def search(self, query: str) -> SearchResults: ...

    # -- Followers and analytics ---------------------------------------------

    @abstractmethod
    def follow_artist(self, user_id: int, artist_id: int) -> None: ...

    @abstractmethod
    def unfollow_artist(self, user_id: int, artist_id: int) -> None: ...

    @abstractmethod
    def is_following(self, user_id: int, artist_id: int) -> bool: ...

    @abstractmethod
    def get_follower_count(self, artist_id: int) -> int: ...

    @abstractmethod
    def record_stream(self, track_id: int, user_id: Optional[int] = None) -> None: ...

    @abstractmethod
    def record_purchase_event(
        self,
        artist_id: int,
        amount: int,
        track_id: Optional[int] = None,
        album_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> None: ...

    @abstractmethod
    def get_artist_analytics(
        self, artist_id: int, period: AnalyticsPeriod = "all", now: Optional[datetime] = None
    ) -> ArtistAnalytics: ...

    # -- Uploads -----------------------------------------------------------

    @abstractmethod
    def create_upload(
        self, artist_id: int, upload_type: str, title: str, details: dict[str, Any]
    ) -> ArtistUpload: ...

    @abstractmethod
    def update_upload(self, upload_id: int, **changes: Any) -> Optional[ArtistUpload]: ...

    @abstractmethod
    def get_upload(self, upload_id: int) -> Optional[ArtistUpload]: ...

    @abstractmethod
    def get_artist_uploads(self, artist_id: int) -> list[ArtistUpload]: ...

    # -- Subscriptions -----------------------------------------------------

    @abstractmethod
    def get_subscription_plans(self) -> list[SubscriptionPlan]: ...

    @abstractmethod
    def get_subscription_plan(self, plan_id: int) -> Optional[SubscriptionPlan]: ...

    @abstractmethod
    def create_subscription_plan(
        self, name: str, price: int, interval: str, features: list[str]
    ) -> SubscriptionPlan: ...

    @abstractmethod
    def get_user_subscription(self, user_id: int) -> Optional[UserSubscription]: ...

    @abstractmethod
    def create_user_subscription(
        self,
        user_id: int,
        plan_id: int,
        start_date: datetime,
        end_date: datetime,
        payment_method: str,
        auto_renew: bool = True,
    ) -> UserSubscription: ...

    @abstractmethod
    def update_user_subscription(
        self, subscription_id: int, **changes: Any
    ) -> Optional[UserSubscription]: ...

    # -- Purchases ---------------------------------------------------------

    @abstractmethod
    def create_purchase(
        self, user_id: int, items: list[NewPurchaseItem], payment_method: str
    ) -> Purchase: ...

    @abstractmethod
    def get_user_purchases(self, user_id: int) -> list[Purchase]: ...

    # -- Lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Release any held resources."""
