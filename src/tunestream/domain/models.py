"""
Catalog, library and account domain models.

Entities are immutable NamedTuples. Use ``._replace(field=value)`` to derive
an updated copy.
"""

from datetime import datetime
from typing import Any, Literal, NamedTuple, Optional

Role = Literal["user", "artist", "admin"]
SubscriptionTier = Literal["free", "premium", "ultimate"]
LibraryTrackCollection = Literal["liked", "purchased", "downloaded"]
LibraryAlbumCollection = Literal["liked", "purchased"]
UploadStatus = Literal["pending", "processing", "completed", "failed"]
AnalyticsPeriod = Literal["day", "week", "month", "year", "all"]

TRACK_COLLECTIONS = ("liked", "purchased", "downloaded")
ALBUM_COLLECTIONS = ("liked", "purchased")
PAID_TIERS = ("premium", "ultimate")


class Artist(NamedTuple):
    id: int
    name: str
    image: str = ""
    bio: str = ""
    genres: list[str] = []
    social_links: dict[str, str] = {}
    verified: bool = False
    monthly_listeners: int = 0


class Album(NamedTuple):
    id: int
    title: str
    artist_id: int
    artist_name: str
    release_date: datetime
    cover_image: str = ""
    genres: list[str] = []
    album_type: Optional[str] = None  # 'album', 'single', 'ep'


class Track(NamedTuple):
    """A catalog track. Immutable once loaded into the player."""

    id: int
    title: str
    artist_id: int
    artist_name: str
    album_id: int
    album_title: str
    duration: int  # seconds
    audio_url: str
    purchase_price: Optional[int] = None  # cents, None if streaming only
    purchase_available: bool = False
    explicit: bool = False
    track_number: int = 1
    featuring: list[int] = []  # featured artist ids

    @property
    def is_purchasable(self) -> bool:
        return self.purchase_available and bool(self.purchase_price)


class NotificationSettings(NamedTuple):
    email: bool = True
    push: bool = True
    new_releases: bool = True
    playlists: bool = True


class UserPreferences(NamedTuple):
    language: Literal["en", "fr"] = "en"
    theme: Literal["dark", "light"] = "dark"
    audio_quality: Literal["standard", "high", "lossless"] = "standard"
    autoplay: bool = True
    notifications: NotificationSettings = NotificationSettings()


class User(NamedTuple):
    id: int
    email: str
    username: str
    display_name: str
    password_hash: str
    created_at: datetime
    role: Role = "user"
    artist_id: Optional[int] = None
    subscription_tier: SubscriptionTier = "free"
    subscription_end_date: Optional[datetime] = None
    profile_image: Optional[str] = None
    city: Optional[str] = None
    favorite_artists: Optional[str] = None
    social_media: dict[str, str] = {}

    @property
    def has_paid_tier(self) -> bool:
        return self.subscription_tier in PAID_TIERS


class PlaylistTrack(NamedTuple):
    id: int
    playlist_id: int
    track_id: int
    position: int  # 0-based, contiguous within a playlist
    added_at: datetime
    track: Optional[Track] = None


class Playlist(NamedTuple):
    id: int
    name: str
    user_id: int
    created_at: datetime
    is_public: bool = False
    cover_image: Optional[str] = None
    tracks: list[PlaylistTrack] = []

    def is_readable_by(self, user_id: Optional[int]) -> bool:
        return self.is_public or (user_id is not None and user_id == self.user_id)


class SubscriptionPlan(NamedTuple):
    id: int
    name: str
    price: int  # cents
    interval: Literal["month", "year"]
    features: list[str] = []


class UserSubscription(NamedTuple):
    id: int
    user_id: int
    plan_id: int
    start_date: datetime
    end_date: datetime
    payment_method: str
    auto_renew: bool = True


class PurchaseItem(NamedTuple):
    id: int
    purchase_id: int
    item_type: Literal["track", "album"]
    price: int
    title: str
    artist_name: str
    track_id: Optional[int] = None
    album_id: Optional[int] = None


class Purchase(NamedTuple):
    id: int
    user_id: int
    total_amount: int
    payment_method: str
    purchase_date: datetime
    receipt_url: str
    items: list[PurchaseItem] = []


class ArtistUpload(NamedTuple):
    id: int
    artist_id: int
    upload_type: Literal["track", "album"]
    title: str
    status: UploadStatus
    details: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    track_id: Optional[int] = None
    album_id: Optional[int] = None
    error_message: Optional[str] = None


class TrackStats(NamedTuple):
    track_id: int
    title: str
    stream_count: int
    purchase_count: int


class ArtistAnalytics(NamedTuple):
    artist_id: int
    period: AnalyticsPeriod
    stream_count: int
    purchase_count: int
    revenue: int  # cents
    follower_count: int
    top_tracks: list[TrackStats] = []


class SearchResults(NamedTuple):
    tracks: list[Track]
    albums: list[Album]
    artists: list[Artist]
