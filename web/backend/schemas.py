from datetime import datetime
from typing import Any, ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def to_plain(value: Any) -> Any:
    """Recursively turn domain NamedTuples into dicts for model validation."""
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return {k: to_plain(v) for k, v in value._asdict().items()}
    if isinstance(value, list):
        return [to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    return value


class CamelModel(BaseModel):
    """JSON keys are camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_domain(cls, obj: Any, **extra: Any):
        return cls.model_validate({**to_plain(obj), **extra})


class StrictCamelModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )


class PatchModel(CamelModel):
    """Partial update body. Omitted fields stay unchanged.

    Only fields named in ``nullable`` may be sent as an explicit null.
    """

    nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in sorted(self.model_fields_set - self.nullable):
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# -- Catalog -------------------------------------------------------------


class ArtistResponse(CamelModel):
    id: int
    name: str
    image: str = ""
    bio: str = ""
    genres: list[str] = []
    social_links: dict[str, str] = {}
    verified: bool = False
    monthly_listeners: int = 0


class ArtistDetailResponse(ArtistResponse):
    follower_count: int = 0
    is_following: Optional[bool] = None


class TrackResponse(CamelModel):
    id: int
    title: str
    artist_id: int
    artist_name: str
    album_id: int
    album_title: str
    duration: int
    audio_url: str
    purchase_price: Optional[int] = None
    purchase_available: bool = False
    explicit: bool = False
    track_number: int = 1
    featuring: list[int] = []


class AlbumResponse(CamelModel):
    id: int
    title: str
    artist_id: int
    artist_name: str
    release_date: datetime
    cover_image: str = ""
    genres: list[str] = []
    album_type: Optional[str] = None


class AlbumDetailResponse(AlbumResponse):
    tracks: list[TrackResponse] = []


class SearchResponse(CamelModel):
    tracks: list[TrackResponse]
    albums: list[AlbumResponse]
    artists: list[ArtistResponse]


class ArtistCreateRequest(CamelModel):
    name: str = Field(min_length=1)
    image: str = ""
    bio: str = ""
    genres: list[str] = []
    social_links: dict[str, str] = {}
    verified: bool = False
    monthly_listeners: int = Field(default=0, ge=0)


class ArtistUpdateRequest(PatchModel):
    name: Optional[str] = Field(default=None, min_length=1)
    image: Optional[str] = None
    bio: Optional[str] = None
    genres: Optional[list[str]] = None
    social_links: Optional[dict[str, str]] = None
    verified: Optional[bool] = None
    monthly_listeners: Optional[int] = Field(default=None, ge=0)


class AlbumCreateRequest(CamelModel):
    title: str = Field(min_length=1)
    artist_id: int
    release_date: Optional[datetime] = None
    cover_image: str = ""
    genres: list[str] = []
    album_type: Optional[Literal["album", "single", "ep"]] = None


class AlbumUpdateRequest(PatchModel):
    nullable: ClassVar[frozenset[str]] = frozenset({"album_type"})

    title: Optional[str] = Field(default=None, min_length=1)
    release_date: Optional[datetime] = None
    cover_image: Optional[str] = None
    genres: Optional[list[str]] = None
    album_type: Optional[Literal["album", "single", "ep"]] = None


class TrackCreateRequest(CamelModel):
    title: str = Field(min_length=1)
    artist_id: int
    album_id: int
    duration: int = Field(gt=0)
    audio_url: str = Field(min_length=1)
    purchase_price: Optional[int] = Field(default=None, ge=0)
    purchase_available: bool = False
    explicit: bool = False
    track_number: int = Field(default=1, ge=1)
    featuring: list[int] = []


class TrackUpdateRequest(PatchModel):
    nullable: ClassVar[frozenset[str]] = frozenset({"purchase_price"})

    title: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[int] = Field(default=None, gt=0)
    audio_url: Optional[str] = Field(default=None, min_length=1)
    purchase_price: Optional[int] = Field(default=None, ge=0)
    purchase_available: Optional[bool] = None
    explicit: Optional[bool] = None
    track_number: Optional[int] = Field(default=None, ge=1)
    featuring: Optional[list[int]] = None


# -- Users ---------------------------------------------------------------


class UserResponse(CamelModel):
    """Public view of an account. Never includes the password hash."""

    id: int
    email: str
    username: str
    display_name: str
    role: str
    artist_id: Optional[int] = None
    subscription_tier: str = "free"
    subscription_end_date: Optional[datetime] = None
    profile_image: Optional[str] = None
    city: Optional[str] = None
    favorite_artists: Optional[str] = None
    social_media: dict[str, str] = {}
    created_at: datetime


class RegisterRequest(CamelModel):
    username: str
    email: str
    password: str
    confirm_password: str
    display_name: Optional[str] = None
    role: Literal["user", "artist"] = "user"


class LoginRequest(CamelModel):
    username: str
    password: str


class ProfileUpdateRequest(PatchModel):
    nullable: ClassVar[frozenset[str]] = frozenset({"profile_image", "city", "favorite_artists"})

    display_name: Optional[str] = None
    email: Optional[str] = None
    profile_image: Optional[str] = None
    city: Optional[str] = None
    favorite_artists: Optional[str] = None
    social_media: Optional[dict[str, str]] = None


class NotificationSettingsModel(CamelModel):
    email: bool = True
    push: bool = True
    new_releases: bool = True
    playlists: bool = True


class PreferencesModel(CamelModel):
    language: Literal["en", "fr"] = "en"
    theme: Literal["dark", "light"] = "dark"
    audio_quality: Literal["standard", "high", "lossless"] = "standard"
    autoplay: bool = True
    notifications: NotificationSettingsModel = NotificationSettingsModel()


# -- Playlists -----------------------------------------------------------


class PlaylistTrackResponse(CamelModel):
    id: int
    playlist_id: int
    track_id: int
    position: int
    added_at: datetime
    track: Optional[TrackResponse] = None


class PlaylistResponse(CamelModel):
    id: int
    name: str
    user_id: int
    created_at: datetime
    is_public: bool = False
    cover_image: Optional[str] = None
    tracks: list[PlaylistTrackResponse] = []


class CreatePlaylistRequest(CamelModel):
    name: str = Field(min_length=1)
    is_public: bool = False
    cover_image: Optional[str] = None


class UpdatePlaylistRequest(PatchModel):
    nullable: ClassVar[frozenset[str]] = frozenset({"cover_image"})

    name: Optional[str] = Field(default=None, min_length=1)
    is_public: Optional[bool] = None
    cover_image: Optional[str] = None


class AddPlaylistTrackRequest(CamelModel):
    track_id: int
    position: int = 0


# -- Subscriptions and purchases -------------------------------------------


class SubscriptionPlanResponse(CamelModel):
    id: int
    name: str
    price: int
    interval: str
    features: list[str] = []


class SubscriptionResponse(CamelModel):
    active: bool
    id: Optional[int] = None
    plan_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    auto_renew: Optional[bool] = None
    plan: Optional[SubscriptionPlanResponse] = None


class SubscribeRequest(CamelModel):
    plan_id: int
    payment_method: str = "card"
    auto_renew: bool = True


class UpdateSubscriptionRequest(CamelModel):
    plan_id: Optional[int] = None
    payment_method: Optional[str] = None
    auto_renew: Optional[bool] = None


class CheckoutItemRequest(CamelModel):
    item_type: Literal["track", "album"]
    item_id: int


class CheckoutRequest(CamelModel):
    items: list[CheckoutItemRequest] = Field(min_length=1)
    payment_method: str = "card"


class PurchaseItemResponse(CamelModel):
    id: int
    item_type: str
    price: int
    title: str
    artist_name: str
    track_id: Optional[int] = None
    album_id: Optional[int] = None


class PurchaseResponse(CamelModel):
    id: int
    user_id: int
    total_amount: int
    payment_method: str
    purchase_date: datetime
    receipt_url: str
    items: list[PurchaseItemResponse] = []


# -- Artist dashboard ----------------------------------------------------


class UploadedTrackModel(StrictCamelModel):
    title: str = Field(min_length=1)
    duration: int = Field(gt=0)
    audio_url: str = Field(min_length=1)
    explicit: bool = False
    purchase_price: Optional[int] = Field(default=None, ge=0)
    purchase_available: bool = False
    featuring: list[int] = []


class TrackUploadRequest(StrictCamelModel):
    kind: Literal["track"]
    title: str = Field(min_length=1)
    duration: int = Field(gt=0)
    audio_url: str = Field(min_length=1)
    album_id: Optional[int] = None
    cover_image: str = ""
    genres: list[str] = []
    explicit: bool = False
    purchase_price: Optional[int] = Field(default=None, ge=0)
    purchase_available: bool = False
    featuring: list[int] = []


class AlbumUploadRequest(StrictCamelModel):
    kind: Literal["album"]
    title: str = Field(min_length=1)
    tracks: list[UploadedTrackModel] = Field(min_length=1)
    release_date: Optional[datetime] = None
    cover_image: str = ""
    genres: list[str] = []
    album_type: Literal["album", "ep"] = "album"


class UploadResponse(CamelModel):
    id: int
    artist_id: int
    upload_type: str
    title: str
    status: str
    details: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    track_id: Optional[int] = None
    album_id: Optional[int] = None
    error_message: Optional[str] = None


class TrackStatsResponse(CamelModel):
    track_id: int
    title: str
    stream_count: int
    purchase_count: int


class AnalyticsResponse(CamelModel):
    artist_id: int
    period: str
    stream_count: int
    purchase_count: int
    revenue: int
    follower_count: int
    top_tracks: list[TrackStatsResponse] = []


class FollowResponse(CamelModel):
    artist_id: int
    following: bool
    follower_count: int


# -- Player --------------------------------------------------------------


class PlayRequest(CamelModel):
    """Empty body resumes the current track."""

    track_id: Optional[int] = None
    track_ids: Optional[list[int]] = None
    playlist_id: Optional[int] = None
    album_id: Optional[int] = None
    start_index: int = Field(default=0, ge=0)
    shuffle: bool = False


class SeekRequest(CamelModel):
    position: float


class VolumeRequest(CamelModel):
    volume: float


class RepeatRequest(CamelModel):
    """Without a mode the repeat mode cycles off -> all -> one -> off."""

    mode: Optional[Literal["off", "all", "one"]] = None


class QueueAddRequest(CamelModel):
    track_id: int


class PlayerEventRequest(CamelModel):
    type: Literal[
        "timeupdate", "loadedmetadata", "ended", "loadstart", "error", "seekstart", "seekend"
    ]
    current_time: Optional[float] = None
    duration: Optional[float] = None
    message: Optional[str] = None


class PlaybackResultResponse(CamelModel):
    ok: bool
    track_id: Optional[int] = None
    kind: Optional[str] = None
    message: Optional[str] = None


class PreviewLimitResponse(CamelModel):
    track_id: int
    limit: float
    purchasable: bool
    purchase_price: Optional[int] = None


class ElementStateResponse(CamelModel):
    src: Optional[str] = None
    current_time: float = 0.0
    volume: float = 1.0
    paused: bool = True


class PlayerStateResponse(CamelModel):
    transport: str
    current_track: Optional[TrackResponse] = None
    is_playing: bool
    is_loading: bool
    progress: float
    duration: float
    volume: float
    is_muted: bool
    effective_volume: float
    is_shuffled: bool
    repeat_mode: str
    is_preview_mode: bool
    preview_limit_reached: bool
    is_seeking: bool
    queue: list[TrackResponse] = []
    history: list[TrackResponse] = []
    element: ElementStateResponse
    notifications: list[PreviewLimitResponse] = []
    errors: list[PlaybackResultResponse] = []
