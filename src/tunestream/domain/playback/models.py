"""
Playback state types.

The controller's mutable state is exposed to callers as an immutable
``PlaybackSession`` snapshot.
"""

from enum import Enum
from typing import Literal, NamedTuple, Optional, Union

from ..models import Track

RepeatMode = Literal["off", "all", "one"]
REPEAT_MODES: tuple[RepeatMode, ...] = ("off", "all", "one")

PlaybackErrorKind = Literal[
    "no_track", "preview_limit", "load_failed", "play_failed", "media_error"
]


class TransportState(str, Enum):
    IDLE = "idle"  # no track
    LOADING = "loading"  # play requested, element buffering
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackOk(NamedTuple):
    track_id: int
    ok: Literal[True] = True


class PlaybackError(NamedTuple):
    kind: PlaybackErrorKind
    message: str
    track_id: Optional[int] = None
    ok: Literal[False] = False


PlaybackResult = Union[PlaybackOk, PlaybackError]


class PreviewLimitReached(NamedTuple):
    """Emitted once per track when a preview hits its time limit."""

    track_id: int
    limit: float
    purchasable: bool
    purchase_price: Optional[int] = None


class PlaybackSession(NamedTuple):
    """Point-in-time view of the controller."""

    transport: TransportState
    current_track: Optional[Track]
    is_playing: bool
    is_loading: bool
    progress: float
    duration: float
    volume: float
    is_muted: bool
    effective_volume: float
    is_shuffled: bool
    repeat_mode: RepeatMode
    is_preview_mode: bool
    preview_limit_reached: bool
    is_seeking: bool
    queue: list[Track]
    history: list[Track]
