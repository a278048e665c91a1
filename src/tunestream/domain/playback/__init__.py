"""Playback domain - transport state machine and play queue.

This domain handles:
- Play/pause/seek over a single audio element
- Preview mode time limits
- Volume and mute
- Queue navigation with shuffle and repeat
"""

from .controller import PlaybackController
from .element import AudioElement
from .models import (
    REPEAT_MODES,
    PlaybackError,
    PlaybackOk,
    PlaybackResult,
    PlaybackSession,
    PreviewLimitReached,
    RepeatMode,
    TransportState,
)
from .queue import PlayQueue

__all__ = [
    "PlaybackController",
    "AudioElement",
    "PlayQueue",
    "PlaybackError",
    "PlaybackOk",
    "PlaybackResult",
    "PlaybackSession",
    "PreviewLimitReached",
    "RepeatMode",
    "REPEAT_MODES",
    "TransportState",
]
