"""
Playback controller - single authoritative transport state over one element.

Transport states:
    Idle     no track assigned
    Loading  play requested, element still buffering
    Playing  element is playing
    Paused   track assigned, not playing

Starting playback never raises. Every outcome is returned as ``PlaybackOk`` or
``PlaybackError`` and failures are also handed to the ``on_error`` callback.
"""

import random
from typing import Callable, Optional, Sequence

from loguru import logger

from ..models import Track
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


class PlaybackController:
    def __init__(
        self,
        element: AudioElement,
        preview_duration: float = 15.0,
        restart_threshold: float = 3.0,
        volume: float = 1.0,
        on_error: Optional[Callable[[PlaybackError], None]] = None,
        on_notify: Optional[Callable[[PreviewLimitReached], None]] = None,
        on_track_change: Optional[Callable[[Track], None]] = None,
        preview_policy: Optional[Callable[[Track], bool]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            element: Media element to drive
            preview_duration: Seconds a preview may play
            restart_threshold: Seconds after which "previous" restarts the track
            volume: Initial volume in [0, 1]
            on_error: Receives every playback failure
            on_notify: Receives preview-limit notifications
            on_track_change: Called whenever a track is assigned to the element
            preview_policy: Decides preview mode for tracks reached through the
                queue. Without it, preview mode carries over between tracks.
            rng: Random source for shuffling
        """
        self._element = element
        self.preview_duration = float(preview_duration)
        self.restart_threshold = float(restart_threshold)
        self._on_error = on_error
        self._on_notify = on_notify
        self._on_track_change = on_track_change
        self._preview_policy = preview_policy
        self._queue = PlayQueue(rng)

        self._playing = False
        self._loading = False
        self._progress = 0.0
        self._duration = 0.0
        self._volume = _clamp(volume, 0.0, 1.0)
        self._muted = False
        self._repeat: RepeatMode = "off"
        self._preview = False
        self._limit_reached = False
        self._seeking = False
        # Bumped on every play/pause so a stale play() completion cannot
        # overwrite newer state
        self._request_id = 0

        self._apply_volume()

    # -- State ---------------------------------------------------------------

    @property
    def current_track(self) -> Optional[Track]:
        return self._queue.current

    @property
    def transport(self) -> TransportState:
        if self._queue.current is None:
            return TransportState.IDLE
        if self._loading:
            return TransportState.LOADING
        if self._playing:
            return TransportState.PLAYING
        return TransportState.PAUSED

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def effective_volume(self) -> float:
        return 0.0 if self._muted else self._volume

    @property
    def repeat_mode(self) -> RepeatMode:
        return self._repeat

    def snapshot(self) -> PlaybackSession:
        return PlaybackSession(
            transport=self.transport,
            current_track=self._queue.current,
            is_playing=self._playing,
            is_loading=self._loading,
            progress=self._progress,
            duration=self._duration,
            volume=self._volume,
            is_muted=self._muted,
            effective_volume=self.effective_volume,
            is_shuffled=self._queue.is_shuffled,
            repeat_mode=self._repeat,
            is_preview_mode=self._preview,
            preview_limit_reached=self._limit_reached,
            is_seeking=self._seeking,
            queue=list(self._queue.upcoming),
            history=list(self._queue.history),
        )

    # -- Track assignment ----------------------------------------------------

    async def load(
        self, track: Track, preview: Optional[bool] = None, autoplay: bool = True
    ) -> Optional[PlaybackResult]:
        """Assign ``track`` to the element. The previous track moves to history."""
        self._queue.play_now(track)
        return await self._begin_track(track, preview, autoplay)

    async def play_tracks(
        self,
        tracks: Sequence[Track],
        start_index: int = 0,
        shuffle: bool = False,
        preview: Optional[bool] = None,
    ) -> Optional[PlaybackResult]:
        track = self._queue.start(tracks, start_index, shuffle)
        return await self._begin_track(track, preview, True)

    async def _begin_track(
        self, track: Track, preview: Optional[bool], autoplay: bool
    ) -> Optional[PlaybackResult]:
        if preview is None:
            preview = self._preview_policy(track) if self._preview_policy else self._preview

        # Settle transport before the swap so a failure below leaves it Paused
        self._stop()

        self._preview = preview
        self._limit_reached = False
        self._seeking = False
        self._progress = 0.0
        self._duration = float(track.duration or 0)

        self._element.src = track.audio_url
        self._element.current_time = 0.0
        self._apply_volume()

        logger.debug(f"Loaded track {track.id} '{track.title}' (preview={preview})")
        if self._on_track_change:
            try:
                self._on_track_change(track)
            except Exception as e:
                logger.warning(f"Could not start track {track.id}: {e}")
                return self._fail(
                    PlaybackError(kind="load_failed", message=str(e), track_id=track.id)
                )

        if autoplay:
            return await self.play()
        return None

    # -- Transport -----------------------------------------------------------

    async def play(self) -> PlaybackResult:
        track = self._queue.current
        if track is None:
            return PlaybackError(kind="no_track", message="No track loaded")
        if self._preview and self._limit_reached:
            return PlaybackError(
                kind="preview_limit", message="Preview limit reached", track_id=track.id
            )

        self._request_id += 1
        request_id = self._request_id
        self._playing = True
        self._loading = True

        try:
            await self._element.play()
        except Exception as e:
            logger.warning(f"Playback failed for track {track.id}: {e}")
            if request_id == self._request_id:
                self._playing = False
            return self._fail(
                PlaybackError(kind="play_failed", message=str(e), track_id=track.id)
            )
        finally:
            if request_id == self._request_id:
                self._loading = False

        return PlaybackOk(track_id=track.id)

    def pause(self) -> None:
        self._stop()

    async def toggle(self) -> PlaybackResult:
        if self._playing:
            self.pause()
            return PlaybackOk(track_id=self._queue.current.id)
        return await self.play()

    def _stop(self) -> None:
        self._request_id += 1
        self._playing = False
        self._loading = False
        self._element.pause()

    # -- Seeking -------------------------------------------------------------

    def seek(self, seconds: float) -> float:
        """
        Move the play position, clamped to the track and the preview limit.

        Returns:
            The position actually applied
        """
        if self._queue.current is None:
            return 0.0

        target = max(0.0, float(seconds))
        if self._duration > 0:
            target = min(target, self._duration)
        if self._preview:
            target = min(target, self.preview_duration)

        self._progress = target
        self._element.current_time = target
        return target

    def begin_seek(self) -> None:
        self._seeking = True

    def end_seek(self, seconds: Optional[float] = None) -> float:
        self._seeking = False
        if seconds is None:
            return self._progress
        return self.seek(seconds)

    # -- Volume --------------------------------------------------------------

    def set_volume(self, volume: float) -> float:
        self._volume = _clamp(volume, 0.0, 1.0)
        self._apply_volume()
        return self._volume

    def toggle_mute(self) -> bool:
        self._muted = not self._muted
        self._apply_volume()
        return self._muted

    def _apply_volume(self) -> None:
        self._element.volume = self.effective_volume

    # -- Navigation ----------------------------------------------------------

    async def next_track(self) -> Optional[PlaybackResult]:
        """Advance through the queue. Returns None when nothing is left to play."""
        track = self._queue.advance(self._repeat)
        if track is None:
            self._stop()
            return None
        return await self._begin_track(track, None, True)

    async def prev_track(self) -> Optional[PlaybackResult]:
        """Go to the previous track, or restart the current one past the threshold."""
        if self._queue.current is None:
            return None

        if self._progress > self.restart_threshold or not self._queue.history:
            self.seek(0)
            return None

        track = self._queue.retreat()
        return await self._begin_track(track, None, True)

    # -- Element events ------------------------------------------------------

    async def on_track_end(self) -> Optional[PlaybackResult]:
        if self._queue.current is None:
            return None

        if self._repeat == "one":
            self._progress = 0.0
            self._element.current_time = 0.0
            return await self.play()

        return await self.next_track()

    def on_time_update(self, current_time: float) -> None:
        if self._seeking or self._queue.current is None:
            return

        self._loading = False
        if self._preview:
            if self._limit_reached:
                return
            if current_time >= self.preview_duration:
                self._reach_preview_limit()
                return

        self._progress = float(current_time)

    def _reach_preview_limit(self) -> None:
        track = self._queue.current
        self._progress = self.preview_duration
        self._limit_reached = True
        self._stop()

        logger.info(f"Preview limit of {self.preview_duration}s reached for track {track.id}")
        if self._on_notify:
            self._on_notify(
                PreviewLimitReached(
                    track_id=track.id,
                    limit=self.preview_duration,
                    purchasable=track.is_purchasable,
                    purchase_price=track.purchase_price,
                )
            )

    def on_loaded_metadata(self, duration: float) -> None:
        if duration and duration > 0:
            self._duration = float(duration)
        self._loading = False

    def on_load_start(self) -> None:
        self._progress = 0.0
        if self._playing:
            self._loading = True

    def on_element_error(self, message: str) -> PlaybackError:
        track = self._queue.current
        logger.error(f"Media error on track {track.id if track else None}: {message}")
        self._stop()
        return self._fail(
            PlaybackError(
                kind="media_error", message=message, track_id=track.id if track else None
            )
        )

    def _fail(self, error: PlaybackError) -> PlaybackError:
        if self._on_error:
            self._on_error(error)
        return error

    # -- Modes ---------------------------------------------------------------

    def toggle_shuffle(self) -> bool:
        self._queue.set_shuffle(not self._queue.is_shuffled)
        return self._queue.is_shuffled

    def set_repeat_mode(self, mode: RepeatMode) -> None:
        if mode not in REPEAT_MODES:
            raise ValueError(f"Invalid repeat mode: {mode}")
        self._repeat = mode

    def cycle_repeat_mode(self) -> RepeatMode:
        """off -> all -> one -> off"""
        index = REPEAT_MODES.index(self._repeat)
        self._repeat = REPEAT_MODES[(index + 1) % len(REPEAT_MODES)]
        return self._repeat

    def exit_preview_mode(self) -> None:
        self._preview = False
        self._limit_reached = False

    # -- Queue editing -------------------------------------------------------

    def add_to_queue(self, track: Track) -> None:
        self._queue.add(track)

    def remove_from_queue(self, index: int) -> Track:
        return self._queue.remove(index)

    def clear_queue(self) -> None:
        self._queue.clear()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))
