"""
Server-held players, one per logged-in user.

The browser owns the real media element. Each player drives a
``RemoteAudioElement`` that records the desired element state; the browser
reads it back from ``GET /api/player/state`` and reports element events to
``POST /api/player/events``.
"""

import random
from typing import Optional

from loguru import logger

from tunestream.core.config import PlayerConfig
from tunestream.domain.accounts import should_preview
from tunestream.domain.playback import (
    PlaybackController,
    PlaybackError,
    PreviewLimitReached,
)
from tunestream.domain.store import CatalogStore


class RemoteAudioElement:
    """Desired state of the browser's audio element."""

    def __init__(self):
        self.src: Optional[str] = None
        self.current_time = 0.0
        self.volume = 1.0
        self.paused = True

    async def play(self) -> None:
        if not self.src:
            raise RuntimeError("No audio source set")
        self.paused = False

    def pause(self) -> None:
        self.paused = True


class PlayerSession:
    """A user's controller plus the messages waiting for their browser."""

    def __init__(self, element: RemoteAudioElement):
        self.element = element
        self.controller: Optional[PlaybackController] = None
        self.notifications: list[PreviewLimitReached] = []
        self.errors: list[PlaybackError] = []

    def drain(self) -> tuple[list[PreviewLimitReached], list[PlaybackError]]:
        notifications, errors = self.notifications, self.errors
        self.notifications, self.errors = [], []
        return notifications, errors


class PlayerHub:
    def __init__(
        self,
        store: CatalogStore,
        config: PlayerConfig,
        rng: Optional[random.Random] = None,
    ):
        self._store = store
        self._config = config
        self._rng = rng
        self._sessions: dict[int, PlayerSession] = {}

    def get(self, user_id: int) -> PlayerSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = self._create(user_id)
            self._sessions[user_id] = session
        return session

    def remove(self, user_id: int) -> None:
        session = self._sessions.pop(user_id, None)
        if session is not None:
            session.controller.pause()
            logger.debug(f"Closed player for user {user_id}")

    def _create(self, user_id: int) -> PlayerSession:
        store = self._store
        element = RemoteAudioElement()

        def preview_policy(track) -> bool:
            # Re-read the user so purchases and upgrades apply immediately
            return should_preview(store, store.get_user(user_id), track)

        def record_stream(track) -> None:
            store.record_stream(track.id, user_id)

        session = PlayerSession(element)
        session.controller = PlaybackController(
            element,
            preview_duration=self._config.preview_duration,
            restart_threshold=self._config.restart_threshold,
            volume=self._config.default_volume,
            on_track_change=record_stream,
            preview_policy=preview_policy,
            on_error=lambda error: session.errors.append(error),
            on_notify=lambda notice: session.notifications.append(notice),
            rng=self._rng,
        )

        logger.debug(f"Created player for user {user_id}")
        return session
