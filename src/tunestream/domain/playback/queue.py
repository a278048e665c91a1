"""
Play queue: what plays next and what played before.

Tracks move between three places. ``current`` is the track loaded in the
element. ``upcoming`` is the ordered queue. ``history`` holds played tracks,
oldest first.
"""

import random
from typing import Optional, Sequence

from ..models import Track
from .models import RepeatMode


class PlayQueue:
    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self.current: Optional[Track] = None
        self.upcoming: list[Track] = []
        self.history: list[Track] = []
        self.is_shuffled = False
        # Upcoming order from before shuffle was switched on
        self._unshuffled: Optional[list[Track]] = None

    def start(self, tracks: Sequence[Track], start_index: int = 0, shuffle: bool = False) -> Track:
        """
        Replace the queue with ``tracks`` and make ``tracks[start_index]`` current.

        The remaining tracks are queued in wrap-around order, so the tracks
        before the start index play after the last one.

        Raises:
            ValueError: If tracks is empty or start_index is out of range
        """
        if not tracks:
            raise ValueError("Cannot play an empty track list")
        if not 0 <= start_index < len(tracks):
            raise ValueError(f"Start index {start_index} out of range for {len(tracks)} tracks")

        self.current = tracks[start_index]
        self.upcoming = list(tracks[start_index + 1:]) + list(tracks[:start_index])
        self._unshuffled = None
        self.is_shuffled = False
        if shuffle:
            self.set_shuffle(True)
        return self.current

    def play_now(self, track: Track) -> Track:
        """Make ``track`` current without touching the upcoming queue."""
        if self.current is not None:
            self.history.append(self.current)
        self.current = track
        return track

    def advance(self, repeat_mode: RepeatMode = "off") -> Optional[Track]:
        """
        Move to the next track.

        Returns:
            The new current track, or None when nothing is left to play. With
            repeat ``one`` and an empty queue the current track is returned
            again.
        """
        if self.upcoming:
            if self.current is not None:
                self.history.append(self.current)
            self.current = self.upcoming.pop(0)
            self._forget_unshuffled(self.current)
            return self.current

        if repeat_mode == "all" and self.history:
            order = list(self.history)
            if self.current is not None:
                order.append(self.current)
            self.current = order[0]
            self.upcoming = order[1:]
            self.history = []
            if self.is_shuffled:
                self._unshuffled = list(self.upcoming)
            return self.current

        if repeat_mode == "one" and self.current is not None:
            return self.current

        return None

    def retreat(self) -> Optional[Track]:
        """Step back to the last played track. Returns None without history."""
        if not self.history:
            return None
        if self.current is not None:
            self.upcoming.insert(0, self.current)
            if self._unshuffled is not None:
                self._unshuffled.insert(0, self.current)
        self.current = self.history.pop()
        return self.current

    def set_shuffle(self, enabled: bool) -> None:
        """
        Shuffle on randomises the upcoming tracks and remembers their order.

        Shuffle off restores the remembered order for the tracks still queued.
        Tracks queued while shuffled keep their relative order at the end.
        """
        if enabled == self.is_shuffled:
            return

        if enabled:
            self._unshuffled = list(self.upcoming)
            self._rng.shuffle(self.upcoming)
        else:
            remaining = list(self.upcoming)
            restored = []
            for track in self._unshuffled or []:
                if track in remaining:
                    remaining.remove(track)
                    restored.append(track)
            self.upcoming = restored + remaining
            self._unshuffled = None

        self.is_shuffled = enabled

    def add(self, track: Track) -> None:
        self.upcoming.append(track)
        if self._unshuffled is not None:
            self._unshuffled.append(track)

    def remove(self, index: int) -> Track:
        """
        Remove the upcoming track at ``index``.

        Raises:
            IndexError: If index is out of range
        """
        if not 0 <= index < len(self.upcoming):
            raise IndexError(f"Queue index {index} out of range")
        track = self.upcoming.pop(index)
        self._forget_unshuffled(track)
        return track

    def clear(self) -> None:
        self.upcoming = []
        if self._unshuffled is not None:
            self._unshuffled = []

    def _forget_unshuffled(self, track: Track) -> None:
        if self._unshuffled is not None and track in self._unshuffled:
            self._unshuffled.remove(track)
