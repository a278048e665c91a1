"""
Playlist ordering rules.

Positions are 0-indexed and always contiguous: after any insert or removal the
playlist is renumbered 0, 1, 2, ... in display order.
"""

from typing import Sequence


def insert_track_id(order: Sequence[int], track_id: int, position: int) -> list[int]:
    """
    Insert a track into a playlist order at ``position``.

    A track that is already present is moved rather than duplicated, so adding
    the same track twice leaves membership unchanged. Negative positions insert
    at the front and positions past the end append.

    Args:
        order: Current track ids in playlist order
        track_id: Track to insert
        position: Target 0-based position

    Returns:
        New track id order
    """
    new_order = [tid for tid in order if tid != track_id]
    position = max(0, min(position, len(new_order)))
    new_order.insert(position, track_id)
    return new_order


def remove_track_id(order: Sequence[int], track_id: int) -> list[int]:
    """Remove a track from a playlist order. Missing tracks are a no-op."""
    return [tid for tid in order if tid != track_id]


def positions_for(order: Sequence[int]) -> list[tuple[int, int]]:
    """Pair every track id with its contiguous 0-based position."""
    return [(track_id, position) for position, track_id in enumerate(order)]
