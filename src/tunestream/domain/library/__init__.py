"""Library domain - playlist ordering and catalog search."""

from .ordering import insert_track_id, positions_for, remove_track_id
from .search import filter_catalog, matches_query, normalize_query

__all__ = [
    "insert_track_id",
    "remove_track_id",
    "positions_for",
    "filter_catalog",
    "matches_query",
    "normalize_query",
]
