"""Case-insensitive substring search over catalog entities."""

from typing import Iterable, Optional

from ..models import Album, Artist, SearchResults, Track


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().casefold()


def matches_query(needle: str, *fields: Optional[str]) -> bool:
    """True when the normalized needle is a substring of any field."""
    return any(needle in field.casefold() for field in fields if field)


def filter_catalog(
    query: str,
    tracks: Iterable[Track],
    albums: Iterable[Album],
    artists: Iterable[Artist],
) -> SearchResults:
    """
    Linear scan of the catalog.

    Tracks and albums match on their title or artist name; artists match on
    their name. An empty query matches nothing.
    """
    needle = normalize_query(query)
    if not needle:
        return SearchResults(tracks=[], albums=[], artists=[])

    return SearchResults(
        tracks=[t for t in tracks if matches_query(needle, t.title, t.artist_name)],
        albums=[a for a in albums if matches_query(needle, a.title, a.artist_name)],
        artists=[a for a in artists if matches_query(needle, a.name)],
    )
