"""Artist dashboard statistics."""

from datetime import datetime
from typing import Optional

from tunestream.core.exceptions import NotFoundError, ValidationError

from ..models import ArtistAnalytics
from ..store import CatalogStore

ANALYTICS_PERIODS = ("day", "week", "month", "year", "all")


def get_artist_analytics(
    store: CatalogStore,
    artist_id: int,
    period: str = "all",
    now: Optional[datetime] = None,
) -> ArtistAnalytics:
    """Streams, purchases, revenue and followers for one artist over ``period``."""
    if period not in ANALYTICS_PERIODS:
        raise ValidationError(
            f"Invalid period '{period}'. Expected one of: {', '.join(ANALYTICS_PERIODS)}"
        )
    if store.get_artist(artist_id) is None:
        raise NotFoundError("artist", artist_id)
    return store.get_artist_analytics(artist_id, period=period, now=now)
