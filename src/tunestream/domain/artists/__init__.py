"""Artists domain - uploads and analytics."""

from .analytics import ANALYTICS_PERIODS, get_artist_analytics
from .uploads import (
    AlbumUploadDetails,
    TrackUploadDetails,
    UploadDetails,
    UploadedTrack,
    details_to_dict,
    process_upload,
)

__all__ = [
    "ANALYTICS_PERIODS",
    "get_artist_analytics",
    "AlbumUploadDetails",
    "TrackUploadDetails",
    "UploadDetails",
    "UploadedTrack",
    "details_to_dict",
    "process_upload",
]
