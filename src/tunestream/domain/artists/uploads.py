"""
Artist uploads.

An upload is either a single track or a whole album. The two kinds are
separate types so they cannot carry each other's fields. Processing turns
the upload into catalog entries:

    pending -> processing -> completed
                          -> failed (error_message set)
"""

from datetime import datetime
from typing import Any, Literal, NamedTuple, Optional, Union

from loguru import logger

from tunestream.core.database import utc_now
from tunestream.core.exceptions import (
    AccessDeniedError,
    NotFoundError,
    ValidationError,
)

from ..models import ArtistUpload
from ..store import CatalogStore


class UploadedTrack(NamedTuple):
    """One entry of an album tracklist."""

    title: str
    duration: int
    audio_url: str
    explicit: bool = False
    purchase_price: Optional[int] = None
    purchase_available: bool = False
    featuring: tuple[int, ...] = ()


class TrackUploadDetails(NamedTuple):
    title: str
    duration: int
    audio_url: str
    album_id: Optional[int] = None  # None publishes the track as a single
    cover_image: str = ""
    genres: tuple[str, ...] = ()
    explicit: bool = False
    purchase_price: Optional[int] = None
    purchase_available: bool = False
    featuring: tuple[int, ...] = ()
    kind: Literal["track"] = "track"


class AlbumUploadDetails(NamedTuple):
    title: str
    tracks: list[UploadedTrack]
    release_date: Optional[datetime] = None
    cover_image: str = ""
    genres: tuple[str, ...] = ()
    album_type: Literal["album", "ep"] = "album"
    kind: Literal["album"] = "album"


UploadDetails = Union[TrackUploadDetails, AlbumUploadDetails]


def details_to_dict(details: UploadDetails) -> dict[str, Any]:
    """JSON-ready form of the upload details, stored with the upload record."""
    data = details._asdict()
    if isinstance(details, AlbumUploadDetails):
        data["tracks"] = [track._asdict() for track in details.tracks]
        if details.release_date is not None:
            data["release_date"] = details.release_date.isoformat()
    return data


def _check_track(title: str, duration: int, audio_url: str) -> None:
    if not (title or "").strip():
        raise ValidationError("Track title is required")
    if duration is None or duration <= 0:
        raise ValidationError(f"Track '{title}' must have a positive duration")
    if not (audio_url or "").strip():
        raise ValidationError(f"Track '{title}' needs an audio URL")


def _publish_track(store: CatalogStore, artist_id: int, details: TrackUploadDetails):
    _check_track(details.title, details.duration, details.audio_url)

    if details.album_id is not None:
        album = store.get_album(details.album_id)
        if album is None:
            raise NotFoundError("album", details.album_id)
        if album.artist_id != artist_id:
            raise AccessDeniedError("Album belongs to another artist")
        track_number = len(store.get_album_tracks(album.id)) + 1
    else:
        album = store.create_album(
            title=details.title,
            artist_id=artist_id,
            cover_image=details.cover_image,
            genres=list(details.genres),
            album_type="single",
            release_date=utc_now(),
        )
        track_number = 1

    track = store.create_track(
        title=details.title,
        artist_id=artist_id,
        album_id=album.id,
        duration=details.duration,
        audio_url=details.audio_url,
        explicit=details.explicit,
        purchase_price=details.purchase_price,
        purchase_available=details.purchase_available,
        featuring=list(details.featuring),
        track_number=track_number,
    )
    return track.id, album.id


def _publish_album(store: CatalogStore, artist_id: int, details: AlbumUploadDetails):
    if not (details.title or "").strip():
        raise ValidationError("Album title is required")
    if not details.tracks:
        raise ValidationError("An album upload needs at least one track")
    for entry in details.tracks:
        _check_track(entry.title, entry.duration, entry.audio_url)

    album = store.create_album(
        title=details.title,
        artist_id=artist_id,
        cover_image=details.cover_image,
        genres=list(details.genres),
        album_type=details.album_type,
        release_date=details.release_date or utc_now(),
    )
    for number, entry in enumerate(details.tracks, start=1):
        store.create_track(
            title=entry.title,
            artist_id=artist_id,
            album_id=album.id,
            duration=entry.duration,
            audio_url=entry.audio_url,
            explicit=entry.explicit,
            purchase_price=entry.purchase_price,
            purchase_available=entry.purchase_available,
            featuring=list(entry.featuring),
            track_number=number,
        )
    return None, album.id


def process_upload(
    store: CatalogStore, artist_id: int, details: UploadDetails
) -> ArtistUpload:
    """
    Record an upload and publish it to the catalog.

    Raises:
        TunestreamError: A domain error while publishing. Any error, domain
            or not, leaves the upload ``failed`` with the error message.
    """
    upload = store.create_upload(artist_id, details.kind, details.title, details_to_dict(details))
    store.update_upload(upload.id, status="processing")
    logger.info(f"Processing {details.kind} upload {upload.id} '{details.title}' for artist {artist_id}")

    try:
        if isinstance(details, TrackUploadDetails):
            track_id, album_id = _publish_track(store, artist_id, details)
        else:
            track_id, album_id = _publish_album(store, artist_id, details)
    except Exception as e:
        store.update_upload(upload.id, status="failed", error_message=str(e))
        logger.warning(f"Upload {upload.id} failed: {e}")
        raise

    return store.update_upload(
        upload.id, status="completed", track_id=track_id, album_id=album_id
    )
