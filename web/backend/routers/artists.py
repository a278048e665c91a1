from typing import Union

from fastapi import APIRouter, Body, Depends, Query

from tunestream.domain.artists import (
    AlbumUploadDetails,
    TrackUploadDetails,
    UploadedTrack,
    get_artist_analytics,
    process_upload,
)
from tunestream.domain.models import User
from tunestream.domain.store import CatalogStore

from ..deps import get_store, require_artist, require_user
from ..schemas import (
    AlbumUploadRequest,
    AnalyticsResponse,
    FollowResponse,
    TrackUploadRequest,
    UploadResponse,
)

router = APIRouter()


@router.post("/artists/{artist_id}/follow", response_model=FollowResponse)
async def follow(
    artist_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    store.follow_artist(user.id, artist_id)
    return FollowResponse(
        artist_id=artist_id,
        following=True,
        follower_count=store.get_follower_count(artist_id),
    )


@router.delete("/artists/{artist_id}/follow", response_model=FollowResponse)
async def unfollow(
    artist_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    store.unfollow_artist(user.id, artist_id)
    return FollowResponse(
        artist_id=artist_id,
        following=False,
        follower_count=store.get_follower_count(artist_id),
    )


@router.get("/artist/uploads", response_model=list[UploadResponse])
async def my_uploads(
    artist: User = Depends(require_artist), store: CatalogStore = Depends(get_store)
):
    return [UploadResponse.from_domain(u) for u in store.get_artist_uploads(artist.artist_id)]


def _to_details(body):
    if isinstance(body, TrackUploadRequest):
        return TrackUploadDetails(**body.model_dump())
    data = body.model_dump()
    data["tracks"] = [UploadedTrack(**track) for track in data["tracks"]]
    return AlbumUploadDetails(**data)


@router.post("/artist/uploads", response_model=UploadResponse, status_code=201)
async def create_upload(
    body: Union[TrackUploadRequest, AlbumUploadRequest] = Body(..., discriminator="kind"),
    artist: User = Depends(require_artist),
    store: CatalogStore = Depends(get_store),
):
    """Publish a track or an album. A failed upload is kept with its error."""
    upload = process_upload(store, artist.artist_id, _to_details(body))
    return UploadResponse.from_domain(upload)


@router.get("/artist/analytics", response_model=AnalyticsResponse)
async def analytics(
    period: str = Query(default="all"),
    artist: User = Depends(require_artist),
    store: CatalogStore = Depends(get_store),
):
    return AnalyticsResponse.from_domain(
        get_artist_analytics(store, artist.artist_id, period=period)
    )
