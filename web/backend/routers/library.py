from fastapi import APIRouter, Depends

from tunestream.domain.accounts import download_track
from tunestream.domain.models import User
from tunestream.domain.store import CatalogStore

from ..deps import get_store, require_user
from ..schemas import AlbumResponse, TrackResponse

router = APIRouter(prefix="/me/library")


@router.get("/tracks/liked", response_model=list[TrackResponse])
async def liked_tracks(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    return [TrackResponse.from_domain(t) for t in store.get_liked_tracks(user.id)]


@router.get("/tracks/downloaded", response_model=list[TrackResponse])
async def downloaded_tracks(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    return [TrackResponse.from_domain(t) for t in store.get_downloaded_tracks(user.id)]


@router.get("/tracks/purchased", response_model=list[TrackResponse])
async def purchased_tracks(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    return [TrackResponse.from_domain(t) for t in store.get_purchased_tracks(user.id)]


@router.get("/albums/liked", response_model=list[AlbumResponse])
async def liked_albums(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    return [AlbumResponse.from_domain(a) for a in store.get_liked_albums(user.id)]


@router.get("/albums/purchased", response_model=list[AlbumResponse])
async def purchased_albums(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    return [AlbumResponse.from_domain(a) for a in store.get_purchased_albums(user.id)]


@router.post("/tracks/{track_id}/like")
async def like_track(
    track_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    store.add_track_to_library(user.id, track_id, liked=True)
    return {"message": "Track liked successfully"}


@router.delete("/tracks/{track_id}/like")
async def unlike_track(
    track_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    # Only the like goes; purchases and downloads stay
    store.remove_track_from_library(user.id, track_id, collection="liked")
    return {"message": "Track removed from likes"}


@router.post("/albums/{album_id}/like")
async def like_album(
    album_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    store.add_album_to_library(user.id, album_id, liked=True)
    return {"message": "Album liked successfully"}


@router.delete("/albums/{album_id}/like")
async def unlike_album(
    album_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    store.remove_album_from_library(user.id, album_id, collection="liked")
    return {"message": "Album removed from likes"}


@router.post("/tracks/{track_id}/download", response_model=TrackResponse)
async def download(
    track_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    """Purchased tracks, or any track on a paid tier."""
    return TrackResponse.from_domain(download_track(store, user, track_id))


@router.delete("/tracks/{track_id}/download")
async def remove_download(
    track_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    store.remove_track_from_library(user.id, track_id, collection="downloaded")
    return {"message": "Track removed from downloads"}
