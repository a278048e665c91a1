from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from tunestream.domain.models import Playlist, User
from tunestream.domain.store import CatalogStore

from ..deps import get_current_user, get_store, require_user
from ..schemas import (
    AddPlaylistTrackRequest,
    CreatePlaylistRequest,
    PlaylistResponse,
    UpdatePlaylistRequest,
)

router = APIRouter()


def _owned_playlist(store: CatalogStore, playlist_id: int, user: User) -> Playlist:
    playlist = store.get_playlist(playlist_id)
    if playlist is None:
        raise HTTPException(status_code=404, detail="Playlist not found")
    if playlist.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return playlist


@router.get("/me/playlists", response_model=list[PlaylistResponse])
async def my_playlists(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    return [PlaylistResponse.from_domain(p) for p in store.get_user_playlists(user.id)]


@router.get("/playlists/{playlist_id}", response_model=PlaylistResponse)
async def get_playlist(
    playlist_id: int,
    store: CatalogStore = Depends(get_store),
    user: Optional[User] = Depends(get_current_user),
):
    """Public playlists are readable by anyone, private ones only by the owner."""
    playlist = store.get_playlist(playlist_id)
    if playlist is None:
        raise HTTPException(status_code=404, detail="Playlist not found")
    if not playlist.is_readable_by(user.id if user else None):
        raise HTTPException(status_code=403, detail="Access denied")
    return PlaylistResponse.from_domain(playlist)


@router.post("/playlists", response_model=PlaylistResponse, status_code=201)
async def create_playlist(
    body: CreatePlaylistRequest,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Playlist name is required")
    playlist = store.create_playlist(
        user.id, name, is_public=body.is_public, cover_image=body.cover_image
    )
    return PlaylistResponse.from_domain(playlist)


@router.put("/playlists/{playlist_id}", response_model=PlaylistResponse)
async def update_playlist(
    playlist_id: int,
    body: UpdatePlaylistRequest,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    _owned_playlist(store, playlist_id, user)
    playlist = store.update_playlist(playlist_id, **body.changes())
    return PlaylistResponse.from_domain(playlist)


@router.delete("/playlists/{playlist_id}")
async def delete_playlist(
    playlist_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    _owned_playlist(store, playlist_id, user)
    store.delete_playlist(playlist_id)
    logger.info(f"User {user.id} deleted playlist {playlist_id}")
    return {"message": "Playlist deleted successfully"}


@router.post("/playlists/{playlist_id}/tracks", response_model=PlaylistResponse)
async def add_playlist_track(
    playlist_id: int,
    body: AddPlaylistTrackRequest,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    """Insert a track at ``position``. A track already present is moved there."""
    _owned_playlist(store, playlist_id, user)
    playlist = store.add_track_to_playlist(playlist_id, body.track_id, body.position)
    return PlaylistResponse.from_domain(playlist)


@router.delete("/playlists/{playlist_id}/tracks/{track_id}", response_model=PlaylistResponse)
async def remove_playlist_track(
    playlist_id: int,
    track_id: int,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    _owned_playlist(store, playlist_id, user)
    playlist = store.remove_track_from_playlist(playlist_id, track_id)
    return PlaylistResponse.from_domain(playlist)
