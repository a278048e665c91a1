from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from tunestream.core.config import Config
from tunestream.domain.models import User
from tunestream.domain.store import CatalogStore

from ..deps import get_config, get_current_user, get_store, require_admin
from ..schemas import (
    AlbumCreateRequest,
    AlbumDetailResponse,
    AlbumResponse,
    AlbumUpdateRequest,
    ArtistCreateRequest,
    ArtistDetailResponse,
    ArtistResponse,
    ArtistUpdateRequest,
    SearchResponse,
    TrackCreateRequest,
    TrackResponse,
    TrackUpdateRequest,
)

router = APIRouter()


def _page_limit(limit: Optional[int], config: Config) -> int:
    return limit if limit is not None else config.catalog.page_size


# -- Tracks --------------------------------------------------------------


@router.get("/tracks", response_model=list[TrackResponse])
async def list_tracks(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: CatalogStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    tracks = store.list_tracks(limit=_page_limit(limit, config), offset=offset)
    return [TrackResponse.from_domain(t) for t in tracks]


@router.get("/tracks/{track_id}", response_model=TrackResponse)
async def get_track(track_id: int, store: CatalogStore = Depends(get_store)):
    track = store.get_track(track_id)
    if track is None:
        raise HTTPException(status_code=404, detail="Track not found")
    return TrackResponse.from_domain(track)


@router.get("/tracks/{track_id}/similar", response_model=list[TrackResponse])
async def similar_tracks(
    track_id: int,
    store: CatalogStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    """Other tracks by the same artist."""
    track = store.get_track(track_id)
    if track is None:
        raise HTTPException(status_code=404, detail="Track not found")

    similar = [t for t in store.get_artist_tracks(track.artist_id) if t.id != track.id]
    return [TrackResponse.from_domain(t) for t in similar[: config.catalog.similar_tracks_limit]]


@router.post("/tracks", response_model=TrackResponse, status_code=201)
async def create_track(
    body: TrackCreateRequest,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    return TrackResponse.from_domain(store.create_track(**body.model_dump()))


@router.api_route("/tracks/{track_id}", methods=["PUT", "PATCH"], response_model=TrackResponse)
async def update_track(
    track_id: int,
    body: TrackUpdateRequest,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    track = store.update_track(track_id, **body.changes())
    if track is None:
        raise HTTPException(status_code=404, detail="Track not found")
    return TrackResponse.from_domain(track)


@router.delete("/tracks/{track_id}")
async def delete_track(
    track_id: int,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    if not store.delete_track(track_id):
        raise HTTPException(status_code=404, detail="Track not found")
    return {"success": True}


# -- Albums --------------------------------------------------------------


@router.get("/albums", response_model=list[AlbumResponse])
async def list_albums(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: CatalogStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    albums = store.list_albums(limit=_page_limit(limit, config), offset=offset)
    return [AlbumResponse.from_domain(a) for a in albums]


@router.get("/albums/{album_id}", response_model=AlbumDetailResponse)
async def get_album(album_id: int, store: CatalogStore = Depends(get_store)):
    album = store.get_album(album_id)
    if album is None:
        raise HTTPException(status_code=404, detail="Album not found")
    return AlbumDetailResponse.from_domain(album, tracks=[
        t._asdict() for t in store.get_album_tracks(album_id)
    ])


@router.post("/albums", response_model=AlbumResponse, status_code=201)
async def create_album(
    body: AlbumCreateRequest,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    fields = body.model_dump(exclude_none=True)
    return AlbumResponse.from_domain(store.create_album(**fields))


@router.api_route("/albums/{album_id}", methods=["PUT", "PATCH"], response_model=AlbumResponse)
async def update_album(
    album_id: int,
    body: AlbumUpdateRequest,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    album = store.update_album(album_id, **body.changes())
    if album is None:
        raise HTTPException(status_code=404, detail="Album not found")
    return AlbumResponse.from_domain(album)


@router.delete("/albums/{album_id}")
async def delete_album(
    album_id: int,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    if not store.delete_album(album_id):
        raise HTTPException(status_code=404, detail="Album not found")
    return {"success": True}


# -- Artists -------------------------------------------------------------


@router.get("/artists", response_model=list[ArtistResponse])
async def list_artists(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: CatalogStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    artists = store.list_artists(limit=_page_limit(limit, config), offset=offset)
    return [ArtistResponse.from_domain(a) for a in artists]


@router.get("/artists/{artist_id}", response_model=ArtistDetailResponse)
async def get_artist(
    artist_id: int,
    store: CatalogStore = Depends(get_store),
    user: Optional[User] = Depends(get_current_user),
):
    artist = store.get_artist(artist_id)
    if artist is None:
        raise HTTPException(status_code=404, detail="Artist not found")
    return ArtistDetailResponse.from_domain(
        artist,
        follower_count=store.get_follower_count(artist_id),
        is_following=store.is_following(user.id, artist_id) if user else None,
    )


@router.get("/artists/{artist_id}/albums", response_model=list[AlbumResponse])
async def get_artist_albums(artist_id: int, store: CatalogStore = Depends(get_store)):
    if store.get_artist(artist_id) is None:
        raise HTTPException(status_code=404, detail="Artist not found")
    return [AlbumResponse.from_domain(a) for a in store.get_artist_albums(artist_id)]


@router.get("/artists/{artist_id}/tracks", response_model=list[TrackResponse])
async def get_artist_tracks(artist_id: int, store: CatalogStore = Depends(get_store)):
    if store.get_artist(artist_id) is None:
        raise HTTPException(status_code=404, detail="Artist not found")
    return [TrackResponse.from_domain(t) for t in store.get_artist_tracks(artist_id)]


@router.post("/artists", response_model=ArtistResponse, status_code=201)
async def create_artist(
    body: ArtistCreateRequest,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    return ArtistResponse.from_domain(store.create_artist(**body.model_dump()))


@router.api_route("/artists/{artist_id}", methods=["PUT", "PATCH"], response_model=ArtistResponse)
async def update_artist(
    artist_id: int,
    body: ArtistUpdateRequest,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    artist = store.update_artist(artist_id, **body.changes())
    if artist is None:
        raise HTTPException(status_code=404, detail="Artist not found")
    return ArtistResponse.from_domain(artist)


@router.delete("/artists/{artist_id}")
async def delete_artist(
    artist_id: int,
    store: CatalogStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    if not store.delete_artist(artist_id):
        raise HTTPException(status_code=404, detail="Artist not found")
    return {"success": True}


# -- Discovery -----------------------------------------------------------


@router.get("/new-releases", response_model=list[TrackResponse])
async def new_releases(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    store: CatalogStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    tracks = store.get_new_releases(limit or config.catalog.new_releases_limit)
    return [TrackResponse.from_domain(t) for t in tracks]


@router.get("/search", response_model=SearchResponse)
async def search(q: Optional[str] = None, store: CatalogStore = Depends(get_store)):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query required")
    return SearchResponse.from_domain(store.search(q))
