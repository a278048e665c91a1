from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from tunestream.domain.models import Track, User
from tunestream.domain.playback import PlaybackResult
from tunestream.domain.store import CatalogStore

from ..deps import get_player_hub, get_store, require_user
from ..player_hub import PlayerHub, PlayerSession
from ..schemas import (
    ElementStateResponse,
    PlaybackResultResponse,
    PlayerEventRequest,
    PlayerStateResponse,
    PlayRequest,
    PreviewLimitResponse,
    QueueAddRequest,
    RepeatRequest,
    SeekRequest,
    VolumeRequest,
    to_plain,
)

router = APIRouter(prefix="/player")


def get_session(
    user: User = Depends(require_user), hub: PlayerHub = Depends(get_player_hub)
) -> PlayerSession:
    return hub.get(user.id)


def _state(session: PlayerSession, drain: bool = False) -> PlayerStateResponse:
    snapshot = session.controller.snapshot()
    notifications, errors = session.drain() if drain else ([], [])
    element = session.element

    return PlayerStateResponse.from_domain(
        snapshot,
        transport=snapshot.transport.value,
        element=ElementStateResponse(
            src=element.src,
            current_time=element.current_time,
            volume=element.volume,
            paused=element.paused,
        ),
        notifications=[PreviewLimitResponse.from_domain(n) for n in notifications],
        errors=[PlaybackResultResponse.from_domain(e) for e in errors],
    )


def _result(result: Optional[PlaybackResult]) -> Optional[PlaybackResultResponse]:
    if result is None:
        return None
    return PlaybackResultResponse.model_validate(to_plain(result))


def _require_track(store: CatalogStore, track_id: int) -> Track:
    track = store.get_track(track_id)
    if track is None:
        raise HTTPException(status_code=404, detail="Track not found")
    return track


def _resolve_tracks(store: CatalogStore, body: PlayRequest, user: User) -> list[Track]:
    """Tracks named by a play request, in play order."""
    if body.playlist_id is not None:
        playlist = store.get_playlist(body.playlist_id)
        if playlist is None:
            raise HTTPException(status_code=404, detail="Playlist not found")
        if not playlist.is_readable_by(user.id):
            raise HTTPException(status_code=403, detail="Access denied")
        return [entry.track for entry in playlist.tracks]
    if body.album_id is not None:
        if store.get_album(body.album_id) is None:
            raise HTTPException(status_code=404, detail="Album not found")
        return store.get_album_tracks(body.album_id)
    return store.get_tracks(body.track_ids or [])


@router.get("/state", response_model=PlayerStateResponse)
async def get_state(session: PlayerSession = Depends(get_session)):
    """Current state plus notifications and errors since the last poll."""
    return _state(session, drain=True)


@router.post("/play", response_model=PlaybackResultResponse)
async def play(
    body: Optional[PlayRequest] = None,
    session: PlayerSession = Depends(get_session),
    store: CatalogStore = Depends(get_store),
    user: User = Depends(require_user),
):
    """
    Start playback.

    With ``trackIds``, ``playlistId`` or ``albumId`` the list becomes the
    queue starting at ``startIndex``. With ``trackId`` that track replaces
    the current one and the queue is kept. An empty body resumes.
    """
    body = body or PlayRequest()
    controller = session.controller

    if body.track_ids is not None or body.playlist_id is not None or body.album_id is not None:
        tracks = _resolve_tracks(store, body, user)
        if not tracks:
            raise HTTPException(status_code=400, detail="Nothing to play")
        if body.start_index >= len(tracks):
            raise HTTPException(status_code=400, detail="Start index out of range")
        result = await controller.play_tracks(tracks, body.start_index, shuffle=body.shuffle)
    elif body.track_id is not None:
        result = await controller.load(_require_track(store, body.track_id))
    else:
        result = await controller.play()

    return _result(result)


@router.post("/pause", response_model=PlayerStateResponse)
async def pause(session: PlayerSession = Depends(get_session)):
    session.controller.pause()
    return _state(session)


@router.post("/toggle", response_model=PlaybackResultResponse)
async def toggle(session: PlayerSession = Depends(get_session)):
    if session.controller.current_track is None:
        raise HTTPException(status_code=400, detail="No track loaded")
    return _result(await session.controller.toggle())


@router.post("/next", response_model=PlayerStateResponse)
async def next_track(session: PlayerSession = Depends(get_session)):
    await session.controller.next_track()
    return _state(session)


@router.post("/previous", response_model=PlayerStateResponse)
async def previous_track(session: PlayerSession = Depends(get_session)):
    await session.controller.prev_track()
    return _state(session)


@router.post("/seek", response_model=PlayerStateResponse)
async def seek(body: SeekRequest, session: PlayerSession = Depends(get_session)):
    session.controller.seek(body.position)
    return _state(session)


@router.post("/volume", response_model=PlayerStateResponse)
async def set_volume(body: VolumeRequest, session: PlayerSession = Depends(get_session)):
    session.controller.set_volume(body.volume)
    return _state(session)


@router.post("/mute", response_model=PlayerStateResponse)
async def toggle_mute(session: PlayerSession = Depends(get_session)):
    session.controller.toggle_mute()
    return _state(session)


@router.post("/shuffle", response_model=PlayerStateResponse)
async def toggle_shuffle(session: PlayerSession = Depends(get_session)):
    session.controller.toggle_shuffle()
    return _state(session)


@router.post("/repeat", response_model=PlayerStateResponse)
async def repeat(
    body: Optional[RepeatRequest] = None, session: PlayerSession = Depends(get_session)
):
    if body is None or body.mode is None:
        session.controller.cycle_repeat_mode()
    else:
        session.controller.set_repeat_mode(body.mode)
    return _state(session)


@router.post("/preview/exit", response_model=PlayerStateResponse)
async def exit_preview(session: PlayerSession = Depends(get_session)):
    session.controller.exit_preview_mode()
    return _state(session)


@router.post("/queue", response_model=PlayerStateResponse)
async def add_to_queue(
    body: QueueAddRequest,
    session: PlayerSession = Depends(get_session),
    store: CatalogStore = Depends(get_store),
):
    session.controller.add_to_queue(_require_track(store, body.track_id))
    return _state(session)


@router.delete("/queue", response_model=PlayerStateResponse)
async def clear_queue(session: PlayerSession = Depends(get_session)):
    session.controller.clear_queue()
    return _state(session)


@router.delete("/queue/{index}", response_model=PlayerStateResponse)
async def remove_from_queue(index: int, session: PlayerSession = Depends(get_session)):
    try:
        session.controller.remove_from_queue(index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Queue entry not found")
    return _state(session)


@router.post("/events", response_model=PlayerStateResponse)
async def element_event(
    body: PlayerEventRequest, session: PlayerSession = Depends(get_session)
):
    """Events reported by the browser's audio element."""
    controller = session.controller

    if body.type in ("timeupdate", "seekend") and body.current_time is None:
        raise HTTPException(status_code=400, detail=f"{body.type} requires currentTime")

    if body.type == "timeupdate":
        controller.on_time_update(body.current_time)
    elif body.type == "loadedmetadata":
        controller.on_loaded_metadata(body.duration or 0)
    elif body.type == "ended":
        await controller.on_track_end()
    elif body.type == "loadstart":
        controller.on_load_start()
    elif body.type == "error":
        controller.on_element_error(body.message or "Media error")
    elif body.type == "seekstart":
        controller.begin_seek()
    elif body.type == "seekend":
        controller.end_seek(body.current_time)

    logger.trace(f"Player event {body.type}")
    return _state(session)
