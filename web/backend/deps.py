from typing import Optional

from fastapi import Depends, HTTPException, Request

from tunestream.core.config import Config
from tunestream.domain.models import User
from tunestream.domain.store import CatalogStore

from .player_hub import PlayerHub


def get_config(request: Request) -> Config:
    """FastAPI dependency for configuration."""
    return request.app.state.config


def get_store(request: Request) -> CatalogStore:
    """FastAPI dependency for the catalog store."""
    return request.app.state.store


def get_player_hub(request: Request) -> PlayerHub:
    return request.app.state.player_hub


def get_current_user(
    request: Request, store: CatalogStore = Depends(get_store)
) -> Optional[User]:
    """The logged-in user, or None for anonymous requests."""
    user_id = request.session.get("user_id")
    if user_id is None:
        return None

    user = store.get_user(user_id)
    if user is None:
        # Account deleted since login
        request.session.clear()
    return user


def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized - Login required")
    return user


def require_artist(user: User = Depends(require_user)) -> User:
    if user.role != "artist" or user.artist_id is None:
        raise HTTPException(status_code=403, detail="Artist account required")
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
