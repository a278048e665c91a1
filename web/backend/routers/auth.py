from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger

from tunestream.domain.accounts import authenticate, register_user
from tunestream.domain.models import User
from tunestream.domain.store import CatalogStore

from ..deps import get_current_user, get_player_hub, get_store
from ..player_hub import PlayerHub
from ..schemas import LoginRequest, RegisterRequest, UserResponse

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    request: Request,
    body: RegisterRequest,
    store: CatalogStore = Depends(get_store),
):
    """Create an account and log it in."""
    user = register_user(
        store,
        username=body.username,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
        display_name=body.display_name,
        role=body.role,
    )
    request.session["user_id"] = user.id
    return UserResponse.from_domain(user)


@router.post("/login", response_model=UserResponse)
async def login(
    request: Request,
    body: LoginRequest,
    store: CatalogStore = Depends(get_store),
):
    user = authenticate(store, body.username, body.password)
    request.session["user_id"] = user.id
    logger.info(f"User {user.id} logged in")
    return UserResponse.from_domain(user)


@router.post("/logout")
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    hub: PlayerHub = Depends(get_player_hub),
):
    if user is not None:
        hub.remove(user.id)
    request.session.clear()
    return {"success": True}


@router.get("/user", response_model=UserResponse)
async def current_user(user: User = Depends(get_current_user)):
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized - Login required")
    return UserResponse.from_domain(user)
