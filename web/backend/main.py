from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from tunestream import __version__
from tunestream.core.config import Config, load_config
from tunestream.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from tunestream.domain.store import CatalogStore, SqliteStore

from .player_hub import PlayerHub

ERROR_STATUS = {
    NotFoundError: 404,
    AccessDeniedError: 403,
    AuthenticationError: 401,
    ValidationError: 400,
    ConflictError: 400,
}


def _register_error_handlers(app: FastAPI) -> None:
    """Every error response carries a ``{"message": ...}`` body."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    for error_type, status_code in ERROR_STATUS.items():

        async def domain_error(request: Request, exc: Exception, status_code=status_code):
            return JSONResponse(status_code=status_code, content={"message": str(exc)})

        app.add_exception_handler(error_type, domain_error)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(
    config: Optional[Config] = None, store: Optional[CatalogStore] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Configuration, loaded from disk when omitted
        store: Catalog store, a SqliteStore on the configured database when omitted
    """
    config = config or load_config()
    if store is None:
        store = SqliteStore(
            config.storage.resolve_path(),
            seed_plans=config.storage.seed_subscription_plans,
        )

    app = FastAPI(title="Tunestream API", version=__version__)
    app.state.config = config
    app.state.store = store
    app.state.player_hub = PlayerHub(store, config.player)

    app.add_middleware(
        SessionMiddleware,
        secret_key=config.server.session_secret,
        session_cookie="tunestream_session",
        max_age=config.server.session_max_age,
        same_site="lax",
        https_only=config.server.https_only,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # Include routers
    from web.backend.routers import artists, auth, catalog, library, me, player, playlists

    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(catalog.router, prefix="/api", tags=["catalog"])
    app.include_router(library.router, prefix="/api", tags=["library"])
    app.include_router(playlists.router, prefix="/api", tags=["playlists"])
    app.include_router(me.router, prefix="/api", tags=["me"])
    app.include_router(artists.router, prefix="/api", tags=["artists"])
    app.include_router(player.router, prefix="/api", tags=["player"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    logger.info(f"Tunestream API ready (database={config.storage.resolve_path()})")
    return app


app = create_app()
