import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import InterfaceError, OperationalError

from todo_api.api.v1.api import api_router
from todo_api.core.config import Settings, settings as default_settings
from todo_api.core.exceptions import AppError, VersionConflict
from todo_api.db.session import create_db_engine, init_db, open_ssh_tunnel
from todo_api.services.oauth import GoogleOAuthClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


def configure_logging(settings: Settings) -> None:
    # Timestamps carry a Z suffix, so render them in UTC
    logging.Formatter.converter = time.gmtime
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        content = {"detail": exc.message, "code": exc.code}
        headers = None
        if isinstance(exc, VersionConflict) and exc.current_version is not None:
            content["current_version"] = exc.current_version
            headers = {"ETag": f'"{exc.current_version}"'}
        if exc.status_code == 401:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def store_error_handler(request: Request, exc: Exception):
        # The request's transaction has already been rolled back with its session
        logger.error("Database unavailable while handling %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={"detail": "Service temporarily unavailable, please retry", "code": "store_unavailable"},
            headers={"Retry-After": "1"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "internal_error"})


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    oauth_client: Optional[GoogleOAuthClient] = None,
) -> FastAPI:
    """
    Build the application.

    The engine is created from settings unless one is passed in; it is the only
    handle to the store and lives on app.state for the request dependencies.
    """
    settings = settings or default_settings
    configure_logging(settings)

    tunnel = None
    if engine is None:
        if settings.USE_SSH:
            tunnel = open_ssh_tunnel(settings)
        engine = create_db_engine(settings, tunnel)
    init_db(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        engine.dispose()
        if tunnel is not None:
            tunnel.stop()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.oauth_client = oauth_client or GoogleOAuthClient(settings)

    register_exception_handlers(app)

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Authorization", "Content-Type", "If-Match", "If-None-Match"],
        expose_headers=["ETag"],
        max_age=300,
    )

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app
