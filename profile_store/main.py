"""FastAPI application factory and global exception handling."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from profile_store import __version__ as app_version
from profile_store.api.routes import router
from profile_store.api.schemas import ErrorResponse
from profile_store.config import Settings, get_settings
from profile_store.profiles.errors import ProfileStoreError
from profile_store.profiles.store import ProfileStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def build_store(settings: Settings) -> ProfileStore:
    return ProfileStore(
        settings.data_dir,
        settings.tmp_dir,
        images_url_prefix=settings.images_url_prefix,
        viewer_page=settings.viewer_page,
        note_preview_chars=settings.note_preview_chars,
    )


def _error(status_code: int, message: str, details: Any = None) -> JSONResponse:
    payload = ErrorResponse(error=message, details=details or [])
    return JSONResponse(status_code=status_code, content=payload.to_content())


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    store = build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.ensure_directories()
        yield

    app = FastAPI(
        title=settings.app_name,
        description="Profile records with photos, stored as files on disk.",
        version=app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.profile_store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ProfileStoreError)
    async def profile_store_exception_handler(
        request: Request, exc: ProfileStoreError
    ) -> JSONResponse:
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(400, "Invalid request", jsonable_encoder(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception(f"Server error on {request.method} {request.url.path}")
        return _error(500, "Internal server error")

    @app.get("/healthz", tags=["health"])
    async def healthz() -> dict[str, Any]:
        return {
            "status": "ok",
            "version": app_version,
            "max_photo_bytes": settings.max_photo_bytes,
        }

    app.include_router(router)
    app.mount(
        settings.images_url_prefix,
        StaticFiles(directory=settings.data_dir, check_dir=False),
        name="images",
    )
    if settings.frontend_dir is not None and settings.frontend_dir.is_dir():
        app.mount(
            "/",
            StaticFiles(directory=settings.frontend_dir, html=True),
            name="frontend",
        )
    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    application = create_application(settings)
    logger.info(f"Serving on http://{settings.host}:{settings.port}")
    uvicorn.run(
        application,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


app = create_application()
