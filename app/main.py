"""FastAPI app entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.core.config import settings
from app.core.errors import ServiceError
from app.routers import comments, dashboard, likes, playlists, subscriptions, tweets, users, videos

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "validation_failed": status.HTTP_400_BAD_REQUEST,
    "auth_required": status.HTTP_401_UNAUTHORIZED,
    "auth_invalid": status.HTTP_401_UNAUTHORIZED,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "upload_failed": status.HTTP_502_BAD_GATEWAY,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "kind": exc.kind, "detail": exc.message},
        )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    """Build FastAPI application."""

    app = FastAPI(title="VidTube", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ServiceError, service_error_handler)

    for module in (users, videos, comments, tweets, likes, subscriptions, playlists, dashboard):
        app.include_router(module.router)

    # Local media store URLs resolve here; Cloudinary serves its own assets
    if not settings.cloudinary_enabled:
        app.mount("/media", StaticFiles(directory=settings.media_root, check_dir=False), name="media")

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
