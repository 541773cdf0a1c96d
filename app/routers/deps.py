"""Shared FastAPI dependencies: caller identity, media store, staged uploads."""

from __future__ import annotations

import asyncio
import shutil
import uuid
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ValidationFailed
from app.core.ids import EntityId, parse_id
from app.db.models import User
from app.db.session import get_session
from app.services.auth_guard import extract_credential, resolve_identity
from app.services.media_store import MediaStore, build_media_store
from app.services.pagination import PageParams


async def get_current_user(request: Request, session: AsyncSession = Depends(get_session)) -> User:
    """Authentication guard: reject the request unless a valid access token is presented."""

    token = extract_credential(cookies=request.cookies, authorization=request.headers.get("Authorization"))
    user = await resolve_identity(session, token)
    request.state.user = user
    return user


async def get_optional_user(request: Request, session: AsyncSession = Depends(get_session)) -> User | None:
    """Like :func:`get_current_user`, but anonymous requests pass through as ``None``."""

    token = extract_credential(cookies=request.cookies, authorization=request.headers.get("Authorization"))
    if token is None:
        return None
    user = await resolve_identity(session, token)
    request.state.user = user
    return user


@lru_cache
def _default_media_store() -> MediaStore:
    return build_media_store(settings)


def get_media_store() -> MediaStore:
    return _default_media_store()


def page_params(page: str | None = None, limit: str | None = None) -> PageParams:
    return PageParams.normalize(page, limit)


def path_id(value: str, label: str) -> EntityId:
    return parse_id(value, label=label)


async def stage_upload(upload: UploadFile | None, *, required: bool = False, label: str = "file") -> Path | None:
    """Persist an uploaded file under the temp directory for the media store to pick up."""

    if upload is None or not upload.filename:
        if required:
            raise ValidationFailed(f"{label.capitalize()} is required")
        return None

    staging_dir = Path(settings.upload_tmp_dir)
    suffix = Path(upload.filename).suffix.lower()
    destination = staging_dir / f"{uuid.uuid4().hex}{suffix}"

    def _write() -> None:
        staging_dir.mkdir(parents=True, exist_ok=True)
        with destination.open("wb") as handle:
            shutil.copyfileobj(upload.file, handle)

    await asyncio.to_thread(_write)
    return destination


def discard_staged(*paths: Path | None) -> None:
    """Remove staged uploads the media store never consumed."""

    for path in paths:
        if path is not None:
            path.unlink(missing_ok=True)
