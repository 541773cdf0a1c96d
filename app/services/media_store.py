"""Media storage backends.

The rest of the application only threads :class:`MediaAsset` references
through; it never inspects media content. ``CloudinaryMediaStore`` goes through the
Cloudinary SDK, ``LocalMediaStore`` copies files under a local directory and is
used whenever Cloudinary credentials are not configured.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import cloudinary.exceptions
import cloudinary.uploader

from app.core.config import Settings, settings
from app.core.errors import UploadFailed

logger = logging.getLogger(__name__)

_VIDEO_SUFFIXES = {".mp4", ".mov", ".mkv", ".webm", ".avi", ".m4v"}


@dataclass(slots=True)
class MediaAsset:
    """Reference to a stored media object."""

    url: str
    public_id: str
    resource_type: str = "image"
    duration: float | None = None


class MediaStore(Protocol):
    async def upload(self, local_path: Path, *, resource_type: str = "auto") -> MediaAsset: ...

    async def delete(self, public_id: str, *, resource_type: str = "image") -> None: ...


def _discard_local_file(local_path: Path) -> None:
    try:
        local_path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Failed to remove staged upload", extra={"path": str(local_path)})


class CloudinaryMediaStore:
    """Upload and destroy assets with the Cloudinary SDK.

    The SDK is blocking, so every call runs on a worker thread.
    """

    def __init__(self, *, cloud_name: str, api_key: str, api_secret: str) -> None:
        self._credentials = {"cloud_name": cloud_name, "api_key": api_key, "api_secret": api_secret}

    async def upload(self, local_path: Path, *, resource_type: str = "auto") -> MediaAsset:
        if not local_path.is_file():
            raise UploadFailed("Upload file is missing")

        try:
            payload = await asyncio.to_thread(
                cloudinary.uploader.upload,
                str(local_path),
                resource_type=resource_type,
                **self._credentials,
            )
        except cloudinary.exceptions.Error as exc:
            logger.exception("Cloudinary upload failed", extra={"path": str(local_path)})
            raise UploadFailed("Unable to upload media") from exc
        finally:
            _discard_local_file(local_path)

        url = payload.get("secure_url") or payload.get("url")
        public_id = payload.get("public_id")
        if not url or not public_id:
            raise UploadFailed("Media store returned an incomplete response")

        duration = payload.get("duration")
        return MediaAsset(
            url=url,
            public_id=public_id,
            resource_type=payload.get("resource_type", "image"),
            duration=float(duration) if duration is not None else None,
        )

    async def delete(self, public_id: str, *, resource_type: str = "image") -> None:
        try:
            payload = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                resource_type=resource_type,
                **self._credentials,
            )
        except cloudinary.exceptions.Error as exc:
            raise UploadFailed("Unable to delete media") from exc

        if payload.get("result") not in {"ok", "not found"}:
            raise UploadFailed(f"Unable to delete media: {payload.get('result')}")


class LocalMediaStore:
    """Keep media on the local filesystem under ``root``."""

    def __init__(self, root: Path, *, base_url: str = "/media") -> None:
        self._root = root
        self._base_url = base_url.rstrip("/")

    async def upload(self, local_path: Path, *, resource_type: str = "auto") -> MediaAsset:
        if not local_path.is_file():
            raise UploadFailed("Upload file is missing")

        if resource_type == "auto":
            resource_type = "video" if local_path.suffix.lower() in _VIDEO_SUFFIXES else "image"
        public_id = f"{resource_type}/{uuid.uuid4().hex}{local_path.suffix.lower()}"
        destination = self._root / public_id

        def _copy() -> None:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, destination)

        try:
            await asyncio.to_thread(_copy)
        except OSError as exc:
            raise UploadFailed("Unable to store media") from exc
        finally:
            _discard_local_file(local_path)

        return MediaAsset(url=f"{self._base_url}/{public_id}", public_id=public_id, resource_type=resource_type)

    async def delete(self, public_id: str, *, resource_type: str = "image") -> None:
        target = (self._root / public_id).resolve()
        if self._root.resolve() not in target.parents:
            raise UploadFailed("Invalid media reference")
        try:
            await asyncio.to_thread(target.unlink, missing_ok=True)
        except OSError as exc:
            raise UploadFailed("Unable to delete media") from exc


def build_media_store(config: Settings = settings) -> MediaStore:
    """Return the configured media store, falling back to local storage."""

    if config.cloudinary_enabled:
        logger.info("Using Cloudinary media store", extra={"cloud_name": config.cloudinary_cloud_name})
        return CloudinaryMediaStore(
            cloud_name=config.cloudinary_cloud_name or "",
            api_key=config.cloudinary_api_key or "",
            api_secret=config.cloudinary_api_secret or "",
        )
    logger.info("No Cloudinary credentials configured; using local media store")
    return LocalMediaStore(Path(config.media_root))


async def delete_quietly(store: MediaStore, public_id: str | None, *, resource_type: str = "image") -> None:
    """Best-effort removal of a replaced or orphaned asset."""

    if not public_id:
        return
    try:
        await store.delete(public_id, resource_type=resource_type)
    except UploadFailed:
        logger.warning("Failed to delete media asset", extra={"public_id": public_id})
