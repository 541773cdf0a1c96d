"""Tests for the local and Cloudinary media stores."""

from __future__ import annotations

import cloudinary.exceptions
import cloudinary.uploader
import pytest

from app.core.config import Settings
from app.core.errors import UploadFailed
from app.services.media_store import (
    CloudinaryMediaStore,
    LocalMediaStore,
    build_media_store,
    delete_quietly,
)

pytest_plugins = ("pytest_asyncio",)


def _staged(tmp_path, name: str = "upload.png"):
    staging = tmp_path / "temp"
    staging.mkdir(exist_ok=True)
    path = staging / name
    path.write_bytes(b"payload")
    return path


@pytest.mark.asyncio
async def test_local_store_copies_and_discards_staged_file(tmp_path):
    store = LocalMediaStore(tmp_path / "media")
    staged = _staged(tmp_path, "clip.MP4")

    asset = await store.upload(staged)

    assert asset.resource_type == "video"
    assert asset.public_id.startswith("video/") and asset.public_id.endswith(".mp4")
    assert asset.url == f"/media/{asset.public_id}"
    assert (tmp_path / "media" / asset.public_id).read_bytes() == b"payload"
    assert not staged.exists()

    await store.delete(asset.public_id, resource_type="video")
    assert not (tmp_path / "media" / asset.public_id).exists()


@pytest.mark.asyncio
async def test_local_store_refuses_paths_outside_root(tmp_path):
    store = LocalMediaStore(tmp_path / "media")
    (tmp_path / "media").mkdir()

    with pytest.raises(UploadFailed):
        await store.delete("../escape.txt")
    with pytest.raises(UploadFailed):
        await store.upload(tmp_path / "missing.png")


@pytest.mark.asyncio
async def test_cloudinary_upload_and_delete(tmp_path, monkeypatch):
    calls: list[tuple[str, str, dict]] = []

    def fake_upload(file, **options):
        calls.append(("upload", file, options))
        return {
            "secure_url": "https://res.cloudinary.com/demo/video/upload/v1/abc.mp4",
            "public_id": "abc",
            "resource_type": "video",
            "duration": 12.5,
        }

    def fake_destroy(public_id, **options):
        calls.append(("destroy", public_id, options))
        return {"result": "ok"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)

    store = CloudinaryMediaStore(cloud_name="demo", api_key="key", api_secret="secret")
    staged = _staged(tmp_path, "clip.mp4")

    asset = await store.upload(staged, resource_type="video")
    await store.delete(asset.public_id, resource_type="video")

    assert (asset.url, asset.public_id, asset.duration) == (
        "https://res.cloudinary.com/demo/video/upload/v1/abc.mp4",
        "abc",
        12.5,
    )
    assert not staged.exists()
    assert [(action, target) for action, target, _ in calls] == [("upload", str(staged)), ("destroy", "abc")]
    for _, _, options in calls:
        assert options == {
            "resource_type": "video",
            "cloud_name": "demo",
            "api_key": "key",
            "api_secret": "secret",
        }


@pytest.mark.asyncio
async def test_cloudinary_failure_still_discards_staged_file(tmp_path, monkeypatch):
    def failing(*args, **options):
        raise cloudinary.exceptions.Error("boom")

    monkeypatch.setattr(cloudinary.uploader, "upload", failing)
    monkeypatch.setattr(cloudinary.uploader, "destroy", failing)

    store = CloudinaryMediaStore(cloud_name="demo", api_key="key", api_secret="secret")
    staged = _staged(tmp_path)

    with pytest.raises(UploadFailed):
        await store.upload(staged, resource_type="image")
    # cleanup of replaced assets never fails the caller
    await delete_quietly(store, "old-avatar")

    assert not staged.exists()


@pytest.mark.asyncio
async def test_cloudinary_delete_rejects_unexpected_result(monkeypatch):
    monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id, **options: {"result": "error"})
    store = CloudinaryMediaStore(cloud_name="demo", api_key="key", api_secret="secret")

    with pytest.raises(UploadFailed):
        await store.delete("abc")

    monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id, **options: {"result": "not found"})
    await store.delete("abc")


def test_build_media_store_picks_backend(tmp_path):
    local = build_media_store(Settings(media_root=str(tmp_path), cloudinary_cloud_name=None))
    assert isinstance(local, LocalMediaStore)

    remote = build_media_store(
        Settings(cloudinary_cloud_name="demo", cloudinary_api_key="key", cloudinary_api_secret="secret")
    )
    assert isinstance(remote, CloudinaryMediaStore)
