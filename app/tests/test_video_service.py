"""Tests for publishing, editing, visibility and deletion of videos."""

from __future__ import annotations

import asyncio
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.errors import Forbidden, NotFound, ValidationFailed
from app.db.models import Base, Comment, Like, LikeTargetKind, PlaylistVideo, Video, WatchHistoryEntry
from app.db.session import create_engine
from app.services import engagement, playlist_service, video_service
from app.services.engagement import LikeTarget
from app.tests.factories import make_comment, make_user, make_video

pytest_plugins = ("pytest_asyncio",)


def _staged(tmp_path, name: str):
    path = tmp_path / name
    path.write_bytes(b"media")
    return path


@pytest.mark.asyncio
async def test_publish_video_uploads_both_files(session, media_store, tmp_path):
    owner = await make_user(session, "creator")

    video = await video_service.publish_video(
        session,
        owner,
        title=" Launch ",
        description="first upload",
        video_path=_staged(tmp_path, "clip.mp4"),
        thumbnail_path=_staged(tmp_path, "thumb.png"),
        media_store=media_store,
    )

    assert video.title == "Launch"
    assert video.duration == 42.5
    assert video.is_published is True
    assert video.video_url.startswith("https://media.test/video/")
    assert len(media_store.uploaded) == 2


@pytest.mark.asyncio
async def test_publish_video_requires_title_and_files(session, media_store, tmp_path):
    owner = await make_user(session, "creator")

    with pytest.raises(ValidationFailed):
        await video_service.publish_video(
            session,
            owner,
            title=" ",
            description="",
            video_path=_staged(tmp_path, "clip.mp4"),
            thumbnail_path=_staged(tmp_path, "thumb.png"),
            media_store=media_store,
        )
    with pytest.raises(ValidationFailed, match="Thumbnail"):
        await video_service.publish_video(
            session,
            owner,
            title="t",
            description="",
            video_path=_staged(tmp_path, "clip.mp4"),
            thumbnail_path=None,
            media_store=media_store,
        )
    assert media_store.uploaded == []


@pytest.mark.asyncio
async def test_unpublished_video_visible_only_to_owner(session):
    owner = await make_user(session, "creator")
    other = await make_user(session, "other")
    video = await make_video(session, owner, published=False)

    video_service.ensure_visible(video, owner)
    with pytest.raises(Forbidden):
        video_service.ensure_visible(video, other)
    with pytest.raises(Forbidden):
        video_service.ensure_visible(video, None)


@pytest.mark.asyncio
async def test_update_and_toggle_publish_are_owner_only(session, media_store, tmp_path):
    owner = await make_user(session, "creator")
    other = await make_user(session, "other")
    video = await make_video(session, owner)
    old_thumbnail = video.thumbnail_public_id

    with pytest.raises(Forbidden):
        await video_service.update_video(session, other, video.id, title="hijack", media_store=media_store)
    with pytest.raises(ValidationFailed):
        await video_service.update_video(session, owner, video.id, media_store=media_store)

    updated = await video_service.update_video(
        session,
        owner,
        video.id,
        title="Renamed",
        thumbnail_path=_staged(tmp_path, "new.png"),
        media_store=media_store,
    )
    assert updated.title == "Renamed"
    assert media_store.deleted == [(old_thumbnail, "image")]

    toggled = await video_service.toggle_publish_status(session, owner, video.id)
    assert toggled.is_published is False
    with pytest.raises(Forbidden):
        await video_service.toggle_publish_status(session, other, video.id)


@pytest.mark.asyncio
async def test_delete_video_removes_dependents(session, media_store):
    owner = await make_user(session, "creator")
    fan = await make_user(session, "fan")
    video = await make_video(session, owner)
    comment = await make_comment(session, fan, video)
    await engagement.toggle_like(session, fan.id, LikeTarget(kind=LikeTargetKind.VIDEO, target_id=video.id))
    await engagement.toggle_like(session, fan.id, LikeTarget(kind=LikeTargetKind.COMMENT, target_id=comment.id))
    playlist = await playlist_service.create_playlist(session, fan, name="Saved", description=None)
    await playlist_service.add_video(session, fan, playlist.id, video.id)
    await video_service.record_view(session, video, fan)

    with pytest.raises(Forbidden):
        await video_service.delete_video(session, fan, video.id, media_store=media_store)

    video_public_id = video.video_public_id
    await video_service.delete_video(session, owner, video.id, media_store=media_store)

    for model in (Video, Comment, Like, PlaylistVideo, WatchHistoryEntry):
        assert await session.scalar(select(func.count()).select_from(model)) == 0
    assert (video_public_id, "video") in media_store.deleted

    with pytest.raises(NotFound):
        await video_service.get_video_or_404(session, uuid.uuid4())


async def _history(session, viewer):
    rows = await session.execute(
        select(WatchHistoryEntry.video_id, WatchHistoryEntry.position)
        .where(WatchHistoryEntry.user_id == viewer.id)
        .order_by(WatchHistoryEntry.position)
    )
    return [tuple(row) for row in rows]


@pytest.mark.asyncio
async def test_repeat_view_moves_existing_history_row_to_the_end(session):
    owner = await make_user(session, "creator")
    fan = await make_user(session, "fan")
    first = await make_video(session, owner, title="first")
    second = await make_video(session, owner, title="second")

    await video_service.record_view(session, first, fan)
    await video_service.record_view(session, second, fan)
    await video_service.record_view(session, first, fan)

    assert await _history(session, fan) == [(second.id, 2), (first.id, 3)]
    assert first.views == 2


@pytest.mark.asyncio
async def test_record_view_leaves_updated_at_untouched(session):
    owner = await make_user(session, "creator")
    video = await make_video(session, owner)
    await session.refresh(video, attribute_names=["updated_at"])
    before = video.updated_at

    await video_service.record_view(session, video, None)
    await session.refresh(video, attribute_names=["updated_at"])

    assert video.views == 1
    assert video.updated_at == before


@pytest.mark.asyncio
async def test_overlapping_views_by_one_viewer_keep_one_history_row(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'views.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async with SessionLocal() as setup:
        owner = await make_user(setup, "creator")
        fan = await make_user(setup, "fan")
        video = await make_video(setup, owner)
        await setup.commit()

    async def _worker() -> None:
        async with SessionLocal() as session:
            await video_service.record_view(session, await session.get(Video, video.id), fan)
            await session.commit()

    try:
        await asyncio.gather(_worker(), _worker())
        async with SessionLocal() as check:
            history = await _history(check, fan)
            views = await check.scalar(select(Video.views).where(Video.id == video.id))
    finally:
        await engine.dispose()

    assert views == 2
    assert [video_id for video_id, _ in history] == [video.id]
