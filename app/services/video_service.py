"""Video publishing, editing and removal."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, NotFound, ValidationFailed
from app.core.ids import EntityId
from app.db.models import Comment, LikeTargetKind, PlaylistVideo, User, Video, WatchHistoryEntry
from app.db.upserts import upsert
from app.services.engagement import delete_likes_for
from app.services.media_store import MediaStore, delete_quietly
from app.services.ownership import ensure_owner, is_authorized

logger = logging.getLogger(__name__)


async def get_video_or_404(session: AsyncSession, video_id: EntityId) -> Video:
    video = await session.get(Video, video_id)
    if video is None:
        raise NotFound("Video not found")
    return video


def ensure_visible(video: Video, viewer: User | None) -> None:
    """Unpublished videos are only visible to their owner."""

    if video.is_published:
        return
    if viewer is None or not is_authorized(viewer, video.owner_id):
        raise Forbidden("You are not authorized to see this video")


async def publish_video(
    session: AsyncSession,
    owner: User,
    *,
    title: str | None,
    description: str | None,
    video_path: Path | None,
    thumbnail_path: Path | None,
    media_store: MediaStore,
) -> Video:
    if not title or not title.strip():
        raise ValidationFailed("Title is required")
    if video_path is None:
        raise ValidationFailed("Video file is missing")
    if thumbnail_path is None:
        raise ValidationFailed("Thumbnail file is missing")

    video_asset = await media_store.upload(video_path, resource_type="video")
    thumbnail_asset = await media_store.upload(thumbnail_path, resource_type="image")

    video = Video(
        owner_id=owner.id,
        title=title.strip(),
        description=(description or "").strip(),
        video_url=video_asset.url,
        video_public_id=video_asset.public_id,
        thumbnail_url=thumbnail_asset.url,
        thumbnail_public_id=thumbnail_asset.public_id,
        duration=video_asset.duration or 0.0,
        is_published=True,
    )
    session.add(video)
    await session.flush()
    logger.info("Published video", extra={"video_id": str(video.id), "owner_id": str(owner.id)})
    return video


async def record_view(session: AsyncSession, video: Video, viewer: User | None) -> None:
    """Count a view and move the video to the end of the viewer's watch history."""

    # views do not count as edits for updated_at
    await session.execute(
        update(Video)
        .where(Video.id == video.id)
        .values(views=Video.views + 1, updated_at=Video.updated_at)
        .execution_options(synchronize_session=False)
    )
    if viewer is not None:
        last_position = await session.scalar(
            select(func.max(WatchHistoryEntry.position)).where(WatchHistoryEntry.user_id == viewer.id)
        )
        await upsert(
            session,
            WatchHistoryEntry.__table__,
            {
                "user_id": viewer.id,
                "video_id": video.id,
                "position": (last_position or 0) + 1,
                "watched_at": datetime.now(timezone.utc),
            },
            conflict_columns=["user_id", "video_id"],
            update_columns=["position", "watched_at"],
        )
    await session.flush()
    await session.refresh(video, attribute_names=["views"])



async def update_video(
    session: AsyncSession,
    user: User,
    video_id: EntityId,
    *,
    title: str | None = None,
    description: str | None = None,
    thumbnail_path: Path | None = None,
    media_store: MediaStore,
) -> Video:
    video = await get_video_or_404(session, video_id)
    ensure_owner(user, video, action="update")

    if title is not None and not title.strip():
        raise ValidationFailed("Title cannot be empty")
    if title is None and description is None and thumbnail_path is None:
        raise ValidationFailed("Nothing to update")

    previous_thumbnail = None
    if thumbnail_path is not None:
        asset = await media_store.upload(thumbnail_path, resource_type="image")
        previous_thumbnail = video.thumbnail_public_id
        video.thumbnail_url = asset.url
        video.thumbnail_public_id = asset.public_id
    if title is not None:
        video.title = title.strip()
    if description is not None:
        video.description = description.strip()

    await session.flush()
    await delete_quietly(media_store, previous_thumbnail)
    return video


async def toggle_publish_status(session: AsyncSession, user: User, video_id: EntityId) -> Video:
    video = await get_video_or_404(session, video_id)
    ensure_owner(user, video, action="change the publish status of")
    video.is_published = not video.is_published
    await session.flush()
    logger.info("Video publish status changed", extra={"video_id": str(video.id), "published": video.is_published})
    return video


async def delete_video(session: AsyncSession, user: User, video_id: EntityId, *, media_store: MediaStore) -> None:
    """Delete a video with everything that hangs off it."""

    video = await get_video_or_404(session, video_id)
    ensure_owner(user, video, action="delete")

    comment_ids = list(await session.scalars(select(Comment.id).where(Comment.video_id == video.id)))
    await delete_likes_for(session, LikeTargetKind.COMMENT, comment_ids)
    await delete_likes_for(session, LikeTargetKind.VIDEO, [video.id])
    await session.execute(delete(Comment).where(Comment.video_id == video.id))
    await session.execute(delete(PlaylistVideo).where(PlaylistVideo.video_id == video.id))
    await session.execute(delete(WatchHistoryEntry).where(WatchHistoryEntry.video_id == video.id))

    video_public_id, thumbnail_public_id = video.video_public_id, video.thumbnail_public_id
    await session.delete(video)
    await session.flush()

    await delete_quietly(media_store, video_public_id, resource_type="video")
    await delete_quietly(media_store, thumbnail_public_id)
    logger.info("Deleted video", extra={"video_id": str(video_id), "owner_id": str(user.id)})
