"""Playlist management; every mutation is restricted to the playlist owner."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationFailed
from app.core.ids import EntityId
from app.db.models import Playlist, PlaylistVideo, User
from app.db.upserts import insert_if_absent
from app.services.ownership import ensure_owner
from app.services.video_service import get_video_or_404

logger = logging.getLogger(__name__)


async def get_playlist_or_404(session: AsyncSession, playlist_id: EntityId) -> Playlist:
    playlist = await session.get(Playlist, playlist_id)
    if playlist is None:
        raise NotFound("Playlist not found")
    return playlist


async def create_playlist(session: AsyncSession, user: User, *, name: str | None, description: str | None) -> Playlist:
    if name is None or not name.strip():
        raise ValidationFailed("Playlist name is required")

    playlist = Playlist(name=name.strip(), description=(description or "").strip(), owner_id=user.id)
    session.add(playlist)
    await session.flush()
    return playlist


async def update_playlist(
    session: AsyncSession,
    user: User,
    playlist_id: EntityId,
    *,
    name: str | None = None,
    description: str | None = None,
) -> Playlist:
    playlist = await get_playlist_or_404(session, playlist_id)
    ensure_owner(user, playlist, action="update")

    changes = {
        field: value.strip()
        for field, value in (("name", name), ("description", description))
        if value is not None and value.strip()
    }
    if not changes:
        raise ValidationFailed("At least one field (name or description) must be provided for update")

    for field, value in changes.items():
        setattr(playlist, field, value)
    await session.flush()
    return playlist


async def delete_playlist(session: AsyncSession, user: User, playlist_id: EntityId) -> None:
    playlist = await get_playlist_or_404(session, playlist_id)
    ensure_owner(user, playlist, action="delete")

    await session.execute(delete(PlaylistVideo).where(PlaylistVideo.playlist_id == playlist.id))
    await session.delete(playlist)
    await session.flush()
    logger.info("Deleted playlist", extra={"playlist_id": str(playlist_id), "user_id": str(user.id)})


async def _find_entry(session: AsyncSession, playlist_id: EntityId, video_id: EntityId) -> EntityId | None:
    return await session.scalar(
        select(PlaylistVideo.id).where(PlaylistVideo.playlist_id == playlist_id, PlaylistVideo.video_id == video_id)
    )


async def add_video(session: AsyncSession, user: User, playlist_id: EntityId, video_id: EntityId) -> Playlist:
    """Append a video to the playlist; adding a video that is already there is a no-op."""

    playlist = await get_playlist_or_404(session, playlist_id)
    ensure_owner(user, playlist, action="modify")
    video = await get_video_or_404(session, video_id)

    if await _find_entry(session, playlist.id, video.id) is not None:
        return playlist

    last_position = await session.scalar(
        select(func.max(PlaylistVideo.position)).where(PlaylistVideo.playlist_id == playlist.id)
    )
    created = await insert_if_absent(
        session,
        PlaylistVideo.__table__,
        {"playlist_id": playlist.id, "video_id": video.id, "position": (last_position or 0) + 1},
    )
    if not created:
        logger.info("Playlist entry added concurrently", extra={"playlist_id": str(playlist.id)})
    await session.flush()
    return playlist


async def remove_video(session: AsyncSession, user: User, playlist_id: EntityId, video_id: EntityId) -> Playlist:
    playlist = await get_playlist_or_404(session, playlist_id)
    ensure_owner(user, playlist, action="modify")

    result = await session.execute(
        delete(PlaylistVideo).where(PlaylistVideo.playlist_id == playlist.id, PlaylistVideo.video_id == video_id)
    )
    if result.rowcount == 0:
        raise NotFound("Video not found in this playlist")
    await session.flush()
    return playlist
