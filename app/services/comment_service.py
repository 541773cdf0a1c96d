"""Comment creation, editing and deletion."""

from __future__ import annotations

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationFailed
from app.core.ids import EntityId
from app.db.models import Comment, LikeTargetKind, User
from app.services.engagement import delete_likes_for
from app.services.ownership import ensure_can_delete_comment, ensure_owner
from app.services.video_service import get_video_or_404

logger = logging.getLogger(__name__)


def _clean_content(content: str | None) -> str:
    if content is None or not content.strip():
        raise ValidationFailed("Comment can't be empty")
    return content.strip()


async def get_comment_or_404(session: AsyncSession, comment_id: EntityId) -> Comment:
    comment = await session.get(Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    return comment


async def add_comment(session: AsyncSession, user: User, video_id: EntityId, content: str | None) -> Comment:
    text = _clean_content(content)
    video = await get_video_or_404(session, video_id)

    comment = Comment(content=text, video_id=video.id, owner_id=user.id)
    session.add(comment)
    await session.flush()
    return comment


async def update_comment(session: AsyncSession, user: User, comment_id: EntityId, content: str | None) -> Comment:
    comment = await get_comment_or_404(session, comment_id)
    ensure_owner(user, comment, action="update")

    comment.content = _clean_content(content)
    await session.flush()
    return comment


async def delete_comment(session: AsyncSession, user: User, comment_id: EntityId) -> None:
    """Delete a comment; allowed for its author and for the owner of the video it is on."""

    comment = await get_comment_or_404(session, comment_id)
    video = await get_video_or_404(session, comment.video_id)
    ensure_can_delete_comment(user, comment, video)

    await delete_likes_for(session, LikeTargetKind.COMMENT, [comment.id])
    await session.execute(delete(Comment).where(Comment.id == comment.id))
    await session.flush()
    logger.info("Deleted comment", extra={"comment_id": str(comment_id), "user_id": str(user.id)})
