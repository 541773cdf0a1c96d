"""Comment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from app.db.session import get_session
from app.routers.deps import get_current_user, page_params, path_id
from app.schema.comment import CommentRequest, CommentResponse, CommentView
from app.schema.common import MessageResponse, Page
from app.services import aggregation, comment_service
from app.services.pagination import PageParams

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/{video_id}", response_model=Page[CommentView])
async def list_comments(
    video_id: str,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
) -> Page[CommentView]:
    return await aggregation.video_comments(session, path_id(video_id, "video id"), params)


@router.post("/{video_id}", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    video_id: str,
    payload: CommentRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CommentResponse:
    comment = await comment_service.add_comment(session, user, path_id(video_id, "video id"), payload.content)
    await session.commit()
    return CommentResponse.model_validate(comment)


@router.patch("/c/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    payload: CommentRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CommentResponse:
    comment = await comment_service.update_comment(
        session, user, path_id(comment_id, "comment id"), payload.content
    )
    await session.commit()
    return CommentResponse.model_validate(comment)


@router.delete("/c/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await comment_service.delete_comment(session, user, path_id(comment_id, "comment id"))
    await session.commit()
    return MessageResponse(message="Comment deleted successfully")
