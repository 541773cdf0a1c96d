"""Like toggles for videos, comments and tweets."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import LikeTargetKind, User
from app.db.session import get_session
from app.routers.deps import get_current_user, page_params, path_id
from app.schema.common import Page, ToggleResponse
from app.schema.video import VideoSummary
from app.services import aggregation, engagement
from app.services.pagination import PageParams

router = APIRouter(prefix="/likes", tags=["likes"])


async def _toggle(session: AsyncSession, user: User, kind: LikeTargetKind, raw_id: str) -> ToggleResponse:
    target = engagement.LikeTarget(kind=kind, target_id=path_id(raw_id, f"{kind.value} id"))
    result = await engagement.toggle_like(session, user.id, target)
    await session.commit()
    return ToggleResponse(active=result.active)


@router.post("/toggle/v/{video_id}", response_model=ToggleResponse)
async def toggle_video_like(
    video_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ToggleResponse:
    return await _toggle(session, user, LikeTargetKind.VIDEO, video_id)


@router.post("/toggle/c/{comment_id}", response_model=ToggleResponse)
async def toggle_comment_like(
    comment_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ToggleResponse:
    return await _toggle(session, user, LikeTargetKind.COMMENT, comment_id)


@router.post("/toggle/t/{tweet_id}", response_model=ToggleResponse)
async def toggle_tweet_like(
    tweet_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ToggleResponse:
    return await _toggle(session, user, LikeTargetKind.TWEET, tweet_id)


@router.get("/videos", response_model=Page[VideoSummary])
async def liked_videos(
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Page[VideoSummary]:
    return await aggregation.liked_videos(session, user, params)
