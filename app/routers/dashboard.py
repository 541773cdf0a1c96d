"""Creator dashboard: channel totals and the caller's own uploads."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from app.db.session import get_session
from app.routers.deps import get_current_user, page_params, path_id
from app.schema.common import Page
from app.schema.dashboard import ChannelStats
from app.schema.video import VideoSummary
from app.services import aggregation
from app.services.pagination import PageParams

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=ChannelStats)
async def my_channel_stats(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ChannelStats:
    return await aggregation.channel_stats(session, user.id)


@router.get("/channels/{channel_id}/stats", response_model=ChannelStats)
async def channel_stats(
    channel_id: str,
    session: AsyncSession = Depends(get_session),
) -> ChannelStats:
    return await aggregation.channel_stats(session, path_id(channel_id, "channel id"))


@router.get("/videos", response_model=Page[VideoSummary])
async def channel_videos(
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Page[VideoSummary]:
    return await aggregation.channel_videos(session, user, params)
