"""Channel subscription endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from app.db.session import get_session
from app.routers.deps import get_current_user, page_params, path_id
from app.schema.common import Page, ToggleResponse
from app.schema.user import ChannelSummary
from app.services import aggregation, engagement
from app.services.pagination import PageParams

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/c/{channel_id}", response_model=ToggleResponse)
async def toggle_subscription(
    channel_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ToggleResponse:
    result = await engagement.toggle_subscription(session, user.id, path_id(channel_id, "channel id"))
    await session.commit()
    return ToggleResponse(active=result.active)


@router.get("/c/{channel_id}", response_model=Page[ChannelSummary])
async def channel_subscribers(
    channel_id: str,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
) -> Page[ChannelSummary]:
    return await aggregation.channel_subscribers(session, path_id(channel_id, "channel id"), params)


@router.get("/u/{subscriber_id}", response_model=Page[ChannelSummary])
async def subscribed_channels(
    subscriber_id: str,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
) -> Page[ChannelSummary]:
    return await aggregation.subscribed_channels(session, path_id(subscriber_id, "subscriber id"), params)
