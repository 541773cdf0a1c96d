"""Tweet endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from app.db.session import get_session
from app.routers.deps import get_current_user, page_params, path_id
from app.schema.common import MessageResponse, Page
from app.schema.tweet import TweetRequest, TweetResponse, TweetView
from app.services import aggregation, tweet_service
from app.services.pagination import PageParams

router = APIRouter(prefix="/tweets", tags=["tweets"])


@router.post("", response_model=TweetResponse, status_code=status.HTTP_201_CREATED)
async def create_tweet(
    payload: TweetRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TweetResponse:
    tweet = await tweet_service.create_tweet(session, user, payload.content)
    await session.commit()
    return TweetResponse.model_validate(tweet)


@router.get("/user/{user_id}", response_model=Page[TweetView])
async def user_tweets(
    user_id: str,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
) -> Page[TweetView]:
    return await aggregation.user_tweets(session, path_id(user_id, "user id"), params)


@router.patch("/{tweet_id}", response_model=TweetResponse)
async def update_tweet(
    tweet_id: str,
    payload: TweetRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TweetResponse:
    tweet = await tweet_service.update_tweet(session, user, path_id(tweet_id, "tweet id"), payload.content)
    await session.commit()
    return TweetResponse.model_validate(tweet)


@router.delete("/{tweet_id}", response_model=MessageResponse)
async def delete_tweet(
    tweet_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await tweet_service.delete_tweet(session, user, path_id(tweet_id, "tweet id"))
    await session.commit()
    return MessageResponse(message="Tweet deleted successfully")
