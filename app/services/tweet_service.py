"""Tweet creation, editing and deletion."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationFailed
from app.core.ids import EntityId
from app.db.models import LikeTargetKind, Tweet, User
from app.services.engagement import delete_likes_for
from app.services.ownership import ensure_owner

logger = logging.getLogger(__name__)


def _clean_content(content: str | None) -> str:
    if content is None or not content.strip():
        raise ValidationFailed("Tweet content required")
    return content.strip()


async def get_tweet_or_404(session: AsyncSession, tweet_id: EntityId) -> Tweet:
    tweet = await session.get(Tweet, tweet_id)
    if tweet is None:
        raise NotFound("Tweet not found")
    return tweet


async def create_tweet(session: AsyncSession, user: User, content: str | None) -> Tweet:
    tweet = Tweet(owner_id=user.id, content=_clean_content(content))
    session.add(tweet)
    await session.flush()
    return tweet


async def update_tweet(session: AsyncSession, user: User, tweet_id: EntityId, content: str | None) -> Tweet:
    tweet = await get_tweet_or_404(session, tweet_id)
    ensure_owner(user, tweet, action="update")
    tweet.content = _clean_content(content)
    await session.flush()
    return tweet


async def delete_tweet(session: AsyncSession, user: User, tweet_id: EntityId) -> None:
    tweet = await get_tweet_or_404(session, tweet_id)
    ensure_owner(user, tweet, action="delete")

    await delete_likes_for(session, LikeTargetKind.TWEET, [tweet.id])
    await session.delete(tweet)
    await session.flush()
    logger.info("Deleted tweet", extra={"tweet_id": str(tweet_id), "user_id": str(user.id)})
