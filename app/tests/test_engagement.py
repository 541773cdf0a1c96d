"""Tests for like and subscription toggles."""

from __future__ import annotations

import asyncio
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.errors import NotFound, ValidationFailed
from app.db.models import Base, Like, LikeTargetKind, Subscription
from app.db.session import create_engine
from app.services import aggregation, engagement
from app.services.engagement import LikeTarget
from app.tests.factories import make_comment, make_tweet, make_user, make_video

pytest_plugins = ("pytest_asyncio",)


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_like_toggle_flips_each_call(session):
    owner = await make_user(session, "owner")
    fan = await make_user(session, "fan")
    video = await make_video(session, owner)
    target = LikeTarget(kind=LikeTargetKind.VIDEO, target_id=video.id)

    states = [(await engagement.toggle_like(session, fan.id, target)).active for _ in range(3)]

    assert states == [True, False, True]
    assert await _count(session, Like) == 1


@pytest.mark.asyncio
async def test_likes_are_keyed_by_target_kind(session):
    owner = await make_user(session, "owner")
    video = await make_video(session, owner)
    comment = await make_comment(session, owner, video)
    tweet = await make_tweet(session, owner)

    for kind, target_id in (
        (LikeTargetKind.VIDEO, video.id),
        (LikeTargetKind.COMMENT, comment.id),
        (LikeTargetKind.TWEET, tweet.id),
    ):
        result = await engagement.toggle_like(session, owner.id, LikeTarget(kind=kind, target_id=target_id))
        assert result.active is True

    kinds = set(await session.scalars(select(Like.target_kind)))
    assert kinds == {"video", "comment", "tweet"}


@pytest.mark.asyncio
async def test_like_on_missing_target_is_not_found(session):
    fan = await make_user(session, "fan")

    with pytest.raises(NotFound, match="Comment not found"):
        await engagement.toggle_like(session, fan.id, LikeTarget(kind=LikeTargetKind.COMMENT, target_id=uuid.uuid4()))
    assert await _count(session, Like) == 0


@pytest.mark.asyncio
async def test_subscription_toggle_updates_channel_profile(session):
    channel = await make_user(session, "channel")
    viewer = await make_user(session, "viewer")

    first = await engagement.toggle_subscription(session, viewer.id, channel.id)
    profile = await aggregation.channel_profile(session, "channel", viewer)
    assert first.active is True
    assert profile.subscriber_count == 1
    assert profile.is_subscribed is True

    second = await engagement.toggle_subscription(session, viewer.id, channel.id)
    profile = await aggregation.channel_profile(session, "channel", viewer)
    assert second.active is False
    assert profile.subscriber_count == 0
    assert profile.is_subscribed is False


@pytest.mark.asyncio
async def test_self_subscription_is_rejected(session):
    user = await make_user(session, "narcissus")

    with pytest.raises(ValidationFailed):
        await engagement.toggle_subscription(session, user.id, user.id)
    assert await _count(session, Subscription) == 0


@pytest.mark.asyncio
async def test_subscription_to_missing_channel(session):
    user = await make_user(session, "lonely")

    with pytest.raises(NotFound, match="Channel does not exist"):
        await engagement.toggle_subscription(session, user.id, uuid.uuid4())


@pytest.mark.asyncio
async def test_delete_likes_for_removes_only_matching_targets(session):
    owner = await make_user(session, "owner")
    first = await make_tweet(session, owner, "first")
    second = await make_tweet(session, owner, "second")
    for tweet in (first, second):
        await engagement.toggle_like(session, owner.id, LikeTarget(kind=LikeTargetKind.TWEET, target_id=tweet.id))

    await engagement.delete_likes_for(session, LikeTargetKind.TWEET, [first.id])

    assert list(await session.scalars(select(Like.target_id))) == [second.id]


@pytest.mark.asyncio
async def test_concurrent_first_toggles_leave_one_row(tmp_path, monkeypatch):
    workers = 5
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'toggle.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async with SessionLocal() as setup:
        owner = await make_user(setup, "owner")
        fan = await make_user(setup, "fan")
        video = await make_video(setup, owner)
        await setup.commit()

    # every worker finishes its lookup before any of them writes
    barrier = asyncio.Barrier(workers)
    original_find = engagement._find_relation

    async def _find_then_wait(session, model, criteria):
        found = await original_find(session, model, criteria)
        await barrier.wait()
        return found

    monkeypatch.setattr(engagement, "_find_relation", _find_then_wait)
    target = LikeTarget(kind=LikeTargetKind.VIDEO, target_id=video.id)

    async def _worker() -> bool:
        async with SessionLocal() as session:
            result = await engagement.toggle_like(session, fan.id, target)
            await session.commit()
            return result.active

    try:
        results = await asyncio.gather(*(_worker() for _ in range(workers)))
        async with SessionLocal() as check:
            assert await _count(check, Like) == 1
    finally:
        await engine.dispose()

    assert results == [True] * workers
