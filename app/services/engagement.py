"""Idempotent like/subscription toggles.

A relation row's existence is the "active" state. A toggle looks the row up
and either deletes it or creates it. The lookup alone cannot stop two
concurrent first-time toggles from both deciding to create, so creation goes
through ``INSERT ... ON CONFLICT DO NOTHING`` and the table's unique
constraint decides: at most one row survives for an (actor, target) pair.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationFailed
from app.core.ids import EntityId
from app.db.models import Base, Comment, Like, LikeTargetKind, Subscription, Tweet, User, Video
from app.db.upserts import insert_if_absent

logger = logging.getLogger(__name__)

_TARGET_MODELS: dict[LikeTargetKind, type[Base]] = {
    LikeTargetKind.VIDEO: Video,
    LikeTargetKind.COMMENT: Comment,
    LikeTargetKind.TWEET: Tweet,
}


@dataclass(frozen=True, slots=True)
class LikeTarget:
    """Tagged reference to something that can be liked."""

    kind: LikeTargetKind
    target_id: EntityId


@dataclass(slots=True)
class ToggleResult:
    active: bool


async def _find_relation(session: AsyncSession, model: type[Base], criteria: list[Any]) -> EntityId | None:
    return await session.scalar(select(model.id).where(*criteria))


async def _toggle(session: AsyncSession, model: type[Base], values: dict[str, Any]) -> ToggleResult:
    criteria = [getattr(model, column) == value for column, value in values.items()]

    existing_id = await _find_relation(session, model, criteria)
    if existing_id is not None:
        await session.execute(delete(model).where(model.id == existing_id))
        await session.flush()
        return ToggleResult(active=False)

    created = await insert_if_absent(session, model.__table__, values)
    if not created:
        logger.info("Relation created concurrently", extra={"relation": model.__tablename__})
    await session.flush()
    return ToggleResult(active=True)


async def resolve_like_target(session: AsyncSession, target: LikeTarget) -> Base:
    model = _TARGET_MODELS[target.kind]
    entity = await session.get(model, target.target_id)
    if entity is None:
        raise NotFound(f"{target.kind.value.capitalize()} not found")
    return entity


async def toggle_like(session: AsyncSession, actor_id: EntityId, target: LikeTarget) -> ToggleResult:
    """Flip the like of ``actor_id`` on ``target``."""

    await resolve_like_target(session, target)
    result = await _toggle(
        session,
        Like,
        {"liked_by_id": actor_id, "target_kind": target.kind.value, "target_id": target.target_id},
    )
    logger.info(
        "Toggled like",
        extra={
            "user_id": str(actor_id),
            "target_kind": target.kind.value,
            "target_id": str(target.target_id),
            "active": result.active,
        },
    )
    return result


async def toggle_subscription(session: AsyncSession, subscriber_id: EntityId, channel_id: EntityId) -> ToggleResult:
    """Subscribe ``subscriber_id`` to ``channel_id``, or unsubscribe if already subscribed."""

    if subscriber_id == channel_id:
        raise ValidationFailed("You cannot subscribe to your own channel")

    channel = await session.get(User, channel_id)
    if channel is None:
        raise NotFound("Channel does not exist")

    result = await _toggle(session, Subscription, {"subscriber_id": subscriber_id, "channel_id": channel_id})
    logger.info(
        "Toggled subscription",
        extra={"user_id": str(subscriber_id), "channel_id": str(channel_id), "active": result.active},
    )
    return result


async def delete_likes_for(session: AsyncSession, kind: LikeTargetKind, target_ids: list[EntityId]) -> None:
    """Remove every like pointing at the given targets (used when they are deleted)."""

    if not target_ids:
        return
    await session.execute(delete(Like).where(Like.target_kind == kind.value, Like.target_id.in_(target_ids)))
