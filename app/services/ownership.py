"""Ownership checks applied before any update or delete."""

from __future__ import annotations

import logging
from typing import Protocol

from app.core.errors import Forbidden
from app.core.ids import EntityId, same_id
from app.db.models import Comment, User, Video

logger = logging.getLogger(__name__)


class Owned(Protocol):
    id: EntityId
    owner_id: EntityId


def is_authorized(identity: User | EntityId | str, owner_id: object) -> bool:
    """Return True when ``identity`` is the recorded owner.

    Both sides are canonicalised by :func:`same_id`, so the outcome depends only on
    which entity is referenced, never on how the identifier was spelled.
    """

    identity_id = identity.id if isinstance(identity, User) else identity
    return same_id(identity_id, owner_id)


def ensure_owner(identity: User, resource: Owned, *, action: str = "modify") -> None:
    if not is_authorized(identity, resource.owner_id):
        logger.warning(
            "Ownership check failed",
            extra={"user_id": str(identity.id), "resource_id": str(resource.id), "action": action},
        )
        raise Forbidden(f"You are not authorized to {action} this {type(resource).__name__.lower()}")


def can_delete_comment(identity: User, comment: Comment, video: Video) -> bool:
    """Comment deletion policy: the comment's author or the parent video's owner.

    This is the only resource with a second authorized owner; every other
    mutation goes through :func:`ensure_owner`.
    """

    return is_authorized(identity, comment.owner_id) or is_authorized(identity, video.owner_id)


def ensure_can_delete_comment(identity: User, comment: Comment, video: Video) -> None:
    if not can_delete_comment(identity, comment, video):
        logger.warning(
            "Comment deletion refused",
            extra={"user_id": str(identity.id), "comment_id": str(comment.id)},
        )
        raise Forbidden("You are not authorized to delete this comment")
