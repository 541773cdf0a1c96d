"""Resolve the calling identity from a presented access token."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import defer

from app.core.errors import AuthInvalid, AuthRequired
from app.db.models import User
from app.services import token_service

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
BEARER_PREFIX = "bearer "


def extract_credential(*, cookies: dict[str, str], authorization: str | None) -> str | None:
    """Pick the access token from the cookie, falling back to a bearer header."""

    token = cookies.get(ACCESS_COOKIE)
    if token:
        return token.strip()
    if authorization and authorization.lower().startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None
    return None


async def resolve_identity(session: AsyncSession, token: str | None) -> User:
    """Validate ``token`` and load its identity without secret columns.

    A token whose identity no longer exists is reported exactly like a forged
    one so callers cannot tell which accounts exist.
    """

    if not token:
        raise AuthRequired()

    user_id = token_service.validate_access(token)
    user = await session.scalar(
        select(User)
        .options(defer(User.password_hash, raiseload=True), defer(User.refresh_token, raiseload=True))
        .where(User.id == user_id)
    )
    if user is None:
        logger.warning("Access token references a missing identity")
        raise AuthInvalid("Invalid access token")
    return user
