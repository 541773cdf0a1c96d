"""Issue, validate, rotate and revoke access/refresh token pairs.

Each identity stores at most one refresh token. Issuing a pair overwrites the
stored value, which is what invalidates every previously issued refresh token
(including the one held by another device). Rotation swaps the stored value
with a compare-and-replace update so two concurrent refreshes with the same
token cannot both succeed.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import AuthInvalid, InternalError, ValidationFailed
from app.core.ids import EntityId, canonical_id
from app.db.models import User

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(slots=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _encode(claims: dict[str, object], *, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + lifetime,
    }
    try:
        return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)
    except JWTError as exc:
        logger.exception("Token encoding failed")
        raise InternalError("Token generation failed") from exc


def create_access_token(user: User) -> str:
    return _encode(
        {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "type": ACCESS_TOKEN_TYPE,
        },
        secret=settings.access_token_secret,
        lifetime=timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user_id: EntityId) -> str:
    return _encode(
        {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
        secret=settings.refresh_token_secret,
        lifetime=timedelta(minutes=settings.refresh_token_expire_minutes),
    )


def _decode_subject(token: str, *, secret: str, expected_type: str) -> EntityId:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise AuthInvalid("Token has expired") from exc
    except JWTError as exc:
        raise AuthInvalid("Invalid token") from exc

    if payload.get("type") != expected_type:
        raise AuthInvalid("Invalid token")

    try:
        return canonical_id(payload.get("sub"))
    except ValidationFailed as exc:
        raise AuthInvalid("Invalid token") from exc


def validate_access(token: str) -> EntityId:
    """Return the identity id encoded in a valid access token."""

    return _decode_subject(token, secret=settings.access_token_secret, expected_type=ACCESS_TOKEN_TYPE)


def validate_refresh(token: str) -> EntityId:
    return _decode_subject(token, secret=settings.refresh_token_secret, expected_type=REFRESH_TOKEN_TYPE)


async def issue(session: AsyncSession, user: User) -> TokenPair:
    """Mint a fresh pair and make its refresh token the only valid one."""

    pair = TokenPair(access_token=create_access_token(user), refresh_token=create_refresh_token(user.id))
    await session.execute(
        update(User)
        .where(User.id == user.id)
        .values(refresh_token=pair.refresh_token)
        .execution_options(synchronize_session=False)
    )
    await session.flush()
    logger.info("Issued token pair", extra={"user_id": str(user.id)})
    return pair


async def _stored_refresh_token(session: AsyncSession, user_id: EntityId) -> str | None:
    return await session.scalar(select(User.refresh_token).where(User.id == user_id))


async def rotate(session: AsyncSession, refresh_token: str) -> TokenPair:
    """Exchange a current refresh token for a new pair.

    Fails with ``AuthInvalid`` when the token is unverifiable, its identity no
    longer exists, or it is not the identity's stored refresh token (a token
    superseded by a later login/rotation or cleared by logout).
    """

    user_id = validate_refresh(refresh_token)

    user = await session.scalar(select(User).where(User.id == user_id))
    if user is None:
        raise AuthInvalid("Invalid refresh token")

    if await _stored_refresh_token(session, user_id) != refresh_token:
        logger.warning("Rejected stale refresh token", extra={"user_id": str(user_id)})
        raise AuthInvalid("Refresh token is expired or used")

    pair = TokenPair(access_token=create_access_token(user), refresh_token=create_refresh_token(user_id))
    result = await session.execute(
        update(User)
        .where(User.id == user_id, User.refresh_token == refresh_token)
        .values(refresh_token=pair.refresh_token)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Refresh token rotated concurrently", extra={"user_id": str(user_id)})
        raise AuthInvalid("Refresh token is expired or used")

    await session.flush()
    logger.info("Rotated refresh token", extra={"user_id": str(user_id)})
    return pair


async def revoke(session: AsyncSession, user_id: EntityId) -> None:
    """Clear the stored refresh token so no outstanding one can be rotated."""

    await session.execute(
        update(User).where(User.id == user_id).values(refresh_token=None).execution_options(synchronize_session=False)
    )
    await session.flush()
    logger.info("Revoked refresh token", extra={"user_id": str(user_id)})
