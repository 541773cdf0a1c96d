"""Registration, login/logout, token refresh and profile maintenance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthInvalid, Conflict, NotFound, ValidationFailed
from app.core.ids import EntityId
from app.core.security import hash_password, verify_password
from app.db.models import User
from app.services import token_service
from app.services.media_store import MediaStore, delete_quietly
from app.services.token_service import TokenPair

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LoginResult:
    user: User
    tokens: TokenPair


def _require(**fields: str | None) -> dict[str, str]:
    cleaned: dict[str, str] = {}
    for name, value in fields.items():
        if value is None or not value.strip():
            raise ValidationFailed("All fields are required")
        cleaned[name] = value.strip()
    return cleaned


async def get_user(session: AsyncSession, user_id: EntityId) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def register_user(
    session: AsyncSession,
    *,
    username: str | None,
    email: str | None,
    full_name: str | None,
    password: str | None,
    avatar_path: Path | None,
    media_store: MediaStore,
    cover_image_path: Path | None = None,
) -> User:
    """Create an identity; the avatar is mandatory, the cover image optional."""

    fields = _require(username=username, email=email, full_name=full_name, password=password)
    normalized_username = fields["username"].lower()
    normalized_email = fields["email"].lower()

    existing = await session.scalar(
        select(User.id).where(or_(User.username == normalized_username, User.email == normalized_email))
    )
    if existing is not None:
        raise Conflict("User with this email or username already exists")

    if avatar_path is None:
        raise ValidationFailed("Avatar file is required")

    avatar = await media_store.upload(avatar_path, resource_type="image")
    cover = await media_store.upload(cover_image_path, resource_type="image") if cover_image_path else None

    user = User(
        username=normalized_username,
        email=normalized_email,
        full_name=fields["full_name"],
        password_hash=hash_password(password or ""),
        avatar_url=avatar.url,
        avatar_public_id=avatar.public_id,
        cover_image_url=cover.url if cover else None,
        cover_image_public_id=cover.public_id if cover else None,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise Conflict("User with this email or username already exists") from exc

    logger.info("Registered user", extra={"user_id": str(user.id), "username": user.username})
    return user


async def login(
    session: AsyncSession,
    *,
    username: str | None,
    email: str | None,
    password: str,
) -> LoginResult:
    """Verify credentials and issue a token pair.

    A successful login replaces any refresh token issued to another session.
    """

    if not (username and username.strip()) and not (email and email.strip()):
        raise ValidationFailed("Username or email is required")

    conditions = []
    if username and username.strip():
        conditions.append(User.username == username.strip().lower())
    if email and email.strip():
        conditions.append(User.email == email.strip().lower())

    user = await session.scalar(select(User).where(or_(*conditions)))
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt", extra={"username": username, "email": email})
        raise AuthInvalid("Invalid user credentials")

    tokens = await token_service.issue(session, user)
    logger.info("User logged in", extra={"user_id": str(user.id)})
    return LoginResult(user=user, tokens=tokens)


async def logout(session: AsyncSession, user: User) -> None:
    await token_service.revoke(session, user.id)


async def refresh(session: AsyncSession, refresh_token: str | None) -> TokenPair:
    if not refresh_token:
        raise AuthInvalid("Refresh token is required")
    return await token_service.rotate(session, refresh_token)


async def change_password(session: AsyncSession, user: User, *, old_password: str, new_password: str) -> None:
    digest = await session.scalar(select(User.password_hash).where(User.id == user.id))
    if not verify_password(old_password, digest):
        raise ValidationFailed("Invalid old password")
    if not new_password.strip():
        raise ValidationFailed("New password cannot be empty")

    await session.execute(
        update(User)
        .where(User.id == user.id)
        .values(password_hash=hash_password(new_password))
        .execution_options(synchronize_session=False)
    )
    await session.flush()
    logger.info("Password changed", extra={"user_id": str(user.id)})


async def update_account(
    session: AsyncSession,
    user: User,
    *,
    full_name: str | None = None,
    email: str | None = None,
) -> User:
    changes: dict[str, str] = {}
    if full_name is not None and full_name.strip():
        changes["full_name"] = full_name.strip()
    if email is not None and email.strip():
        changes["email"] = email.strip().lower()
    if not changes:
        raise ValidationFailed("Full name or email is required")

    if "email" in changes and changes["email"] != user.email:
        taken = await session.scalar(select(User.id).where(User.email == changes["email"], User.id != user.id))
        if taken is not None:
            raise Conflict("Email is already in use")

    for field, value in changes.items():
        setattr(user, field, value)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise Conflict("Email is already in use") from exc
    return user


async def _replace_image(
    session: AsyncSession,
    user: User,
    local_path: Path | None,
    *,
    media_store: MediaStore,
    url_field: str,
    public_id_field: str,
) -> User:
    if local_path is None:
        raise ValidationFailed("Image file is required")

    previous_public_id = getattr(user, public_id_field)
    asset = await media_store.upload(local_path, resource_type="image")
    setattr(user, url_field, asset.url)
    setattr(user, public_id_field, asset.public_id)
    await session.flush()

    await delete_quietly(media_store, previous_public_id)
    return user


async def update_avatar(session: AsyncSession, user: User, local_path: Path | None, *, media_store: MediaStore) -> User:
    return await _replace_image(
        session, user, local_path, media_store=media_store, url_field="avatar_url", public_id_field="avatar_public_id"
    )


async def update_cover_image(
    session: AsyncSession, user: User, local_path: Path | None, *, media_store: MediaStore
) -> User:
    return await _replace_image(
        session,
        user,
        local_path,
        media_store=media_store,
        url_field="cover_image_url",
        public_id_field="cover_image_public_id",
    )
