"""Account, session and channel-profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.models import User
from app.db.session import get_session
from app.routers.deps import (
    discard_staged,
    get_current_user,
    get_media_store,
    get_optional_user,
    page_params,
    stage_upload,
)
from app.schema.common import MessageResponse, Page
from app.schema.user import (
    ChangePasswordRequest,
    ChannelProfile,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenResponse,
    UpdateAccountRequest,
    UserResponse,
)
from app.schema.video import VideoSummary
from app.services import account_service, aggregation
from app.services.auth_guard import ACCESS_COOKIE, REFRESH_COOKIE
from app.services.media_store import MediaStore
from app.services.pagination import PageParams
from app.services.token_service import TokenPair

router = APIRouter(prefix="/users", tags=["users"])


def _cookie_options() -> dict[str, object]:
    return {"httponly": True, "secure": settings.cookie_secure, "samesite": "lax"}


def _set_auth_cookies(response: Response, tokens: TokenPair) -> None:
    response.set_cookie(ACCESS_COOKIE, tokens.access_token, **_cookie_options())
    response.set_cookie(REFRESH_COOKIE, tokens.refresh_token, **_cookie_options())


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    username: str = Form(...),
    email: str = Form(...),
    full_name: str = Form(...),
    password: str = Form(...),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_session),
    media_store: MediaStore = Depends(get_media_store),
) -> UserResponse:
    avatar_path = await stage_upload(avatar, required=True, label="avatar")
    cover_path = await stage_upload(cover_image)
    try:
        user = await account_service.register_user(
            session,
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_path,
            media_store=media_store,
        )
    finally:
        discard_staged(avatar_path, cover_path)
    await session.commit()
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
) -> LoginResponse:
    result = await account_service.login(
        session, username=payload.username, email=payload.email, password=payload.password
    )
    await session.commit()
    _set_auth_cookies(response, result.tokens)
    return LoginResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await account_service.logout(session, user)
    await session.commit()
    response.delete_cookie(ACCESS_COOKIE, **_cookie_options())
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options())
    return MessageResponse(message="User logged out successfully")


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    payload: RefreshRequest | None = None,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    presented = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    tokens = await account_service.refresh(session, presented)
    await session.commit()
    _set_auth_cookies(response, tokens)
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await account_service.change_password(
        session, user, old_password=payload.old_password, new_password=payload.new_password
    )
    await session.commit()
    return MessageResponse(message="Password changed successfully")


@router.get("/current-user", response_model=UserResponse)
async def current_user(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.patch("/update-account", response_model=UserResponse)
async def update_account(
    payload: UpdateAccountRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    updated = await account_service.update_account(session, user, full_name=payload.full_name, email=payload.email)
    await session.commit()
    return UserResponse.model_validate(updated)


@router.patch("/avatar", response_model=UserResponse)
async def update_avatar(
    avatar: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    media_store: MediaStore = Depends(get_media_store),
) -> UserResponse:
    local_path = await stage_upload(avatar, required=True, label="avatar")
    try:
        updated = await account_service.update_avatar(session, user, local_path, media_store=media_store)
    finally:
        discard_staged(local_path)
    await session.commit()
    return UserResponse.model_validate(updated)


@router.patch("/cover-image", response_model=UserResponse)
async def update_cover_image(
    cover_image: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    media_store: MediaStore = Depends(get_media_store),
) -> UserResponse:
    local_path = await stage_upload(cover_image, required=True, label="cover image")
    try:
        updated = await account_service.update_cover_image(session, user, local_path, media_store=media_store)
    finally:
        discard_staged(local_path)
    await session.commit()
    return UserResponse.model_validate(updated)


@router.get("/c/{username}", response_model=ChannelProfile)
async def channel_profile(
    username: str,
    viewer: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
) -> ChannelProfile:
    return await aggregation.channel_profile(session, username, viewer)


@router.get("/history", response_model=Page[VideoSummary])
async def watch_history(
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Page[VideoSummary]:
    return await aggregation.watch_history(session, user, params)
