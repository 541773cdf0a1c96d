"""Playlist endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from app.db.session import get_session
from app.routers.deps import get_current_user, get_optional_user, page_params, path_id
from app.schema.common import MessageResponse, Page
from app.schema.playlist import (
    PlaylistCreateRequest,
    PlaylistDetail,
    PlaylistResponse,
    PlaylistSummary,
    PlaylistUpdateRequest,
)
from app.services import aggregation, playlist_service
from app.services.pagination import PageParams

router = APIRouter(prefix="/playlists", tags=["playlists"])


@router.post("", response_model=PlaylistResponse, status_code=status.HTTP_201_CREATED)
async def create_playlist(
    payload: PlaylistCreateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PlaylistResponse:
    playlist = await playlist_service.create_playlist(
        session, user, name=payload.name, description=payload.description
    )
    await session.commit()
    return PlaylistResponse.model_validate(playlist)


@router.get("/user/{user_id}", response_model=Page[PlaylistSummary])
async def user_playlists(
    user_id: str,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
) -> Page[PlaylistSummary]:
    return await aggregation.user_playlists(session, path_id(user_id, "user id"), params)


@router.get("/{playlist_id}", response_model=PlaylistDetail)
async def get_playlist(
    playlist_id: str,
    params: PageParams = Depends(page_params),
    viewer: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
) -> PlaylistDetail:
    return await aggregation.playlist_detail(session, path_id(playlist_id, "playlist id"), params, viewer)


@router.patch("/{playlist_id}", response_model=PlaylistResponse)
async def update_playlist(
    playlist_id: str,
    payload: PlaylistUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PlaylistResponse:
    playlist = await playlist_service.update_playlist(
        session,
        user,
        path_id(playlist_id, "playlist id"),
        name=payload.name,
        description=payload.description,
    )
    await session.commit()
    return PlaylistResponse.model_validate(playlist)


@router.delete("/{playlist_id}", response_model=MessageResponse)
async def delete_playlist(
    playlist_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await playlist_service.delete_playlist(session, user, path_id(playlist_id, "playlist id"))
    await session.commit()
    return MessageResponse(message="Playlist deleted successfully")


@router.patch("/add/{video_id}/{playlist_id}", response_model=PlaylistResponse)
async def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PlaylistResponse:
    playlist = await playlist_service.add_video(
        session, user, path_id(playlist_id, "playlist id"), path_id(video_id, "video id")
    )
    await session.commit()
    return PlaylistResponse.model_validate(playlist)


@router.patch("/remove/{video_id}/{playlist_id}", response_model=PlaylistResponse)
async def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PlaylistResponse:
    playlist = await playlist_service.remove_video(
        session, user, path_id(playlist_id, "playlist id"), path_id(video_id, "video id")
    )
    await session.commit()
    return PlaylistResponse.model_validate(playlist)
