"""Video endpoints: search, publish, watch, edit and delete."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from app.db.session import get_session
from app.routers.deps import (
    discard_staged,
    get_current_user,
    get_media_store,
    get_optional_user,
    page_params,
    path_id,
    stage_upload,
)
from app.schema.common import MessageResponse, Page
from app.schema.video import VideoDetail, VideoSummary
from app.services import aggregation, video_service
from app.services.media_store import MediaStore
from app.services.pagination import PageParams

router = APIRouter(prefix="/videos", tags=["videos"])


@router.get("", response_model=Page[VideoSummary])
async def list_videos(
    query: str | None = None,
    userId: str | None = None,
    sort_by: str = "created_at",
    sort_type: str = "desc",
    params: PageParams = Depends(page_params),
    viewer: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
) -> Page[VideoSummary]:
    owner_id = path_id(userId, "user id") if userId else None
    return await aggregation.list_videos(
        session,
        params,
        query=query,
        owner_id=owner_id,
        sort_by=sort_by,
        sort_type=sort_type,
        viewer=viewer,
    )


@router.post("", response_model=VideoDetail, status_code=status.HTTP_201_CREATED)
async def publish_video(
    title: str = Form(...),
    description: str = Form(""),
    video_file: UploadFile | None = File(None, alias="videoFile"),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    media_store: MediaStore = Depends(get_media_store),
) -> VideoDetail:
    video_path = await stage_upload(video_file, required=True, label="video file")
    thumbnail_path = await stage_upload(thumbnail, required=True, label="thumbnail")
    try:
        video = await video_service.publish_video(
            session,
            user,
            title=title,
            description=description,
            video_path=video_path,
            thumbnail_path=thumbnail_path,
            media_store=media_store,
        )
    finally:
        discard_staged(video_path, thumbnail_path)
    await session.commit()
    return await aggregation.video_detail(session, video, user)


@router.get("/{video_id}", response_model=VideoDetail)
async def get_video(
    video_id: str,
    viewer: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
) -> VideoDetail:
    video = await video_service.get_video_or_404(session, path_id(video_id, "video id"))
    video_service.ensure_visible(video, viewer)
    await video_service.record_view(session, video, viewer)
    await session.commit()
    return await aggregation.video_detail(session, video, viewer)


@router.patch("/{video_id}", response_model=VideoDetail)
async def update_video(
    video_id: str,
    title: str | None = Form(None),
    description: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    media_store: MediaStore = Depends(get_media_store),
) -> VideoDetail:
    target_id = path_id(video_id, "video id")
    thumbnail_path = await stage_upload(thumbnail)
    try:
        video = await video_service.update_video(
            session,
            user,
            target_id,
            title=title,
            description=description,
            thumbnail_path=thumbnail_path,
            media_store=media_store,
        )
    finally:
        discard_staged(thumbnail_path)
    await session.commit()
    return await aggregation.video_detail(session, video, user)


@router.delete("/{video_id}", response_model=MessageResponse)
async def delete_video(
    video_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    media_store: MediaStore = Depends(get_media_store),
) -> MessageResponse:
    await video_service.delete_video(session, user, path_id(video_id, "video id"), media_store=media_store)
    await session.commit()
    return MessageResponse(message="Video deleted successfully")


@router.patch("/toggle/publish/{video_id}", response_model=VideoDetail)
async def toggle_publish_status(
    video_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> VideoDetail:
    video = await video_service.toggle_publish_status(session, user, path_id(video_id, "video id"))
    await session.commit()
    return await aggregation.video_detail(session, video, user)
