"""Pydantic models for video endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.schema.common import OwnerProfile


class VideoSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    video_url: str
    thumbnail_url: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    owner: OwnerProfile


class VideoDetail(VideoSummary):
    like_count: int
    comment_count: int
    is_liked: bool
    updated_at: datetime
