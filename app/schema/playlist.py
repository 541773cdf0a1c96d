"""Pydantic models for playlist endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.schema.common import OwnerProfile, Page
from app.schema.video import VideoSummary


class PlaylistCreateRequest(BaseModel):
    name: str
    description: str = ""


class PlaylistUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None


class PlaylistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class PlaylistSummary(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    created_at: datetime
    owner: OwnerProfile
    video_count: int


class PlaylistDetail(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    created_at: datetime
    updated_at: datetime
    owner: OwnerProfile
    videos: Page[VideoSummary]
