"""Pydantic models for tweet endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schema.common import OwnerProfile


class TweetRequest(BaseModel):
    content: str = Field(..., min_length=1)


class TweetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    content: str
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class TweetView(BaseModel):
    id: uuid.UUID
    content: str
    created_at: datetime
    owner: OwnerProfile
    like_count: int
