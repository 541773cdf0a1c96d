"""Pydantic models for the creator dashboard."""

from __future__ import annotations

import uuid

from pydantic import BaseModel


class ChannelStats(BaseModel):
    channel_id: uuid.UUID
    username: str
    full_name: str
    avatar_url: str
    total_videos: int
    total_views: int
    total_likes: int
    total_subscribers: int
