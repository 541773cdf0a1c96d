"""Pydantic models for account and channel endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class UpdateAccountRequest(BaseModel):
    full_name: str | None = None
    email: EmailStr | None = None


class UserResponse(BaseModel):
    """An identity as seen by itself; secret fields are never part of it."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: str | None = None
    created_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str


class LoginResponse(TokenResponse):
    user: UserResponse


class ChannelProfile(BaseModel):
    id: uuid.UUID
    username: str
    full_name: str
    email: str
    avatar_url: str
    cover_image_url: str | None
    created_at: datetime
    subscriber_count: int
    subscribed_to_count: int
    is_subscribed: bool


class ChannelSummary(BaseModel):
    """An identity in a subscription listing."""

    id: uuid.UUID
    username: str
    full_name: str
    avatar_url: str
    subscribed_at: datetime
