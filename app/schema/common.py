"""Shared response models: pagination envelope and public profile fragments."""

from __future__ import annotations

import uuid
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from app.services.pagination import PageParams, total_pages

ItemT = TypeVar("ItemT")


class Page(BaseModel, Generic[ItemT]):
    """One slice of an ordered result plus the counts needed to navigate it."""

    items: list[ItemT]
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, items: list[ItemT], params: PageParams, total: int) -> "Page[ItemT]":
        return cls(
            items=items,
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=total_pages(total, params.limit),
        )


class OwnerProfile(BaseModel):
    """Public fields of an identity embedded in other views."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    full_name: str
    avatar_url: str


class ToggleResponse(BaseModel):
    active: bool


class MessageResponse(BaseModel):
    message: str
