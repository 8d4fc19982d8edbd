"""Pydantic schemas for posts and the paginated feed."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    content: str = Field(..., min_length=5)
    image_url: str = Field(default="", max_length=1024)

    model_config = {"str_strip_whitespace": True}


class PostUpdate(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    content: str = Field(..., min_length=5)
    image_url: Optional[str] = Field(
        None, max_length=1024, description="Omit to keep the current image"
    )

    model_config = {"str_strip_whitespace": True}


class PostRead(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    image_url: str
    creator_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PostPage(BaseModel):
    posts: list[PostRead]
    total_items: int
    page: int
    page_size: int
