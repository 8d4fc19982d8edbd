"""Post repository."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from postfeed.db.models import Post, utcnow
from postfeed.errors import NotFound
from postfeed.repositories import as_utc


@dataclass(frozen=True)
class PostRecord:
    id: uuid.UUID
    title: str
    content: str
    image_url: str
    creator_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


def _snapshot(post: Post) -> PostRecord:
    return PostRecord(
        id=post.id,
        title=post.title,
        content=post.content,
        image_url=post.image_url,
        creator_id=post.creator_id,
        created_at=as_utc(post.created_at),
        updated_at=as_utc(post.updated_at),
    )


class PostRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, post_id: uuid.UUID) -> Optional[Post]:
        result = await self.db.execute(select(Post).where(Post.id == post_id))
        return result.scalars().first()

    async def find_by_id(self, post_id: uuid.UUID) -> Optional[PostRecord]:
        post = await self._load(post_id)
        return _snapshot(post) if post else None

    async def create(
        self,
        creator_id: uuid.UUID,
        title: str,
        content: str,
        image_url: str = "",
    ) -> PostRecord:
        """Insert a post. created_at and updated_at start out equal."""
        now = utcnow()
        post = Post(
            title=title,
            content=content,
            image_url=image_url,
            creator_id=creator_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(post)
        await self.db.flush()
        return _snapshot(post)

    async def save(
        self,
        post_id: uuid.UUID,
        title: str,
        content: str,
        image_url: str,
    ) -> PostRecord:
        """Full update of the editable fields. Creator never changes."""
        post = await self._load(post_id)
        if post is None:
            raise NotFound("Post not found")
        post.title = title
        post.content = content
        post.image_url = image_url
        post.updated_at = max(utcnow(), as_utc(post.created_at))
        await self.db.flush()
        return _snapshot(post)

    async def delete(self, post_id: uuid.UUID) -> None:
        """Delete a post. Removing the row also drops it from the creator's
        backlink. Raises NotFound if nothing was deleted."""
        result = await self.db.execute(delete(Post).where(Post.id == post_id))
        if result.rowcount == 0:
            raise NotFound("Post not found")

    async def count_all(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Post))
        return result.scalar_one()

    async def find_page(self, skip: int, limit: int) -> list[PostRecord]:
        """Newest first; posts created at the same instant keep insertion order."""
        result = await self.db.execute(
            select(Post)
            .order_by(Post.created_at.desc(), Post.seq.asc())
            .offset(skip)
            .limit(limit)
        )
        return [_snapshot(p) for p in result.scalars().all()]
