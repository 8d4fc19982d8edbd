"""Feed service — post creation, editing, deletion and the paged listing.

Learn: Mutations on an existing post follow a fixed order:
1. load the post (NotFound if absent)
2. require_owner (Unauthorized if the caller didn't create it)
3. write through the repository and commit
4. publish the change to live listeners (best effort)
The caller is already authenticated by the time a method here runs.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from postfeed.auth.guards import require_owner
from postfeed.errors import NotFound
from postfeed.realtime.pubsub import (
    POST_CREATED,
    POST_DELETED,
    POST_UPDATED,
    PostNotifier,
)
from postfeed.repositories.posts import PostRecord, PostRepository
from postfeed.repositories.users import UserRepository

logger = structlog.get_logger()


@dataclass(frozen=True)
class PostListing:
    items: list[PostRecord]
    total_items: int
    page: int
    page_size: int


def _event_payload(post: PostRecord) -> dict:
    return {
        "id": str(post.id),
        "title": post.title,
        "content": post.content,
        "image_url": post.image_url,
        "creator_id": str(post.creator_id),
        "created_at": post.created_at.isoformat(),
        "updated_at": post.updated_at.isoformat(),
    }


class FeedService:
    """Business logic for the post feed."""

    def __init__(
        self,
        db: AsyncSession,
        page_size: int,
        notifier: Optional[PostNotifier] = None,
    ):
        self.db = db
        self.posts = PostRepository(db)
        self.users = UserRepository(db)
        self.page_size = page_size
        self.notifier = notifier or PostNotifier()

    async def list_posts(self, page: Optional[int] = None) -> PostListing:
        """One page of the feed, newest first.

        total_items counts the whole collection and is read separately from
        the page, so a concurrent write can leave it off by one.
        """
        if page is None or page < 1:
            page = 1
        skip = (page - 1) * self.page_size
        total = await self.posts.count_all()
        # Pages past the end are empty; skip may not fit a database integer
        if skip >= total:
            items = []
        else:
            items = await self.posts.find_page(skip=skip, limit=self.page_size)
        return PostListing(
            items=items, total_items=total, page=page, page_size=self.page_size
        )

    async def get_post(self, post_id: uuid.UUID) -> PostRecord:
        post = await self.posts.find_by_id(post_id)
        if post is None:
            raise NotFound("Post not found")
        return post

    async def create_post(
        self,
        creator_id: uuid.UUID,
        title: str,
        content: str,
        image_url: str = "",
    ) -> PostRecord:
        """Create a post owned by the caller.

        The creator's backlink is derived from the same row, so the insert
        and the backlink entry commit together.
        """
        creator = await self.users.find_by_id(creator_id)
        if creator is None:
            raise NotFound("User not found")

        post = await self.posts.create(
            creator_id=creator.id,
            title=title,
            content=content,
            image_url=image_url,
        )
        await self.db.commit()
        logger.info("posts.created", post_id=str(post.id), creator_id=str(creator.id))

        await self.notifier.publish(POST_CREATED, _event_payload(post))
        return post

    async def update_post(
        self,
        caller_id: uuid.UUID,
        post_id: uuid.UUID,
        title: str,
        content: str,
        image_url: Optional[str] = None,
    ) -> PostRecord:
        """Replace title, content and (if given) image of the caller's post."""
        existing = await self.get_post(post_id)
        require_owner(existing, caller_id)

        post = await self.posts.save(
            post_id,
            title=title,
            content=content,
            image_url=existing.image_url if image_url is None else image_url,
        )
        await self.db.commit()
        logger.info("posts.updated", post_id=str(post.id))

        await self.notifier.publish(POST_UPDATED, _event_payload(post))
        return post

    async def delete_post(self, caller_id: uuid.UUID, post_id: uuid.UUID) -> None:
        existing = await self.get_post(post_id)
        require_owner(existing, caller_id)

        await self.posts.delete(post_id)
        await self.db.commit()
        logger.info("posts.deleted", post_id=str(post_id))

        await self.notifier.publish(POST_DELETED, {"id": str(post_id)})
