"""Feed API — the paged post listing and post CRUD.

Learn: Listing is public. Everything else requires a bearer token, and
update/delete additionally require the caller to be the post's creator
(checked in FeedService after the post is loaded).
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from postfeed.auth.dependencies import get_current_user_id
from postfeed.db.engine import get_db
from postfeed.schemas.post import PostCreate, PostPage, PostRead, PostUpdate
from postfeed.services.feed_service import FeedService

router = APIRouter(prefix="/feed")


def _svc(request: Request, db: AsyncSession = Depends(get_db)) -> FeedService:
    state = request.app.state
    return FeedService(db, page_size=state.settings.posts_per_page, notifier=state.notifier)


@router.get("/posts", response_model=PostPage)
async def list_posts(
    page: Optional[int] = Query(None, description="1-based; values below 1 mean 1"),
    svc: FeedService = Depends(_svc),
):
    listing = await svc.list_posts(page)
    return PostPage(
        posts=[PostRead.model_validate(p) for p in listing.items],
        total_items=listing.total_items,
        page=listing.page,
        page_size=listing.page_size,
    )


@router.post("/posts", response_model=PostRead, status_code=201)
async def create_post(
    body: PostCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    svc: FeedService = Depends(_svc),
):
    return await svc.create_post(
        creator_id=user_id,
        title=body.title,
        content=body.content,
        image_url=body.image_url,
    )


@router.get(
    "/posts/{post_id}",
    response_model=PostRead,
    dependencies=[Depends(get_current_user_id)],
)
async def get_post(
    post_id: uuid.UUID,
    svc: FeedService = Depends(_svc),
):
    return await svc.get_post(post_id)


@router.put("/posts/{post_id}", response_model=PostRead)
async def update_post(
    post_id: uuid.UUID,
    body: PostUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    svc: FeedService = Depends(_svc),
):
    return await svc.update_post(
        caller_id=user_id,
        post_id=post_id,
        title=body.title,
        content=body.content,
        image_url=body.image_url,
    )


@router.delete("/posts/{post_id}")
async def delete_post(
    post_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    svc: FeedService = Depends(_svc),
):
    await svc.delete_post(caller_id=user_id, post_id=post_id)
    return {"deleted": True}
