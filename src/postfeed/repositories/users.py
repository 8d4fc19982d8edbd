"""User repository."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postfeed.db.models import Post, User
from postfeed.errors import Conflict
from postfeed.repositories import as_utc


@dataclass(frozen=True)
class UserRecord:
    id: uuid.UUID
    email: str
    name: str
    status: str
    created_at: datetime
    password_hash: str = field(repr=False)


def _snapshot(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        email=user.email,
        name=user.name,
        status=user.status,
        created_at=as_utc(user.created_at),
        password_hash=user.password_hash,
    )


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        return _snapshot(user) if user else None

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[UserRecord]:
        user = await self.db.get(User, user_id)
        return _snapshot(user) if user else None

    async def create(
        self, email: str, name: str, password_hash: str, status: str
    ) -> UserRecord:
        """Insert a user. The unique index on email is the arbiter.

        Raises Conflict if the email is taken; the session is rolled back.
        """
        user = User(
            email=email,
            name=name,
            password_hash=password_hash,
            status=status,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("A user with this email already exists")
        return _snapshot(user)

    async def save(
        self,
        user_id: uuid.UUID,
        *,
        name: Optional[str] = None,
        status: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> Optional[UserRecord]:
        """Write the given fields. Returns None if the user does not exist."""
        user = await self.db.get(User, user_id)
        if user is None:
            return None
        if name is not None:
            user.name = name
        if status is not None:
            user.status = status
        if password_hash is not None:
            user.password_hash = password_hash
        await self.db.flush()
        return _snapshot(user)

    async def post_ids(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        """The user's backlink: ids of posts they created, oldest first."""
        result = await self.db.execute(
            select(Post.id).where(Post.creator_id == user_id).order_by(Post.seq)
        )
        return list(result.scalars().all())

    async def count_all(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(User))
        return result.scalar_one()
