"""Account service — signup, login, status, current user.

Learn: Service layer separates business logic from HTTP routing. API
routes call services, services call repositories. Each public method is
one unit of work and commits before returning.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from postfeed.auth.password import hash_password, needs_rehash, verify_password
from postfeed.auth.tokens import TokenClaims, TokenService
from postfeed.config import Settings
from postfeed.errors import NotFound, Unauthenticated
from postfeed.repositories.users import UserRecord, UserRepository

logger = structlog.get_logger()


@dataclass(frozen=True)
class LoginResult:
    token: str
    user_id: uuid.UUID
    expires_at: datetime


class AccountService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession, tokens: TokenService, settings: Settings):
        self.db = db
        self.users = UserRepository(db)
        self.tokens = tokens
        self.settings = settings

    async def signup(self, email: str, name: str, password: str) -> UserRecord:
        """Create an account. Raises Conflict if the email is taken."""
        user = await self.users.create(
            email=email,
            name=name,
            password_hash=hash_password(password, self.settings.bcrypt_rounds),
            status=self.settings.default_status,
        )
        await self.db.commit()
        logger.info("auth.signup", user_id=str(user.id))
        return user

    async def login(self, email: str, password: str) -> LoginResult:
        """Email/password → signed token.

        Unknown email and wrong password fail the same way, so callers
        can't discover which addresses are registered.
        """
        user = await self.users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("auth.login_failed")
            raise Unauthenticated("Invalid credentials")

        # Re-hash when the configured cost was raised since signup
        if needs_rehash(user.password_hash, self.settings.bcrypt_rounds):
            await self.users.save(
                user.id,
                password_hash=hash_password(password, self.settings.bcrypt_rounds),
            )
            await self.db.commit()

        token, expires_at = self.tokens.issue_with_expiry(
            TokenClaims(email=user.email, user_id=user.id)
        )
        logger.info("auth.login", user_id=str(user.id))
        return LoginResult(token=token, user_id=user.id, expires_at=expires_at)

    async def get_current_user(self, user_id: uuid.UUID) -> tuple[UserRecord, list[uuid.UUID]]:
        """The caller's account plus the ids of the posts they created."""
        user = await self._require_user(user_id)
        post_ids = await self.users.post_ids(user_id)
        return user, post_ids

    async def get_status(self, user_id: uuid.UUID) -> str:
        user = await self._require_user(user_id)
        return user.status

    async def set_status(self, user_id: uuid.UUID, status: str) -> str:
        user = await self.users.save(user_id, status=status)
        if user is None:
            raise NotFound("User not found")
        await self.db.commit()
        return user.status

    async def _require_user(self, user_id: uuid.UUID) -> UserRecord:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user
