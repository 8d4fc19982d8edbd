"""Per-request authentication state.

Learn: Decoding and enforcing are split. resolve_auth_context() only
answers "who is calling, if anyone?" and never raises, so public
operations (listing the feed) run without a token. Operations that need a
caller pass the context to guards.require_authenticated().
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog

from postfeed.auth.tokens import TokenError, TokenService

logger = structlog.get_logger()

BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class AuthContext:
    authenticated: bool = False
    user_id: Optional[uuid.UUID] = None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None
    if authorization[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def resolve_auth_context(
    authorization: Optional[str], tokens: TokenService
) -> AuthContext:
    token = extract_bearer(authorization)
    if token is None:
        return AuthContext.anonymous()

    try:
        claims = tokens.verify(token)
    except TokenError as e:
        logger.debug("auth.token_rejected", reason=e.reason)
        return AuthContext.anonymous()

    return AuthContext(authenticated=True, user_id=claims.user_id)
