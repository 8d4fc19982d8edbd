"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. get_auth_context is
the "soft" dependency: it never fails and yields an anonymous context when
the bearer token is missing or bad. get_current_user_id is the "hard" one:
401 unless the caller is authenticated. FastAPI resolves dependencies
before validating the request body, so an unauthenticated request with a
bad body reports 401, not 422. A body that is not JSON at all fails before
any dependency runs; api/errors.py re-checks the caller in that case.
"""

import uuid
from typing import Optional

from fastapi import Depends, Header, Request

from postfeed.auth.context import AuthContext, resolve_auth_context
from postfeed.auth.guards import require_authenticated
from postfeed.auth.tokens import TokenService


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_auth_context(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext:
    return resolve_auth_context(authorization, tokens)


def get_current_user_id(
    context: AuthContext = Depends(get_auth_context),
) -> uuid.UUID:
    return require_authenticated(context)
