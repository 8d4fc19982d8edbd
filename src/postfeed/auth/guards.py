"""Authorization guards.

require_authenticated() runs before any validation or repository access.
require_owner() runs only after the resource was loaded, so a missing
post surfaces as NotFound rather than Unauthorized.
"""

import uuid

from postfeed.auth.context import AuthContext
from postfeed.errors import Unauthenticated, Unauthorized
from postfeed.repositories.posts import PostRecord


def require_authenticated(context: AuthContext) -> uuid.UUID:
    if not context.authenticated or context.user_id is None:
        raise Unauthenticated("Authentication required")
    return context.user_id


def require_owner(post: PostRecord, caller_id: uuid.UUID) -> None:
    if post.creator_id != caller_id:
        raise Unauthorized("Only the creator of this post may change it")
