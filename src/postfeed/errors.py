"""Failure taxonomy.

Every failure that crosses the HTTP boundary is exactly one of these kinds.
Handlers and services raise them; api/errors.py renders them as JSON.

    ValidationFailed  422  client input violates one or more field rules
    Unauthenticated   401  no, invalid, or expired credential
    Unauthorized      403  caller is known but is not the resource's creator
    NotFound          404  referenced entity is absent
    Conflict          409  uniqueness violation (duplicate email)
    Internal          500  unexpected collaborator failure

Routing failures reuse these kinds: an unsupported method on a known path
is reported as not_found (status 405). The one response outside the
taxonomy is the rate limiter's 429 "rate_limited", which is produced by
middleware before any operation runs.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class FeedError(Exception):
    """Base class for all classified failures."""

    kind: str = "internal"
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationFailed(FeedError):
    kind = "validation"
    status_code = 422
    default_message = "Validation failed"

    def __init__(self, errors: list[FieldError], message: str | None = None):
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = [
            {"field": e.field, "message": e.message} for e in self.errors
        ]
        return data


class Unauthenticated(FeedError):
    kind = "unauthenticated"
    status_code = 401
    default_message = "Not authenticated"


class Unauthorized(FeedError):
    kind = "unauthorized"
    status_code = 403
    default_message = "Not authorized"


class NotFound(FeedError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class Conflict(FeedError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class Internal(FeedError):
    pass
