"""Exception handlers — map every failure onto the error taxonomy.

Learn: Handlers registered on the app turn exceptions into JSON bodies of
the form {"kind": ..., "message": ...}. Anything unclassified (database
down, a bug) is logged with its traceback and returned as a generic 500,
so internal details never reach the client.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from postfeed.auth.context import resolve_auth_context
from postfeed.auth.dependencies import get_current_user_id
from postfeed.errors import (
    FeedError,
    FieldError,
    Internal,
    NotFound,
    Unauthenticated,
    ValidationFailed,
)

logger = structlog.get_logger()

_KIND_BY_STATUS = {
    400: "validation",
    401: "unauthenticated",
    403: "unauthorized",
    404: "not_found",
    405: "not_found",
    409: "conflict",
    422: "validation",
}


def error_response(error: FeedError) -> JSONResponse:
    headers = None
    if isinstance(error, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers=headers,
    )


def _field_name(loc: tuple, error_type: str = "") -> str:
    if error_type == "json_invalid":
        return "body"
    # ("body", "title") → "title"; ("query", "page") → "page"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


async def handle_feed_error(request: Request, exc: FeedError) -> JSONResponse:
    if isinstance(exc, Internal):
        logger.error("request.internal_error", path=request.url.path, error=exc.message)
        return error_response(Internal())
    return error_response(exc)


def _depends_on_caller(dependant) -> bool:
    return any(
        sub.call is get_current_user_id or _depends_on_caller(sub)
        for sub in dependant.dependencies
    )


def _route_requires_caller(request: Request) -> bool:
    endpoint = request.scope.get("endpoint")
    for route in request.app.routes:
        if isinstance(route, APIRoute) and route.endpoint is endpoint:
            return _depends_on_caller(route.dependant)
    return False


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # FastAPI parses the JSON body before it solves dependencies, so a body
    # that is not JSON at all lands here first. Authentication still wins.
    if _route_requires_caller(request):
        context = resolve_auth_context(
            request.headers.get("authorization"), request.app.state.tokens
        )
        if not context.authenticated:
            return error_response(Unauthenticated("Authentication required"))

    errors = [
        FieldError(
            field=_field_name(tuple(e.get("loc", ())), e.get("type", "")),
            message=e.get("msg", "Invalid value"),
        )
        for e in exc.errors()
    ]
    return error_response(ValidationFailed(errors))


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(NotFound(str(exc.detail)))
    kind = _KIND_BY_STATUS.get(
        exc.status_code, "internal" if exc.status_code >= 500 else "validation"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": kind, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("request.database_error", path=request.url.path)
    return error_response(Internal())


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", path=request.url.path)
    return error_response(Internal())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FeedError, handle_feed_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(Exception, handle_unexpected)
