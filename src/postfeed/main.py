"""FastAPI application factory.

Learn: App factory pattern. create_app(settings) returns a configured
FastAPI instance. Everything process-wide (engine, session factory, token
service, notifier) is built here from the Settings passed in and stored on
app.state; handlers reach it through dependencies, never through module
globals. Lifespan handles the parts that need I/O (Redis, engine disposal).
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from postfeed import __version__
from postfeed.api import api_router
from postfeed.api.errors import register_exception_handlers
from postfeed.auth.tokens import TokenService
from postfeed.config import Settings, get_settings
from postfeed.db.engine import build_engine, build_session_factory
from postfeed.realtime.pubsub import PostNotifier, connect_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Redis is optional: without it the feed works, minus live
    updates and rate limiting.
    """
    settings: Settings = app.state.settings
    logger.info(
        "postfeed.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    try:
        redis = await connect_redis(settings.redis_url)
        app.state.redis = redis
        app.state.notifier = PostNotifier(redis)
        logger.info("postfeed.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("postfeed.redis_unavailable", error=str(e))

    yield

    logger.info("postfeed.shutdown")
    await app.state.notifier.close()
    app.state.redis = None
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Postfeed",
        description="Content feed with bearer-token auth and creator-owned posts",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.tokens = TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        default_ttl=timedelta(minutes=settings.token_ttl_minutes),
    )
    app.state.redis = None
    app.state.notifier = PostNotifier()

    register_exception_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from postfeed.middleware.rate_limit import RateLimitMiddleware
    from postfeed.middleware.request_id import RequestIdMiddleware
    from postfeed.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(api_router)

    from postfeed.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "postfeed.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
