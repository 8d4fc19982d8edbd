"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and its
dependencies (database, Redis) are reachable. Redis is optional, so its
absence degrades nothing but live updates and rate limiting.
"""

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text

from postfeed import __version__

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception:
        logger.exception("health.database_unreachable")
        checks["database"] = "error"

    redis = request.app.state.notifier.redis
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception:
            logger.exception("health.redis_unreachable")
            checks["redis"] = "error"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
