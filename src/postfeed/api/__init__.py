"""API route aggregation.

All routers registered here get mounted in main.py. Auth is applied per
route (not per router) because the feed router mixes a public listing
with authenticated mutations.
"""

from fastapi import APIRouter

from postfeed.api.auth import router as auth_router
from postfeed.api.feed import router as feed_router
from postfeed.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(feed_router, tags=["feed"])
