"""Redis pub/sub — broadcast feed changes to WebSocket listeners.

Learn: Redis pub/sub is fire-and-forget. If no one is listening, the
message is lost. That's fine for live feed updates: clients can always
re-read the listing to catch up. Publishing is best effort and never
fails the request that triggered it.

Channel: postfeed:posts
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger()

POSTS_CHANNEL = "postfeed:posts"

POST_CREATED = "create"
POST_UPDATED = "update"
POST_DELETED = "delete"


async def connect_redis(url: str) -> aioredis.Redis:
    """Open a Redis connection pool and verify it answers."""
    client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    return client


class PostNotifier:
    """Publishes post lifecycle events. A notifier without Redis is a no-op."""

    def __init__(self, redis: Optional[aioredis.Redis] = None):
        self.redis = redis

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    async def publish(self, action: str, post: dict[str, Any]) -> None:
        if self.redis is None:
            return
        payload = json.dumps({"action": action, "post": post}, default=str)
        try:
            await self.redis.publish(POSTS_CHANNEL, payload)
        except Exception as e:
            logger.warning("realtime.publish_failed", action=action, error=str(e))

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
