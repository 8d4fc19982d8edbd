"""WebSocket endpoint — live feed updates for connected clients.

Learn: Each client connects to /ws/posts. Two tasks run side by side:
1. Redis listener — reads from the posts channel, sends to the WebSocket
2. Client listener — drains incoming frames and notices disconnects

When either side finishes, both are cancelled and awaited before the
subscription is released. Reading the feed is public, so the socket
needs no token.
"""

import asyncio

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from postfeed.realtime.pubsub import POSTS_CHANNEL

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws/posts")
async def posts_websocket(websocket: WebSocket):
    notifier = websocket.app.state.notifier
    if not notifier.enabled:
        await websocket.close(code=1013, reason="Live updates unavailable")
        return

    await websocket.accept()
    pubsub = notifier.redis.pubsub()
    await pubsub.subscribe(POSTS_CHANNEL)

    async def redis_listener():
        async for message in pubsub.listen():
            if message["type"] == "message":
                await websocket.send_text(message["data"])

    async def client_listener():
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    tasks = [
        asyncio.create_task(redis_listener()),
        asyncio.create_task(client_listener()),
    ]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if task.exception() is not None:
                logger.warning("ws.listener_failed", error=str(task.exception()))
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await pubsub.unsubscribe(POSTS_CHANNEL)
        await pubsub.aclose()
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
