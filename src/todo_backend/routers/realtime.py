"""WebSocket endpoint streaming task events to connected clients."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services.broadcast_hub import BroadcastHub, Subscriber

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)


async def _forward_events(subscriber: Subscriber) -> None:
    """Send queued events to the client until the connection goes away."""
    while True:
        message = await subscriber.queue.get()
        await subscriber.websocket.send_json(message)


async def _drain_incoming(websocket: WebSocket) -> None:
    """Discard text and binary client frames; returns when the client disconnects."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def handle_connection(websocket: WebSocket, hub: BroadcastHub) -> None:
    """Register the client, stream events to it, and unregister on exit."""
    # Registered before the handshake; anything queued meanwhile is sent once the sender starts
    subscriber = await hub.subscribe(websocket)
    try:
        await websocket.accept()

        sender = asyncio.create_task(_forward_events(subscriber))
        receiver = asyncio.create_task(_drain_incoming(websocket))
        try:
            await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sender, receiver):
                task.cancel()
            results = await asyncio.gather(sender, receiver, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception) and not isinstance(
                    result, WebSocketDisconnect
                ):
                    logger.warning(
                        "Connection error for %s: %r", subscriber.subscriber_id, result
                    )
    finally:
        await hub.unsubscribe(subscriber)


@router.websocket("/ws")
async def task_events(websocket: WebSocket) -> None:
    hub = getattr(websocket.app.state, "broadcast_hub", None)
    if hub is None:
        logger.error("Broadcast hub not initialized")
        await websocket.close(code=1011, reason="Server not ready")
        return

    await handle_connection(websocket, hub)


__all__ = ["router", "handle_connection"]
