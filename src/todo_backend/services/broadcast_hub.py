"""In-process registry of live WebSocket subscribers and event fan-out."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

# Task events pushed to subscribers after a successful mutation
TASK_CREATED = "task.created"
TASK_DESCRIPTION_UPDATED = "task.description.updated"
TASK_STATUS_UPDATED = "task.status.updated"
TASK_DELETED = "task.deleted"
TASK_BATCH_COMPLETED = "task.batch.completed"
TASK_BATCH_DELETED = "task.batch.deleted"

DEFAULT_QUEUE_SIZE = 100


@dataclass(eq=False)
class Subscriber:
    """A single connected client and the events waiting to be sent to it."""

    websocket: WebSocket
    queue: asyncio.Queue[dict[str, Any]]
    subscriber_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BroadcastHub:
    """Tracks connected subscribers and delivers named events to all of them.

    Delivery is best-effort: ``publish`` only enqueues, and a subscriber
    whose queue is full misses the event. Nothing is persisted or retried.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self._queue_size = max(1, queue_size)
        self._subscribers: dict[str, Subscriber] = {}
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, websocket: WebSocket) -> Subscriber:
        """Register an accepted WebSocket as a subscriber."""
        subscriber = Subscriber(
            websocket=websocket,
            queue=asyncio.Queue(maxsize=self._queue_size),
        )
        async with self._lock:
            self._subscribers[subscriber.subscriber_id] = subscriber
            total = len(self._subscribers)
        logger.info("Client connected: %s (%d subscribers)", subscriber.subscriber_id, total)
        return subscriber

    async def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove a subscriber; unknown subscribers are ignored."""
        async with self._lock:
            removed = self._subscribers.pop(subscriber.subscriber_id, None)
            total = len(self._subscribers)
        if removed is not None:
            logger.info(
                "Client disconnected: %s (%d subscribers)",
                subscriber.subscriber_id,
                total,
            )

    async def publish(self, event: str, payload: Any) -> int:
        """Enqueue an event for every current subscriber.

        Returns the number of subscribers the event was enqueued for.
        """
        async with self._lock:
            snapshot = list(self._subscribers.values())

        message = {"event": event, "data": payload}
        delivered = 0
        for subscriber in snapshot:
            try:
                subscriber.queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.warning(
                    "Dropping %s for slow subscriber %s", event, subscriber.subscriber_id
                )
                continue
            delivered += 1

        logger.debug("Broadcast %s to %d/%d subscribers", event, delivered, len(snapshot))
        return delivered


__all__ = [
    "BroadcastHub",
    "Subscriber",
    "TASK_BATCH_COMPLETED",
    "TASK_BATCH_DELETED",
    "TASK_CREATED",
    "TASK_DELETED",
    "TASK_DESCRIPTION_UPDATED",
    "TASK_STATUS_UPDATED",
]
