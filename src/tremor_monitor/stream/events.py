"""
Event Broadcaster
=================

Fan-out of pipeline events to WebSocket subscribers.

publish() is synchronous and never blocks: it is the pipeline's event
sink and runs inside the sample path. Each subscriber owns a bounded
queue; a slow subscriber loses its oldest events, never the pipeline's
time.
"""

import asyncio
import logging
from typing import Dict, List

from tremor_monitor.models.output import TremorEvent


logger = logging.getLogger(__name__)


class EventBroadcaster:
    """
    Publish/subscribe hub for TremorEvents.

    Example:
        broadcaster = EventBroadcaster()
        pipeline = TremorPipeline(config, event_sink=broadcaster.publish)

        queue = broadcaster.subscribe()
        try:
            while True:
                event = await queue.get()
                await websocket.send_json(event.model_dump())
        finally:
            broadcaster.unsubscribe(queue)
    """

    def __init__(self, queue_size: int = 256) -> None:
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        self.queue_size = queue_size
        self._subscribers: List[asyncio.Queue] = []
        self._published: Dict[str, int] = {}
        self._dropped_count: int = 0

    def subscribe(self) -> asyncio.Queue:
        """Register a new subscriber and return its queue."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.append(queue)
        logger.info(f"Event subscriber added ({len(self._subscribers)} total)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        """Remove a subscriber. Unknown queues are ignored."""
        if queue in self._subscribers:
            self._subscribers.remove(queue)
            logger.info(f"Event subscriber removed ({len(self._subscribers)} left)")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: TremorEvent) -> None:
        """Deliver an event to every subscriber, dropping oldest on overflow."""
        self._published[event.event.value] = self._published.get(event.event.value, 0) + 1

        for queue in self._subscribers:
            if queue.full():
                try:
                    queue.get_nowait()
                    self._dropped_count += 1
                except asyncio.QueueEmpty:
                    pass
            queue.put_nowait(event)

    def metrics(self) -> dict:
        """Get broadcaster metrics for observability."""
        return {
            "subscribers": len(self._subscribers),
            "published": dict(self._published),
            "dropped_count": self._dropped_count,
        }
