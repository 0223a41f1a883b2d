"""Thread-safe registry of skill_request_id -> live subscriber queues.

Delivery is at-most-once: a subscriber whose queue is full loses the message,
and nothing is replayed for late subscribers. Clients that reconnect re-fetch
the conversation history.
"""
import asyncio
import threading
import logging
from typing import Any, Dict, Set

logger = logging.getLogger(__name__)

SUBSCRIBER_QUEUE_SIZE = 100


class MessageHub:
    def __init__(self, queue_size: int = SUBSCRIBER_QUEUE_SIZE):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._channels: Dict[str, Set[asyncio.Queue]] = {}

    def subscribe(self, request_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        with self._lock:
            self._channels.setdefault(request_id, set()).add(queue)
        logger.debug(f"Subscribed to messages of request {request_id}")
        return queue

    def unsubscribe(self, request_id: str, queue: asyncio.Queue) -> None:
        with self._lock:
            subscribers = self._channels.get(request_id)
            if subscribers is None:
                return
            subscribers.discard(queue)
            if not subscribers:
                del self._channels[request_id]
        logger.debug(f"Unsubscribed from messages of request {request_id}")

    def subscriber_count(self, request_id: str) -> int:
        with self._lock:
            return len(self._channels.get(request_id, ()))

    def publish(self, request_id: str, message: Dict[str, Any]) -> int:
        """Push a committed message to every subscriber of the request. Returns deliveries."""
        with self._lock:
            subscribers = list(self._channels.get(request_id, ()))
        delivered = 0
        for queue in subscribers:
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Dropped message for a slow subscriber of request {request_id}")
        return delivered


message_hub = MessageHub()
