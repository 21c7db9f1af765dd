"""
Bounded engine event stream with backpressure.
Prevents slow consumers from blocking the tick loop.
"""
import asyncio
from typing import AsyncIterator, Optional, Set
from dataclasses import dataclass
import logging

from ..core.types import EngineEvent

logger = logging.getLogger(__name__)

@dataclass
class StreamStats:
    """Stream performance metrics"""
    messages_published: int = 0
    messages_dropped: int = 0
    active_subscribers: int = 0

class BoundedEventStream:
    """
    Non-blocking event publisher.

    Features:
    - One bounded queue per subscriber (fixed memory)
    - Drop policy when a subscriber is full (never blocks the producer)
    - Multiple independent subscribers
    - Metrics tracking
    """

    def __init__(self, maxsize: int = 1000):
        self.maxsize = maxsize
        self.stats = StreamStats()
        self._subscribers: Set[asyncio.Queue] = set()
        self._closed = False

    # ========================================================================
    # PUBLISHING
    # ========================================================================

    def publish_nowait(self, event: EngineEvent) -> bool:
        """
        Fan event out to every subscriber.
        Returns False if at least one subscriber dropped it.
        """
        if self._closed:
            return False

        delivered = True
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                delivered = False
                self.stats.messages_dropped += 1
                if self.stats.messages_dropped % 100 == 0:
                    logger.warning(
                        f"Stream backpressure: dropped {self.stats.messages_dropped} messages"
                    )

        self.stats.messages_published += 1
        return delivered

    # ========================================================================
    # SUBSCRIBING
    # ========================================================================

    def open_subscription(self) -> asyncio.Queue:
        """Register a subscriber queue. Events published from now on are delivered to it."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.maxsize)
        if self._closed:
            queue.put_nowait(None)
        else:
            self._subscribers.add(queue)
            self.stats.active_subscribers = len(self._subscribers)
        return queue

    def close_subscription(self, queue: asyncio.Queue):
        self._subscribers.discard(queue)
        self.stats.active_subscribers = len(self._subscribers)

    async def subscribe(self, queue: Optional[asyncio.Queue] = None) -> AsyncIterator[EngineEvent]:
        """
        Iterate events until the stream closes.
        Each subscriber gets its own buffer.
        """
        if queue is None:
            queue = self.open_subscription()
        try:
            while True:
                event = await queue.get()
                if event is None:  # Shutdown signal
                    break
                yield event
        finally:
            self.close_subscription(queue)

    # ========================================================================
    # UTILITIES
    # ========================================================================

    def get_stats(self) -> StreamStats:
        return self.stats

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        """Close stream and notify all subscribers"""
        self._closed = True
        for queue in self._subscribers:
            try:
                queue.put_nowait(None)
            except asyncio.QueueFull:
                # Make room for the shutdown signal
                queue.get_nowait()
                queue.put_nowait(None)
        self._subscribers.clear()
        self.stats.active_subscribers = 0
