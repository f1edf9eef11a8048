"""
EventQueue: the single ordered stream consumed by the main loop.

Producers (input poller, ticker, broker session) call put(); the main loop
calls get_nowait() once per iteration. All calls happen on the event loop
thread, so no locking is needed.

Overflow policy when the queue holds maxsize events:
- drop the oldest queued TickEvent to make room;
- if no tick is queued and the incoming event is a tick, drop the incoming tick;
- input and broker events are never dropped; the queue grows past maxsize.
"""

from __future__ import annotations

import logging
from collections import deque

from kafka_eye.app.events import Event, TickEvent

logger = logging.getLogger(__name__)


class EventQueue:
    """
    Bounded FIFO of events with a tick-dropping overflow policy.

    Example:
        queue = EventQueue(maxsize=1024)
        queue.put(TickEvent())
        event = queue.get_nowait()  # None when empty
    """

    def __init__(self, maxsize: int = 1024) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._events: deque[Event] = deque()
        self.dropped_ticks = 0

    def put(self, event: Event) -> bool:
        """
        Enqueue an event.

        Returns:
            False if the event was a tick that got dropped, True otherwise
        """
        if len(self._events) >= self.maxsize:
            if not self._drop_oldest_tick():
                if isinstance(event, TickEvent):
                    self.dropped_ticks += 1
                    return False
                logger.warning("Event queue over capacity (%d queued)", len(self._events))
        self._events.append(event)
        return True

    def _drop_oldest_tick(self) -> bool:
        for index, queued in enumerate(self._events):
            if isinstance(queued, TickEvent):
                del self._events[index]
                self.dropped_ticks += 1
                return True
        return False

    def get_nowait(self) -> Event | None:
        """Pop the oldest event, or None if the queue is empty."""
        if not self._events:
            return None
        return self._events.popleft()

    def __len__(self) -> int:
        return len(self._events)

    def empty(self) -> bool:
        return not self._events
