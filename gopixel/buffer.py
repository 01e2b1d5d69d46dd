from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .callbacks import (
    BufferPressure,
    NullTrackerCallbacks,
    TrackerCallbacks,
    calculate_buffer_pressure,
)
from .constants import MAX_BUFFER_SIZE
from .events import Event

logger = logging.getLogger(__name__)


class EventBuffer:
    """
    Bounded, insertion-ordered holding area for events awaiting transport.

    - push() never blocks: when full, the event is dropped
    - consume() swaps the contents for an empty list in one step
    - consume() returns nothing until start() has been called, so tasks
      cannot drain events before the tracker is allowed to send them
    """

    def __init__(
        self,
        capacity: int = MAX_BUFFER_SIZE,
        callbacks: Optional[TrackerCallbacks] = None,
    ):
        if capacity <= 0:
            raise ValueError("Buffer capacity must be positive")

        self.capacity = capacity
        self.callbacks: TrackerCallbacks = callbacks or NullTrackerCallbacks()

        self._events: List[Event] = []
        self._started = False
        self._last_pressure = BufferPressure.LOW

    def __len__(self) -> int:
        return len(self._events)

    def is_empty(self) -> bool:
        return not self._events

    def is_started(self) -> bool:
        return self._started

    @property
    def pressure(self) -> BufferPressure:
        return calculate_buffer_pressure(len(self._events), self.capacity)

    def push(self, event: Event) -> bool:
        """
        Append an event, unless the buffer is full.

        Can be called before start(): events are collected until sending is
        allowed.

        Returns:
            bool: False if the event was dropped.
        """
        if len(self._events) >= self.capacity:
            logger.debug("Buffer is full. Dropping event %s", event.name)
            self._notify_dropped(event)
            return False

        self._events.append(event)
        self._notify_pressure()
        return True

    def consume(self) -> List[Event]:
        """
        Take every buffered event, leaving the buffer empty.

        Returns:
            List[Event]: The events in push order, or an empty list if the
            buffer has not been started.
        """
        if not self._started:
            logger.debug("Cannot consume events before the buffer has started")
            return []

        events, self._events = self._events, []
        self._notify_pressure()
        return events

    def requeue(self, events: Iterable[Event]) -> None:
        """
        Put events from a failed send back at the front of the buffer.

        They go ahead of anything pushed since they were consumed, and are
        not subject to the capacity check: they were already accepted once.
        This is the only way the buffer can hold more than `capacity` events;
        push() keeps refusing new events until it drains below capacity.
        """
        events = list(events)
        if not events:
            return

        self._events = events + self._events
        logger.debug(
            "Re-queued %s events, buffer size %s", len(events), len(self._events)
        )
        self._notify_pressure()

    def peek(self) -> List[Event]:
        return list(self._events)

    def start(self) -> None:
        self._started = True
        logger.info("Start sending events, awaiting events in buffer: %s", len(self))

    def stop(self) -> None:
        self._started = False

    def kill(self) -> None:
        """
        Stop consumption and discard every buffered event.
        """
        dropped = len(self._events)
        self._started = False
        self._events = []
        self._notify_pressure()
        logger.info("Cleared events buffer, %s events discarded.", dropped)

    def _notify_dropped(self, event: Event) -> None:
        try:
            self.callbacks.event_dropped(event.name, len(self._events))
        except Exception:
            logger.exception("event_dropped callback failed")

    def _notify_pressure(self) -> None:
        current = self.pressure
        if current == self._last_pressure:
            return

        self._last_pressure = current
        if current is BufferPressure.CRITICAL:
            logger.warning(
                "Buffer pressure critical: %s/%s events", len(self), self.capacity
            )

        try:
            self.callbacks.buffer_pressure(current, len(self._events), self.capacity)
        except Exception:
            logger.exception("buffer_pressure callback failed")
