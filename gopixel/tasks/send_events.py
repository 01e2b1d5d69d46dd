from __future__ import annotations

import logging
from typing import Optional

from gopixel.buffer import EventBuffer
from gopixel.callbacks import NullTrackerCallbacks, TrackerCallbacks
from gopixel.config import TrackingContext
from gopixel.constants import SEND_TASK_NAME, SEND_TASK_RATE
from gopixel.transport import EventClient

from .manager import Task, TaskFailurePolicy, TaskReturnCode

logger = logging.getLogger(__name__)


class SendEventsTask:
    """
    Drains the buffer into the transport client.

    Skips when there is nothing to send or a request is already in flight.
    On failure the drained events go back to the front of the buffer and the
    error is re-raised for the task manager to count.
    """

    def __init__(
        self,
        buffer: EventBuffer,
        client: EventClient,
        context: TrackingContext,
        callbacks: Optional[TrackerCallbacks] = None,
    ):
        self.buffer = buffer
        self.client = client
        self.context = context
        self.callbacks: TrackerCallbacks = callbacks or NullTrackerCallbacks()

    def make_task(
        self,
        rate: float = SEND_TASK_RATE,
        failure_policy: TaskFailurePolicy = TaskFailurePolicy.RETRY,
    ) -> Task:
        return Task(
            name=SEND_TASK_NAME,
            rate=rate,
            failure_policy=failure_policy,
            callback=self.send,
        )

    async def send(self) -> TaskReturnCode:
        if self.buffer.is_empty():
            return TaskReturnCode.SKIP

        if not self.client.is_free():
            return TaskReturnCode.SKIP

        # From here on, events are lost unless they are re-queued
        events = self.buffer.consume()
        if not events:
            return TaskReturnCode.SKIP

        try:
            sent = await self.client.send_events(events, self.context)
        except Exception as e:
            logger.error(
                "Failed to send %s events, adding them back to the buffer: %s",
                len(events),
                e,
            )
            self.buffer.requeue(events)
            self._notify_failed(len(events), e)
            raise

        if not sent:
            self.buffer.requeue(events)
            return TaskReturnCode.SKIP

        logger.debug("Sent %s events", len(events))
        self._notify_sent(len(events))
        return TaskReturnCode.SUCCESS

    def _notify_sent(self, count: int) -> None:
        try:
            self.callbacks.batch_sent(count)
        except Exception:
            logger.exception("batch_sent callback failed")

    def _notify_failed(self, count: int, exc: Exception) -> None:
        try:
            self.callbacks.batch_failed(count, exc)
        except Exception:
            logger.exception("batch_failed callback failed")
