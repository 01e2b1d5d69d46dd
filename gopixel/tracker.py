from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from .buffer import EventBuffer
from .callbacks import NullTrackerCallbacks, TrackerCallbacks
from .config import PixelConfig, TrackingContext
from .errors import TrackerAlreadyInitializedError, TrackerKilledError
from .events import Event, EventFactoryRegistry
from .logs_helpers import log_call
from .tasks import SendEventsTask, TaskManager, TaskReturnCode
from .transport import EventClient

logger = logging.getLogger(__name__)


class Tracker:
    """
    Entry point of the pixel: owns the buffer, the transport client and the
    task manager of one visitor session.

    Events can be pushed as soon as the tracker exists; they are only sent
    once start() has been called (consent given). Use it as an async
    context manager to get the unload flush on exit:

        async with Tracker(config) as tracker:
            tracker.start()
            tracker.push(Event("page_load", payload))
    """

    def __init__(
        self,
        config: PixelConfig,
        context: Optional[TrackingContext] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        registry: Optional[EventFactoryRegistry] = None,
        callbacks: Optional[TrackerCallbacks] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        logger.debug("Initialized with config %s", config)

        self.config = config
        self.context = context or TrackingContext(client=config.licence)
        self.registry = registry or EventFactoryRegistry()
        self.callbacks: TrackerCallbacks = callbacks or NullTrackerCallbacks()

        self.buffer = EventBuffer(config.buffer_capacity, callbacks=self.callbacks)
        self.client = EventClient(
            config.endpoint, http_client=http_client, timeout=config.request_timeout
        )
        self.sender = SendEventsTask(
            self.buffer, self.client, self.context, callbacks=self.callbacks
        )

        self._clock = clock
        self.tasks = self._new_task_manager()

        self._initialized = False
        self._started = False
        self._killed = False

    def _new_task_manager(self) -> TaskManager:
        return TaskManager(
            frame_interval=self.config.frame_interval,
            clock=self._clock,
            on_kill=self.callbacks.scheduler_killed,
        )

    @property
    def started(self) -> bool:
        return self._started

    @property
    def killed(self) -> bool:
        return self._killed

    def push(self, event: Event) -> bool:
        """
        Add an event to the buffer. Allowed before start().

        Returns:
            bool: False if the buffer is full and the event was dropped.
        """
        return self.buffer.push(event)

    def push_event(self, name: str) -> bool:
        """
        Build an event with its registered factory and push it.

        Raises:
            FactoryNotFoundError: If no factory is registered under name.
        """
        return self.push(self.registry.create(name))

    @log_call()
    def init(self, *initial_events: str) -> None:
        """
        Start collecting, pushing the given events first (e.g. page load).

        Raises:
            TrackerAlreadyInitializedError: If called twice.
        """
        if self._initialized:
            raise TrackerAlreadyInitializedError()

        for name in initial_events:
            self.push_event(name)

        self._initialized = True

    @log_call(show_args=False)
    def start(self) -> None:
        """
        Allow sending: register the send task and start the task manager.

        Must be called from a running event loop. After unload() it resumes
        sending with a fresh task manager.
        """
        if self._killed:
            raise TrackerKilledError()

        if self._started:
            return

        # Raises RuntimeError outside a loop, before any state is touched
        asyncio.get_running_loop()

        if not self._initialized:
            self.init()

        if self.tasks.is_killed():
            self.tasks = self._new_task_manager()

        self.tasks.add_task(self.sender.make_task(rate=self.config.send_rate))
        self.buffer.start()
        self.tasks.start()
        self._started = True

    @log_call(show_args=False)
    def restart(self) -> None:
        """
        Resume sending after the task manager was killed by a failure policy
        or by unload().

        Buffered events are kept.
        """
        if self._killed:
            raise TrackerKilledError()

        if not self._started:
            self.start()
            return

        if not self.tasks.is_killed():
            return

        self.tasks = self._new_task_manager()
        self.tasks.add_task(self.sender.make_task(rate=self.config.send_rate))
        self.tasks.start()
        logger.info("Task manager restarted with %s buffered events", len(self.buffer))

    @log_call(show_args=False)
    def kill(self) -> None:
        """
        Stop tracking for good and discard buffered events.

        A request already in flight is not aborted.
        """
        self.tasks.kill(reason="tracker killed")
        self.buffer.kill()
        self._killed = True

    async def flush(self) -> bool:
        """
        Send everything buffered now, outside the task manager cadence.

        Returns:
            bool: True if a batch was delivered.
        """
        if not self._started or self._killed:
            logger.warning("Tracker is not started. Events will not be sent.")
            return False

        # Let scheduled sends settle, so their failed events are back in the buffer
        await self.tasks.wait_pending()
        await self.client.wait_idle()

        try:
            code = await self.sender.send()
        except Exception as e:
            logger.error("Failed to send all events: %s", e)
            return False

        if code is TaskReturnCode.SUCCESS:
            logger.debug("All events sent.")
            return True

        return False

    @log_call(show_args=False, show_result=True)
    async def unload(self, grace_period: Optional[float] = None) -> bool:
        """
        Final flush before the host goes away.

        Stops the task manager, waits for in-flight sends and sends what is
        left in the buffer, all within grace_period seconds. Never raises on
        delivery failure.

        Returns:
            bool: True if nothing was left behind.
        """
        if not self._started or self._killed:
            return False

        grace = self.config.unload_grace_period if grace_period is None else grace_period
        loop = asyncio.get_running_loop()
        deadline = loop.time() + grace

        self.tasks.kill(reason="unload")

        try:
            if not await self.tasks.wait_pending(timeout=grace):
                logger.warning("Pending sends did not settle before unload")
                return False

            if self.buffer.is_empty():
                return True

            remaining = max(deadline - loop.time(), 0)
            try:
                return await asyncio.wait_for(self.flush(), timeout=remaining)
            except asyncio.TimeoutError:
                logger.warning(
                    "Final flush did not settle within %ss, %s events left",
                    grace,
                    len(self.buffer),
                )
                return False
        finally:
            self._started = False

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "Tracker":
        return self

    async def __aexit__(self, *exc) -> None:
        try:
            await self.unload()
        finally:
            await self.aclose()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "started": self._started,
            "killed": self._killed,
            "visitor": self.context.visitor,
            "events_in_buffer": len(self.buffer),
            "buffer_capacity": self.buffer.capacity,
            "buffer_pressure": self.buffer.pressure.value,
            "sender_busy": not self.client.is_free(),
            "scheduler": self.tasks.get_stats(),
        }
