"""
Frame-paced scheduler for recurring tasks.

A single driver task ticks every frame and fires each registered task no
faster than its rate, so adding tasks never adds timers.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Set

from gopixel.constants import DEFAULT_FRAME_INTERVAL, MAX_CONSECUTIVE_ERRORS
from gopixel.errors import DuplicateTaskError, SchedulerKilledError

logger = logging.getLogger(__name__)


class TaskReturnCode(Enum):
    SUCCESS = 0
    SKIP = 1
    FAILURE = 2


class TaskFailurePolicy(Enum):
    """
    How the manager reacts when a task fails or raises.

    - STOP_EXECUTION: kill the manager on the first failure
    - RETRY: kill the manager after MAX_CONSECUTIVE_ERRORS consecutive failures
    - CONTINUE: log and keep scheduling the task
    """

    STOP_EXECUTION = "stop"
    RETRY = "retry"
    CONTINUE = "continue"


DEFAULT_FAILURE_POLICY = TaskFailurePolicy.RETRY


class SchedulerState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    KILLED = "killed"


class TaskState(Enum):
    IDLE = "idle"
    RUNNING = "running"


TaskFn = Callable[[], Awaitable[TaskReturnCode]]


@dataclass
class Task:
    """
    A recurring task, fired at most `rate` times per second.
    """

    name: str
    rate: float
    callback: TaskFn
    failure_policy: TaskFailurePolicy = DEFAULT_FAILURE_POLICY


@dataclass
class RegisteredTask:
    name: str
    rate: float
    failure_policy: TaskFailurePolicy
    callback: TaskFn
    last_fire: float
    errors: int = 0
    state: TaskState = TaskState.IDLE
    in_flight: int = 0

    @property
    def interval(self) -> float:
        return 1 / self.rate


class TaskManager:
    """
    Runs registered tasks from one shared driver loop.

    - a task fires when at least 1/rate seconds elapsed since it last fired
    - tasks are evaluated in registration order
    - last_fire is updated when the task fires, before its outcome is known
    - kill() is terminal: in-flight callbacks finish but nothing fires again
    """

    def __init__(
        self,
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        on_kill: Optional[Callable[[Optional[str]], None]] = None,
    ):
        """
        Args:
            frame_interval: Seconds between two drive ticks
            clock: Monotonic time source, in seconds
            on_kill: Called once, with the reason, when the manager is killed
        """
        if frame_interval <= 0:
            raise ValueError("frame_interval must be positive")

        self.frame_interval = frame_interval
        self._clock = clock
        self._on_kill = on_kill

        self._tasks: Dict[str, RegisteredTask] = {}
        self._state = SchedulerState.STOPPED
        self._driver: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    def is_killed(self) -> bool:
        return self._state is SchedulerState.KILLED

    def add_task(self, task: Task) -> RegisteredTask:
        """
        Register a task. Its first run happens one interval after registration.
        """
        if self._state is SchedulerState.KILLED:
            raise SchedulerKilledError()

        if task.rate <= 0:
            raise ValueError(f"Task '{task.name}' rate must be positive")

        if task.name in self._tasks:
            raise DuplicateTaskError(task.name)

        registered = RegisteredTask(
            name=task.name,
            rate=task.rate,
            failure_policy=task.failure_policy,
            callback=task.callback,
            last_fire=self._clock(),
        )
        self._tasks[task.name] = registered
        logger.debug(
            "Registered task %s at %s Hz (%s)",
            task.name,
            task.rate,
            task.failure_policy.value,
        )
        return registered

    def get_task(self, name: str) -> RegisteredTask:
        return self._tasks[name]

    @property
    def tasks(self) -> List[RegisteredTask]:
        return list(self._tasks.values())

    def start(self) -> None:
        """
        Start the driver loop. Must be called from a running event loop.
        """
        if self._state is SchedulerState.KILLED:
            raise SchedulerKilledError()

        if self._state is SchedulerState.RUNNING:
            return

        self._driver = asyncio.get_running_loop().create_task(self._drive())
        self._state = SchedulerState.RUNNING
        logger.debug("TaskManager started with %s tasks", len(self._tasks))

    async def _drive(self) -> None:
        while self._state is SchedulerState.RUNNING:
            self.tick(self._clock())
            await asyncio.sleep(self.frame_interval)

    def tick(self, now: Optional[float] = None) -> int:
        """
        Evaluate every task once, firing those whose interval has elapsed.

        Args:
            now: Current clock value; read from the clock when omitted.

        Returns:
            int: Number of callbacks fired.
        """
        if self._state is SchedulerState.KILLED:
            return 0

        if now is None:
            now = self._clock()

        fired = 0
        for task in list(self._tasks.values()):
            if self._state is SchedulerState.KILLED:
                break

            if now - task.last_fire < task.interval:
                continue

            task.last_fire = now
            pending = asyncio.ensure_future(self._run(task))
            self._pending.add(pending)
            pending.add_done_callback(self._pending.discard)
            fired += 1

        return fired

    async def _run(self, task: RegisteredTask) -> None:
        task.state = TaskState.RUNNING
        task.in_flight += 1

        try:
            code = await task.callback()
        except Exception as e:
            logger.debug("Task %s raised %s: %s", task.name, e.__class__.__name__, e)
            code = TaskReturnCode.FAILURE
        finally:
            task.in_flight -= 1
            if task.in_flight == 0:
                task.state = TaskState.IDLE

        self._record_outcome(task, code)

    def _record_outcome(self, task: RegisteredTask, code: TaskReturnCode) -> None:
        if code is TaskReturnCode.SUCCESS:
            task.errors = 0
        elif code is TaskReturnCode.SKIP:
            pass
        else:
            task.errors += 1
            self._apply_failure_policy(task)

    def _apply_failure_policy(self, task: RegisteredTask) -> None:
        if task.failure_policy is TaskFailurePolicy.CONTINUE:
            logger.error(
                "Task %s failed, continue... (%s consecutive errors)",
                task.name,
                task.errors,
            )
            return

        if task.failure_policy is TaskFailurePolicy.RETRY:
            if task.errors >= MAX_CONSECUTIVE_ERRORS:
                logger.error(
                    "Task %s failed too many times (%s)", task.name, task.errors
                )
                self.kill(reason=f"task {task.name} failed {task.errors} times")
                return

            logger.warning(
                "Task %s failed, retrying later... (%s/%s)",
                task.name,
                task.errors,
                MAX_CONSECUTIVE_ERRORS,
            )
            return

        logger.error("Stopping execution. Task %s failed", task.name)
        self.kill(reason=f"task {task.name} failed")

    def kill(self, reason: Optional[str] = None) -> None:
        """
        Stop the driver loop for good. Idempotent.

        Callbacks already running are not cancelled.
        """
        if self._state is SchedulerState.KILLED:
            return

        self._state = SchedulerState.KILLED

        if self._driver is not None and not self._driver.done():
            self._driver.cancel()
        self._driver = None

        logger.info("TaskManager killed%s", f": {reason}" if reason else "")

        if self._on_kill is not None:
            self._on_kill(reason)

    async def wait_pending(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for callbacks still in flight, without cancelling them.

        Returns:
            bool: False if some callbacks were still running at the timeout.
        """
        if not self._pending:
            return True

        logger.debug("Waiting for %s pending tasks", len(self._pending))
        _, still_pending = await asyncio.wait(set(self._pending), timeout=timeout)
        return not still_pending

    def get_stats(self) -> dict:
        return {
            "state": self._state.value,
            "pending": len(self._pending),
            "tasks": {
                task.name: {
                    "rate": task.rate,
                    "failure_policy": task.failure_policy.value,
                    "errors": task.errors,
                    "state": task.state.value,
                }
                for task in self._tasks.values()
            },
        }
