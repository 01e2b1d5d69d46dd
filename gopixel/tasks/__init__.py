from .manager import (
    RegisteredTask,
    SchedulerState,
    Task,
    TaskFailurePolicy,
    TaskManager,
    TaskReturnCode,
    TaskState,
)
from .send_events import SendEventsTask

__all__ = [
    "RegisteredTask",
    "SchedulerState",
    "Task",
    "TaskFailurePolicy",
    "TaskManager",
    "TaskReturnCode",
    "TaskState",
    "SendEventsTask",
]
