from typing import Optional

from gopixel.constants import EXIT_CODE_FAILURE, EXIT_CODE_INVALID_CONFIG


class GoPixelError(Exception):
    """
    Generic GoPixel error.

    Args:
        message (str): The error message.
    """
    def __init__(self, message: str = "An error occurred in the GoPixel tracker."):
        self.message = message
        super().__init__(self.message)

    def get_exit_code(self) -> int:
        """
        Get the exit code associated with this error.

        Returns:
            int: The exit code.
        """
        return EXIT_CODE_FAILURE


class ConfigurationError(GoPixelError):
    """
    Error raised when the tracker configuration is missing or invalid.

    Args:
        reason (str): What is wrong with the configuration.
        message (str): The error message template.
    """
    def __init__(self, reason: str,
                 message: str = "Invalid GoPixel configuration: {reason}"):
        self.reason = reason
        super().__init__(message.format(reason=reason))

    def get_exit_code(self) -> int:
        return EXIT_CODE_INVALID_CONFIG


class TransportError(GoPixelError):
    """
    Error raised when a batch could not be delivered to the collection endpoint.

    Args:
        reason (str): Short description of the failure.
        status_code (Optional[int]): HTTP status code, when a response was received.
    """
    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.reason = reason
        self.status_code = status_code
        info = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Failed to send events{info}: {reason}")


class SchedulerError(GoPixelError):
    """
    Base error for task scheduling problems.
    """


class SchedulerKilledError(SchedulerError):
    """
    Error raised when an operation needs a scheduler that has been killed.
    """
    def __init__(self, message: str = "The task manager has been killed and cannot be reused."):
        super().__init__(message)


class DuplicateTaskError(SchedulerError):
    """
    Error raised when two tasks are registered under the same name.

    Args:
        name (str): The task name.
    """
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A task named '{name}' is already registered.")


class FactoryNotFoundError(GoPixelError, LookupError):
    """
    Error raised when an event is requested for a name without a registered factory.

    Args:
        name (str): The event name.
    """
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Factory not found for event type '{name}'.")


class DuplicateFactoryError(GoPixelError):
    """
    Error raised when a second factory is registered under an existing event name.

    Args:
        name (str): The event name.
    """
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"An event factory is already registered for '{name}'. "
            "Use DuplicatePolicy.REPLACE to overwrite it explicitly."
        )


class TrackerAlreadyInitializedError(GoPixelError):
    """
    Error raised when init() is called on a tracker more than once.
    """
    def __init__(self, message: str = "Tracker is already initialized."):
        super().__init__(message)


class TrackerKilledError(GoPixelError):
    """
    Error raised when a killed tracker is started again.
    """
    def __init__(self, message: str = "Tracker has been killed. Create a new tracker to resume tracking."):
        super().__init__(message)


class PayloadFrozenError(GoPixelError, TypeError):
    """
    Error raised when a payload attached to an event is modified.

    Args:
        key (str): The key that was being written.
    """
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Cannot set '{key}': payload is attached to an event and read-only.")
