"""Callback interface for tracker lifecycle notifications."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class BufferPressure(Enum):
    """Buffer fill levels."""

    LOW = "low"  # 0-30% full
    MEDIUM = "medium"  # 30-70% full
    HIGH = "high"  # 70-90% full
    CRITICAL = "critical"  # 90%+ full


@dataclass
class DeliverySummary:
    batches_sent: int = 0
    events_sent: int = 0
    batches_failed: int = 0
    events_dropped: int = 0


class TrackerCallbacks(Protocol):
    def batch_sent(self, count: int) -> None: ...
    def batch_failed(self, count: int, exc: Exception) -> None: ...
    def event_dropped(self, event_name: str, buffer_size: int) -> None: ...
    def buffer_pressure(
        self, pressure: BufferPressure, current_size: int, max_size: int
    ) -> None: ...
    def scheduler_killed(self, reason: Optional[str]) -> None: ...


class NullTrackerCallbacks:
    def batch_sent(self, count: int) -> None:
        pass

    def batch_failed(self, count: int, exc: Exception) -> None:
        pass

    def event_dropped(self, event_name: str, buffer_size: int) -> None:
        pass

    def buffer_pressure(
        self, pressure: BufferPressure, current_size: int, max_size: int
    ) -> None:
        pass

    def scheduler_killed(self, reason: Optional[str]) -> None:
        pass


class SummaryCallbacks(NullTrackerCallbacks):
    """
    Accumulates delivery counters, used by the CLI to report the outcome.
    """

    def __init__(self) -> None:
        self.summary = DeliverySummary()
        self.last_error: Optional[Exception] = None

    def batch_sent(self, count: int) -> None:
        self.summary.batches_sent += 1
        self.summary.events_sent += count

    def batch_failed(self, count: int, exc: Exception) -> None:
        self.summary.batches_failed += 1
        self.last_error = exc

    def event_dropped(self, event_name: str, buffer_size: int) -> None:
        self.summary.events_dropped += 1


def calculate_buffer_pressure(current_size: int, max_size: int) -> BufferPressure:
    """Calculate buffer pressure level based on fill percentage."""
    if max_size == 0:
        return BufferPressure.LOW

    fill_percentage = (current_size / max_size) * 100

    if fill_percentage >= 90:
        return BufferPressure.CRITICAL
    elif fill_percentage >= 70:
        return BufferPressure.HIGH
    elif fill_percentage >= 30:
        return BufferPressure.MEDIUM
    else:
        return BufferPressure.LOW
