import pytest

from gopixel.callbacks import (
    BufferPressure,
    SummaryCallbacks,
    calculate_buffer_pressure,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "current, maximum, expected",
    [
        (0, 10, BufferPressure.LOW),
        (2, 10, BufferPressure.LOW),
        (3, 10, BufferPressure.MEDIUM),
        (7, 10, BufferPressure.HIGH),
        (9, 10, BufferPressure.CRITICAL),
        (10, 10, BufferPressure.CRITICAL),
        (5, 0, BufferPressure.LOW),
    ],
)
def test_calculate_buffer_pressure(current, maximum, expected) -> None:
    assert calculate_buffer_pressure(current, maximum) is expected


@pytest.mark.unit
def test_summary_callbacks_accumulate() -> None:
    callbacks = SummaryCallbacks()
    error = RuntimeError("boom")

    callbacks.batch_sent(3)
    callbacks.batch_sent(2)
    callbacks.batch_failed(4, error)
    callbacks.event_dropped("click", 10)

    assert callbacks.summary.batches_sent == 2
    assert callbacks.summary.events_sent == 5
    assert callbacks.summary.batches_failed == 1
    assert callbacks.summary.events_dropped == 1
    assert callbacks.last_error is error
