from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import httpx

from gopixel.config import TrackingContext
from gopixel.events import Event

ENDPOINT = "https://collector.test/events"


class FakeClock:
    """
    Manually advanced monotonic clock, in seconds.
    """

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeEventClient:
    """
    Stand-in for EventClient recording every batch it is given.

    `outcomes` is consumed one entry per send: True/False is returned,
    an exception instance is raised.
    """

    def __init__(self, outcomes: Optional[list] = None, busy: bool = False):
        self.outcomes = list(outcomes or [])
        self.busy = busy
        self.batches: List[List[Event]] = []
        self.on_send: Optional[Callable[[], None]] = None

    def is_free(self) -> bool:
        return not self.busy

    async def send_events(self, events: Sequence[Event], context: TrackingContext) -> bool:
        self.batches.append(list(events))
        if self.on_send is not None:
            self.on_send()

        outcome = self.outcomes.pop(0) if self.outcomes else True
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def mock_http_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
