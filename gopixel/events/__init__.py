from .event import Event
from .factories import (
    DuplicatePolicy,
    EventFactory,
    EventFactoryRegistry,
    PayloadEventFactory,
)
from .payload import Payload

__all__ = [
    "Event",
    "Payload",
    "EventFactory",
    "EventFactoryRegistry",
    "PayloadEventFactory",
    "DuplicatePolicy",
]
