import logging
from enum import Enum
from typing import Callable, Dict, List, Protocol

from gopixel.errors import DuplicateFactoryError, FactoryNotFoundError

from .event import Event
from .payload import Payload

logger = logging.getLogger(__name__)


class EventFactory(Protocol):
    """
    Producer of tracking events (page load, device info, clicks...).
    """

    def create(self) -> Event: ...


class PayloadEventFactory:
    """
    Factory building an event of a fixed name from a payload callable.
    """

    def __init__(self, name: str, build: Callable[[], Payload]):
        self.name = name
        self.build = build

    def create(self) -> Event:
        return Event(self.name, self.build())


class DuplicatePolicy(Enum):
    """
    What to do when a factory is registered under a name already in use.
    """

    REJECT = "reject"
    REPLACE = "replace"


class EventFactoryRegistry:
    """
    Maps event names to their factories.

    Collisions are rejected unless the registry is explicitly created with
    DuplicatePolicy.REPLACE.
    """

    def __init__(self, on_duplicate: DuplicatePolicy = DuplicatePolicy.REJECT):
        self.on_duplicate = on_duplicate
        self._factories: Dict[str, EventFactory] = {}

    def register(self, name: str, factory: EventFactory) -> None:
        if name in self._factories:
            if self.on_duplicate is DuplicatePolicy.REJECT:
                raise DuplicateFactoryError(name)
            logger.warning("Replacing event factory for %s", name)

        self._factories[name] = factory
        logger.debug("Registered event factory %s", name)

    def get(self, name: str) -> EventFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise FactoryNotFoundError(name) from None

    def create(self, name: str) -> Event:
        return self.get(name).create()

    def names(self) -> List[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)
