from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from .payload import Payload


def _now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    """
    ISO-8601 in UTC with millisecond precision and a Z suffix.
    """
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass(frozen=True, eq=False)
class Event:
    """
    A named, timestamped record of something that happened in the host.

    The payload is cleaned and frozen on construction. created_at is
    captured once and never recomputed, retries included.
    """

    name: str
    payload: Optional[Union[Payload, Mapping[str, Any]]] = None
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Event name must not be empty")

        payload = self.payload
        if payload is None:
            payload = Payload()
        elif not isinstance(payload, Payload):
            payload = Payload.from_mapping(payload)

        object.__setattr__(self, "payload", payload.clean().freeze())

    def to_transport(self) -> Dict[str, Any]:
        return {
            "type": self.name,
            "payload": self.payload,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return f"Event(name={self.name!r}, created_at={isoformat(self.created_at)})"
