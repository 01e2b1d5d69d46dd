import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


Uuid = str


def new_visitor_id() -> Uuid:
    return str(uuid.uuid4())


class AlterationContext(BaseModel):
    """
    Page / variant correlation attached to every outgoing event.
    """

    model_config = ConfigDict(frozen=True)

    page: Uuid
    alter: Uuid


class TrackingContext(BaseModel):
    """
    Identity of the current visitor, supplied once when the tracker is created.

    The tracker never mutates it; a new context means a new tracker.
    """

    model_config = ConfigDict(frozen=True)

    client: str = Field(min_length=1)
    visitor: Uuid = Field(default_factory=new_visitor_id)
    alteration: Optional[AlterationContext] = None

    def alteration_dict(self) -> Optional[Dict[str, Any]]:
        if self.alteration is None:
            return None
        return self.alteration.model_dump(mode="json")
