"""Work items passed from the scheduler to the worker."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

SLOT_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M"


class Slot(BaseModel):
    """One available appointment, as returned by the slots API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    location_id: int = Field(alias="locationId")
    start_timestamp: str = Field(alias="startTimestamp")

    def starts_at(self) -> datetime:
        """Raises ValueError if the timestamp is not YYYY-MM-DDTHH:MM."""
        return datetime.strptime(self.start_timestamp, SLOT_TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class PollCenter:
    center_id: int


@dataclass(frozen=True)
class NotifyCenter:
    center_id: int
    slots: tuple[Slot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Shutdown:
    pass


WorkItem = Union[PollCenter, NotifyCenter, Shutdown]
