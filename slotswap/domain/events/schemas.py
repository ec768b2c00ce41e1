"""Event domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel

from ...models import Event


class EventCreate(BaseModel):
    """
    Schema for creating a new event.

    Fields are optional here so that missing values are reported by the
    service with a single "Fields are missing" error.
    """

    title: Optional[str] = None
    startTime: Optional[Union[datetime, str]] = None
    endTime: Optional[Union[datetime, str]] = None


class EventUpdate(BaseModel):
    """Schema for a partial event update"""

    title: Optional[str] = None
    startTime: Optional[Union[datetime, str]] = None
    endTime: Optional[Union[datetime, str]] = None
    status: Optional[str] = None


class OwnerSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None


class EventResponse(BaseModel):
    """Schema for event response"""

    id: int
    title: str
    startTime: datetime
    endTime: datetime
    status: str
    ownerId: int
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        return cls(
            id=event.id,
            title=event.title,
            startTime=event.start_time,
            endTime=event.end_time,
            status=event.status,
            ownerId=event.owner_id,
            createdAt=event.created_at,
            updatedAt=event.updated_at,
        )


class SwappableEventResponse(EventResponse):
    """A SWAPPABLE event of another user, with minimal owner info"""

    owner: OwnerSummary

    @classmethod
    def from_event(cls, event: Event) -> "SwappableEventResponse":
        base = EventResponse.from_event(event)
        return cls(
            **base.model_dump(),
            owner=OwnerSummary(id=event.owner.id, name=event.owner.name, email=event.owner.email),
        )
