"""Event router - FastAPI endpoints for calendar slots"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import EventCreate, EventResponse, EventUpdate
from .service import EventService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/events", tags=["Events"])


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Dependency injection for EventService"""
    return EventService(db)


@router.post("/create-event", response_model=EventResponse)
async def create_event(
    data: EventCreate,
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
):
    """Create a new BUSY event for the current user"""
    return EventResponse.from_event(service.create_event(data, current_user))


@router.get("/my-events", response_model=list[EventResponse])
async def my_events(
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
):
    """All events owned by the current user"""
    return [EventResponse.from_event(e) for e in service.get_events(current_user)]


@router.put("/update-event/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    data: EventUpdate,
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
):
    return EventResponse.from_event(service.update_event(event_id, data, current_user))


@router.delete("/delete-event/{event_id}")
async def delete_event(
    event_id: int,
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
):
    """Delete an event; pending swap requests on it are cancelled"""
    return service.delete_event(event_id, current_user)
