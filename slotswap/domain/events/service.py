"""Event service - Business logic for calendar slots"""

import logging

from sqlalchemy.orm import Session

from ...errors import AuthorizationError, NotFoundError, ValidationError
from ...models import Event, EventStatus, User
from ...shared.validators import (
    parse_instant,
    normalize_title,
    validate_positive_id,
    validate_time_range,
)
from ..swaps.cleanup import delete_event_with_cleanup
from ..swaps.state import ensure_owner_status_change, parse_event_status
from .repository import EventRepository
from .schemas import EventCreate, EventUpdate

logger = logging.getLogger(__name__)


class EventService:
    """Service layer for event business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EventRepository()

    def get_events(self, user: User) -> list[Event]:
        """Get all events owned by the user, any status"""
        return self.repo.get_events_for_owner(self.db, user.id)

    def get_owned_event(self, event_id, user: User, action: str = "access") -> Event:
        """Get an event, checking it exists and belongs to the user"""
        event_id = validate_positive_id(event_id, "event id")
        event = self.repo.get_event(self.db, event_id)
        if not event:
            raise NotFoundError("Event not found")
        if event.owner_id != user.id:
            logger.warning(f"🚫 User {user.id} tried to {action} event {event_id} owned by {event.owner_id}")
            raise AuthorizationError(f"Not authorized to {action} this event")
        return event

    def create_event(self, data: EventCreate, user: User) -> Event:
        """Create a new BUSY event"""
        title = normalize_title(data.title)
        if not title or not data.startTime or not data.endTime:
            raise ValidationError("Fields are missing")

        start = parse_instant(data.startTime, "date and time")
        end = parse_instant(data.endTime, "date and time")
        validate_time_range(start, end)

        event = self.repo.create_event(
            self.db,
            user.id,
            title=title,
            start_time=start,
            end_time=end,
            status=EventStatus.BUSY.value,
        )
        logger.info(f"📅 User {user.id} created event {event.id}")
        return event

    def update_event(self, event_id, data: EventUpdate, user: User) -> Event:
        """
        Apply a partial update.

        Unspecified fields keep their stored value before the start/end
        comparison, and nothing is written when validation fails.
        """
        event = self.get_owned_event(event_id, user, "update")

        updates = {}
        if data.title is not None:
            title = normalize_title(data.title)
            if not title:
                raise ValidationError("Title cannot be empty")
            updates["title"] = title
        if data.startTime is not None:
            updates["start_time"] = parse_instant(data.startTime, "startTime")
        if data.endTime is not None:
            updates["end_time"] = parse_instant(data.endTime, "endTime")
        if data.status is not None:
            status = parse_event_status(data.status)
            ensure_owner_status_change(EventStatus(event.status), status)
            updates["status"] = status.value

        validate_time_range(
            updates.get("start_time", event.start_time),
            updates.get("end_time", event.end_time),
        )

        updated = self.repo.update_event(self.db, event, **updates)
        logger.info(f"✏️ User {user.id} updated event {updated.id}: {sorted(updates)}")
        return updated

    def delete_event(self, event_id, user: User) -> dict:
        """Delete an event, cleaning up any swap requests that reference it"""
        event = self.get_owned_event(event_id, user, "delete")
        plan = delete_event_with_cleanup(self.db, event.id)
        return {
            "message": "Event deleted successfully",
            "revertedSlotIds": list(plan.slots_to_revert),
            "removedSwapRequestIds": list(plan.swap_requests_to_delete),
        }

    def get_swappable_events(self, user: User) -> list[Event]:
        """SWAPPABLE events of every other user"""
        return self.repo.get_swappable_events(self.db, user.id)
