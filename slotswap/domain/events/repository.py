"""Event repository - Database operations for calendar slots"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Event, EventStatus


class EventRepository:
    """Repository for event database operations"""

    @staticmethod
    def get_event(db: Session, event_id: int) -> Optional[Event]:
        """Get an event by ID regardless of owner"""
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def get_events_for_owner(db: Session, owner_id: int) -> list[Event]:
        """Get all events owned by a user, any status"""
        return (
            db.query(Event)
            .filter(Event.owner_id == owner_id)
            .order_by(Event.start_time.asc(), Event.id.asc())
            .all()
        )

    @staticmethod
    def get_swappable_events(db: Session, excluding_owner_id: int) -> list[Event]:
        """Get SWAPPABLE events of every other user, with their owner loaded"""
        return (
            db.query(Event)
            .options(joinedload(Event.owner))
            .filter(
                Event.status == EventStatus.SWAPPABLE.value,
                Event.owner_id != excluding_owner_id,
            )
            .order_by(Event.start_time.asc(), Event.id.asc())
            .all()
        )

    @staticmethod
    def create_event(db: Session, owner_id: int, **event_data) -> Event:
        """Create a new event"""
        event = Event(owner_id=owner_id, **event_data)
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def update_event(db: Session, event: Event, **updates) -> Event:
        """Update an event with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(event, key):
                setattr(event, key, value)

        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def delete_event(db: Session, event_id: int) -> int:
        """Delete an event row without committing. Returns the number of rows removed."""
        return db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)
