"""Swap repository - Database operations for swap requests and the slot-status gate"""

from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ...models import Event, EventStatus, SwapRequest, SwapStatus


class SwapRepository:
    """
    Repository for swap request database operations.

    Methods that mutate rows never commit; the service owns the transaction
    boundary so that a whole negotiation step commits or rolls back together.
    """

    @staticmethod
    def get_owned_swappable_slot(db: Session, slot_id: int, owner_id: int) -> Optional[Event]:
        """Get a slot only if it is owned by owner_id and currently SWAPPABLE"""
        return (
            db.query(Event)
            .filter(
                Event.id == slot_id,
                Event.owner_id == owner_id,
                Event.status == EventStatus.SWAPPABLE.value,
            )
            .first()
        )

    @staticmethod
    def get_swap_request(db: Session, swap_request_id: int) -> Optional[SwapRequest]:
        return db.query(SwapRequest).filter(SwapRequest.id == swap_request_id).first()

    @staticmethod
    def get_pending_for_responder(
        db: Session, swap_request_id: int, responder_id: int
    ) -> Optional[SwapRequest]:
        """Get a PENDING swap request addressed to responder_id, locking the row"""
        return (
            db.query(SwapRequest)
            .filter(
                SwapRequest.id == swap_request_id,
                SwapRequest.responder_id == responder_id,
                SwapRequest.status == SwapStatus.PENDING.value,
            )
            .with_for_update()
            .first()
        )

    @staticmethod
    def claim_slots(
        db: Session,
        requester_slot_id: int,
        requester_id: int,
        responder_slot_id: int,
        responder_id: int,
    ) -> int:
        """
        Flip both slots SWAPPABLE -> SWAP_PENDING in one conditional update.

        Returns the number of rows changed. Anything other than 2 means one of
        the slots changed owner or status since it was read.
        """
        return (
            db.query(Event)
            .filter(
                Event.status == EventStatus.SWAPPABLE.value,
                or_(
                    and_(Event.id == requester_slot_id, Event.owner_id == requester_id),
                    and_(Event.id == responder_slot_id, Event.owner_id == responder_id),
                ),
            )
            .update({Event.status: EventStatus.SWAP_PENDING.value}, synchronize_session=False)
        )

    @staticmethod
    def add_swap_request(db: Session, **swap_data) -> SwapRequest:
        """Insert a swap request and flush to obtain its id"""
        swap_request = SwapRequest(**swap_data)
        db.add(swap_request)
        db.flush()
        return swap_request

    @staticmethod
    def close_swap_request(db: Session, swap_request_id: int, status: SwapStatus) -> int:
        """Move a PENDING swap request to a terminal status. Returns rows changed."""
        return (
            db.query(SwapRequest)
            .filter(
                SwapRequest.id == swap_request_id,
                SwapRequest.status == SwapStatus.PENDING.value,
            )
            .update({SwapRequest.status: status.value}, synchronize_session=False)
        )

    @staticmethod
    def release_slot(
        db: Session,
        slot_id: int,
        status: EventStatus,
        new_owner_id: Optional[int] = None,
    ) -> int:
        """Move a SWAP_PENDING slot to status, optionally handing it to new_owner_id"""
        values = {Event.status: status.value}
        if new_owner_id is not None:
            values[Event.owner_id] = new_owner_id
        return (
            db.query(Event)
            .filter(Event.id == slot_id, Event.status == EventStatus.SWAP_PENDING.value)
            .update(values, synchronize_session=False)
        )

    @staticmethod
    def revert_pending_slots(db: Session, slot_ids: list[int]) -> int:
        """Revert any of slot_ids still SWAP_PENDING back to SWAPPABLE"""
        if not slot_ids:
            return 0
        return (
            db.query(Event)
            .filter(Event.id.in_(slot_ids), Event.status == EventStatus.SWAP_PENDING.value)
            .update({Event.status: EventStatus.SWAPPABLE.value}, synchronize_session=False)
        )

    @staticmethod
    def get_requests_referencing(db: Session, event_id: int) -> list[SwapRequest]:
        """Get every swap request, in any status, that references event_id as either slot"""
        return (
            db.query(SwapRequest)
            .filter(
                or_(
                    SwapRequest.requester_slot_id == event_id,
                    SwapRequest.responder_slot_id == event_id,
                )
            )
            .with_for_update()
            .all()
        )

    @staticmethod
    def delete_swap_requests(db: Session, swap_request_ids: list[int]) -> int:
        if not swap_request_ids:
            return 0
        return (
            db.query(SwapRequest)
            .filter(SwapRequest.id.in_(swap_request_ids))
            .delete(synchronize_session=False)
        )

    @staticmethod
    def _pending_with_parties(db: Session):
        return db.query(SwapRequest).options(
            joinedload(SwapRequest.requester),
            joinedload(SwapRequest.responder),
            joinedload(SwapRequest.requester_slot),
            joinedload(SwapRequest.responder_slot),
        ).filter(SwapRequest.status == SwapStatus.PENDING.value)

    @staticmethod
    def get_incoming(db: Session, user_id: int) -> list[SwapRequest]:
        """PENDING swap requests where user_id is the responder, newest first"""
        return (
            SwapRepository._pending_with_parties(db)
            .filter(SwapRequest.responder_id == user_id)
            .order_by(SwapRequest.created_at.desc(), SwapRequest.id.desc())
            .all()
        )

    @staticmethod
    def get_outgoing(db: Session, user_id: int) -> list[SwapRequest]:
        """PENDING swap requests where user_id is the requester, newest first"""
        return (
            SwapRepository._pending_with_parties(db)
            .filter(SwapRequest.requester_id == user_id)
            .order_by(SwapRequest.created_at.desc(), SwapRequest.id.desc())
            .all()
        )
