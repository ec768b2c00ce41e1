"""
Event deletion cascade.

Deleting an event must not leave a swap request pointing at it, nor a
counterpart slot stuck in SWAP_PENDING. The work is split in two:

1. plan_event_deletion() - a pure function deciding which counterpart slots
   to revert and which swap requests to delete.
2. delete_event_with_cleanup() - loads the referencing requests, applies the
   plan and deletes the event, all in one transaction.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError
from ...models import SwapStatus
from ..events.repository import EventRepository
from .repository import SwapRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapRef:
    """The parts of a swap request the deletion plan needs"""

    id: int
    requester_slot_id: int
    responder_slot_id: int
    status: str

    @classmethod
    def from_model(cls, swap_request) -> "SwapRef":
        return cls(
            id=swap_request.id,
            requester_slot_id=swap_request.requester_slot_id,
            responder_slot_id=swap_request.responder_slot_id,
            status=swap_request.status,
        )

    def counterpart_of(self, event_id: int) -> Optional[int]:
        if self.requester_slot_id == event_id:
            return self.responder_slot_id
        if self.responder_slot_id == event_id:
            return self.requester_slot_id
        return None


@dataclass(frozen=True)
class DeletionPlan:
    event_id: int
    slots_to_revert: tuple[int, ...] = ()
    swap_requests_to_delete: tuple[int, ...] = ()

    @property
    def is_trivial(self) -> bool:
        return not self.slots_to_revert and not self.swap_requests_to_delete


def plan_event_deletion(event_id: int, swap_requests: Iterable[SwapRef]) -> DeletionPlan:
    """
    Decide what has to change before event_id can be removed.

    Every request referencing the event is deleted. Only the counterpart of a
    PENDING request is reverted: a resolved request no longer holds its slots,
    and its counterpart may since have entered an unrelated request.
    """
    slots: list[int] = []
    requests: list[int] = []
    for ref in swap_requests:
        counterpart = ref.counterpart_of(event_id)
        if counterpart is None:
            continue
        requests.append(ref.id)
        if (
            SwapStatus(ref.status) == SwapStatus.PENDING
            and counterpart != event_id
            and counterpart not in slots
        ):
            slots.append(counterpart)

    return DeletionPlan(
        event_id=event_id,
        slots_to_revert=tuple(slots),
        swap_requests_to_delete=tuple(dict.fromkeys(requests)),
    )


def apply_deletion_plan(db: Session, plan: DeletionPlan) -> None:
    """Apply a plan inside the caller's transaction (no commit)"""
    SwapRepository.revert_pending_slots(db, list(plan.slots_to_revert))
    SwapRepository.delete_swap_requests(db, list(plan.swap_requests_to_delete))
    if not EventRepository.delete_event(db, plan.event_id):
        raise NotFoundError("Event not found")


def delete_event_with_cleanup(db: Session, event_id: int) -> DeletionPlan:
    """Find referencing requests, revert counterparts, delete requests, delete the event"""
    try:
        refs = [SwapRef.from_model(sr) for sr in SwapRepository.get_requests_referencing(db, event_id)]
        plan = plan_event_deletion(event_id, refs)
        apply_deletion_plan(db, plan)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"❌ Failed to delete event {event_id}, transaction rolled back")
        raise

    db.expire_all()
    if not plan.is_trivial:
        logger.info(
            f"🧹 Event {event_id} deleted: reverted slots {list(plan.slots_to_revert)}, "
            f"removed swap requests {list(plan.swap_requests_to_delete)}"
        )
    return plan
