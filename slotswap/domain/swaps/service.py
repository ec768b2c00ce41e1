"""Swap service - Negotiation of one-for-one slot swaps"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidSlotError, SlotSwapError, ValidationError
from ...models import SwapRequest, SwapStatus, User
from ...realtime import messages
from ...realtime.registry import ConnectionRegistry
from ...shared.validators import validate_positive_id
from .repository import SwapRepository
from .schemas import SwapDecisionResponse, SwapRequestCreate, SwapResponseRequest
from .state import can_transition_swap, parse_decision, resolution_for

logger = logging.getLogger(__name__)


class SwapService:
    """
    Service layer for swap negotiation.

    Each state change (create, accept, reject) is one database transaction.
    The slot status is the only admission control: a slot leaves SWAPPABLE
    through a conditional update, so of two concurrent requests for the same
    slot exactly one can claim it. Notifications go out only after commit and
    their delivery never affects the result.
    """

    def __init__(self, db: Session, registry: Optional[ConnectionRegistry] = None):
        self.db = db
        self.repo = SwapRepository()
        self.registry = registry

    async def _notify(self, user_id: int, message: dict) -> bool:
        if self.registry is None:
            logger.debug(f"No connection registry, {message['type']} for user {user_id} dropped")
            return False
        return await self.registry.send(user_id, message)

    async def create_swap_request(self, data: SwapRequestCreate, user: User) -> SwapRequest:
        """Propose swapping one of the caller's SWAPPABLE slots for another user's"""
        if not data.responderId or not data.requesterSlotId or not data.responderSlotId:
            raise ValidationError("Fields are missing")

        responder_id = validate_positive_id(data.responderId, "responder id")
        requester_slot_id = validate_positive_id(data.requesterSlotId, "requester slot id")
        responder_slot_id = validate_positive_id(data.responderSlotId, "responder slot id")
        if responder_id == user.id:
            raise ValidationError("Cannot swap slots with yourself")

        if not self.repo.get_owned_swappable_slot(self.db, requester_slot_id, user.id):
            raise InvalidSlotError("Invalid requester slot")
        if not self.repo.get_owned_swappable_slot(self.db, responder_slot_id, responder_id):
            raise InvalidSlotError("Invalid responder slot")

        try:
            claimed = self.repo.claim_slots(
                self.db, requester_slot_id, user.id, responder_slot_id, responder_id
            )
            if claimed != 2:
                raise InvalidSlotError("Slot is no longer available for swapping")

            swap_request = self.repo.add_swap_request(
                self.db,
                requester_id=user.id,
                responder_id=responder_id,
                requester_slot_id=requester_slot_id,
                responder_slot_id=responder_slot_id,
                status=SwapStatus.PENDING.value,
            )
            self.db.commit()
        except SlotSwapError:
            self.db.rollback()
            logger.warning(
                f"⚠️ Swap request {requester_slot_id}<->{responder_slot_id} lost the slot gate"
            )
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create swap request for user {user.id}: {e}")
            raise

        self.db.refresh(swap_request)
        logger.info(
            f"🔄 Swap request {swap_request.id} created: user {user.id} slot {requester_slot_id} "
            f"<-> user {responder_id} slot {responder_slot_id}"
        )

        await self._notify(responder_id, messages.swap_request(swap_request))
        return swap_request

    async def respond_to_swap_request(
        self, data: SwapResponseRequest, user: User
    ) -> SwapDecisionResponse:
        """Accept or reject a PENDING swap request addressed to the caller"""
        if not data.swapRequestId or not data.response:
            raise ValidationError("Fields are missing")

        swap_request_id = validate_positive_id(data.swapRequestId, "swap request id")
        resolution = resolution_for(parse_decision(data.response))

        swap_request = self.repo.get_pending_for_responder(self.db, swap_request_id, user.id)
        if not swap_request:
            raise InvalidSlotError("Invalid swap request")

        if not can_transition_swap(swap_request.status, resolution.swap_status):
            raise InvalidSlotError("Swap request has already been resolved")

        requester_id = swap_request.requester_id
        responder_id = swap_request.responder_id
        try:
            if not self.repo.close_swap_request(self.db, swap_request.id, resolution.swap_status):
                raise InvalidSlotError("Swap request has already been resolved")

            released = self.repo.release_slot(
                self.db,
                swap_request.requester_slot_id,
                resolution.slot_status,
                new_owner_id=responder_id if resolution.exchange_owners else None,
            ) + self.repo.release_slot(
                self.db,
                swap_request.responder_slot_id,
                resolution.slot_status,
                new_owner_id=requester_id if resolution.exchange_owners else None,
            )
            if released != 2:
                raise InvalidSlotError("Invalid slots for swapping")

            self.db.commit()
        except SlotSwapError:
            self.db.rollback()
            logger.warning(f"⚠️ Swap request {swap_request_id} could not be resolved")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to resolve swap request {swap_request_id}: {e}")
            raise

        self.db.expire_all()
        swap_request = self.repo.get_swap_request(self.db, swap_request_id)
        logger.info(
            f"✅ Swap request {swap_request_id} {resolution.swap_status.value} by user {user.id}"
        )

        build = messages.RESOLUTION_MESSAGES[resolution.notification_type]
        await self._notify(requester_id, build(swap_request))

        return SwapDecisionResponse(
            message=resolution.result_message,
            swapRequestId=swap_request_id,
            status=resolution.swap_status.value,
        )

    def get_incoming_requests(self, user: User) -> list[SwapRequest]:
        return self.repo.get_incoming(self.db, user.id)

    def get_outgoing_requests(self, user: User) -> list[SwapRequest]:
        return self.repo.get_outgoing(self.db, user.id)
