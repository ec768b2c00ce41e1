"""Swap domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Event, SwapRequest, User


class SwapRequestCreate(BaseModel):
    """Schema for proposing a swap; the requester is the caller"""

    responderId: Optional[int] = None
    requesterSlotId: Optional[int] = None
    responderSlotId: Optional[int] = None


class SwapResponseRequest(BaseModel):
    """Schema for answering a swap request with ACCEPT or REJECT"""

    swapRequestId: Optional[int] = None
    response: Optional[str] = None


class UserSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user: User, include_email: bool = True) -> "UserSummary":
        return cls(id=user.id, name=user.name, email=user.email if include_email else None)


class SlotSummary(BaseModel):
    id: int
    title: str
    startTime: datetime
    endTime: datetime
    status: str

    @classmethod
    def from_event(cls, event: Event) -> "SlotSummary":
        return cls(
            id=event.id,
            title=event.title,
            startTime=event.start_time,
            endTime=event.end_time,
            status=event.status,
        )


class SwapRequestResponse(BaseModel):
    """Schema for a swap request joined with both parties and both slots"""

    id: int
    requesterId: int
    responderId: int
    requesterSlotId: int
    responderSlotId: int
    status: str
    createdAt: Optional[datetime] = None
    requester: UserSummary
    responder: UserSummary
    requesterSlot: SlotSummary
    responderSlot: SlotSummary

    @classmethod
    def from_swap_request(cls, swap_request: SwapRequest) -> "SwapRequestResponse":
        return cls(
            id=swap_request.id,
            requesterId=swap_request.requester_id,
            responderId=swap_request.responder_id,
            requesterSlotId=swap_request.requester_slot_id,
            responderSlotId=swap_request.responder_slot_id,
            status=swap_request.status,
            createdAt=swap_request.created_at,
            requester=UserSummary.from_user(swap_request.requester),
            responder=UserSummary.from_user(swap_request.responder, include_email=False),
            requesterSlot=SlotSummary.from_event(swap_request.requester_slot),
            responderSlot=SlotSummary.from_event(swap_request.responder_slot),
        )


class SwapDecisionResponse(BaseModel):
    message: str
    swapRequestId: int
    status: str
