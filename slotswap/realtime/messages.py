"""Real-time message shapes, inbound and outbound"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

SWAP_REQUEST = "swap_request"
SWAP_ACCEPTED = "swap_accepted"
SWAP_REJECTED = "swap_rejected"
REGISTERED = "registered"


class RegisterPayload(BaseModel):
    userId: int


class RegisterMessage(BaseModel):
    """The only inbound message the server reacts to"""

    type: Literal["register"]
    payload: RegisterPayload


class NotificationSlot(BaseModel):
    id: int
    title: str
    startTime: datetime
    endTime: datetime

    @classmethod
    def from_event(cls, event) -> "NotificationSlot":
        return cls(id=event.id, title=event.title, startTime=event.start_time, endTime=event.end_time)


class SwapRequestPayload(BaseModel):
    swapRequestId: int
    requesterName: str
    requesterSlot: NotificationSlot
    responderSlot: NotificationSlot
    message: str


class SwapAcceptedPayload(BaseModel):
    swapRequestId: int
    responderName: str
    newSlot: NotificationSlot
    message: str


class SwapRejectedPayload(BaseModel):
    swapRequestId: int
    message: str


def envelope(message_type: str, payload: BaseModel) -> dict:
    return {"type": message_type, "payload": payload.model_dump(mode="json")}


def registered(user_id: int) -> dict:
    return {"type": REGISTERED, "payload": {"userId": user_id}}


def swap_request(swap_request) -> dict:
    """Sent to the responder when a swap request is created"""
    name = swap_request.requester.name
    return envelope(
        SWAP_REQUEST,
        SwapRequestPayload(
            swapRequestId=swap_request.id,
            requesterName=name,
            requesterSlot=NotificationSlot.from_event(swap_request.requester_slot),
            responderSlot=NotificationSlot.from_event(swap_request.responder_slot),
            message=f"{name} wants to swap slots with you!",
        ),
    )


def swap_accepted(swap_request) -> dict:
    """Sent to the requester; newSlot is the slot they now own"""
    name = swap_request.responder.name
    return envelope(
        SWAP_ACCEPTED,
        SwapAcceptedPayload(
            swapRequestId=swap_request.id,
            responderName=name,
            newSlot=NotificationSlot.from_event(swap_request.responder_slot),
            message=f"{name} accepted your swap request!",
        ),
    )


def swap_rejected(swap_request) -> dict:
    return envelope(
        SWAP_REJECTED,
        SwapRejectedPayload(swapRequestId=swap_request.id, message="Your swap request was declined."),
    )


RESOLUTION_MESSAGES = {
    SWAP_ACCEPTED: swap_accepted,
    SWAP_REJECTED: swap_rejected,
}
