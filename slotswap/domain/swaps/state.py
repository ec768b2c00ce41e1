"""
Swap negotiation state machines.

Swap request:  PENDING -> ACCEPTED | REJECTED   (both terminal)
Event:         BUSY <-> SWAPPABLE               (owner toggle)
               SWAPPABLE -> SWAP_PENDING        (request created)
               SWAP_PENDING -> SWAPPABLE        (request rejected / counterpart deleted)
               SWAP_PENDING -> BUSY             (request accepted, owner exchanged)
"""

import enum
from dataclasses import dataclass

from ...errors import InvalidSlotError, ValidationError
from ...models import EventStatus, SwapStatus

EVENT_TRANSITIONS: dict[EventStatus, frozenset] = {
    EventStatus.BUSY: frozenset({EventStatus.BUSY, EventStatus.SWAPPABLE}),
    EventStatus.SWAPPABLE: frozenset(
        {EventStatus.BUSY, EventStatus.SWAPPABLE, EventStatus.SWAP_PENDING}
    ),
    EventStatus.SWAP_PENDING: frozenset({EventStatus.SWAPPABLE, EventStatus.BUSY}),
}

SWAP_TRANSITIONS: dict[SwapStatus, frozenset] = {
    SwapStatus.PENDING: frozenset({SwapStatus.ACCEPTED, SwapStatus.REJECTED}),
    SwapStatus.ACCEPTED: frozenset(),
    SwapStatus.REJECTED: frozenset(),
}

# Statuses an owner may set directly on their own event
OWNER_SETTABLE_STATUSES = frozenset({EventStatus.BUSY, EventStatus.SWAPPABLE})


class SwapDecision(str, enum.Enum):
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


@dataclass(frozen=True)
class Resolution:
    """What a decision does to the request and its two slots"""

    swap_status: SwapStatus
    slot_status: EventStatus
    exchange_owners: bool
    notification_type: str
    result_message: str


RESOLUTIONS: dict[SwapDecision, Resolution] = {
    SwapDecision.ACCEPT: Resolution(
        swap_status=SwapStatus.ACCEPTED,
        slot_status=EventStatus.BUSY,
        exchange_owners=True,
        notification_type="swap_accepted",
        result_message="Swap request accepted and slots swapped successfully",
    ),
    SwapDecision.REJECT: Resolution(
        swap_status=SwapStatus.REJECTED,
        slot_status=EventStatus.SWAPPABLE,
        exchange_owners=False,
        notification_type="swap_rejected",
        result_message="Swap request rejected successfully",
    ),
}


def parse_decision(value) -> SwapDecision:
    if isinstance(value, SwapDecision):
        return value
    try:
        return SwapDecision(str(value).strip().upper())
    except ValueError as e:
        raise ValidationError("Invalid response") from e


def resolution_for(decision: SwapDecision) -> Resolution:
    return RESOLUTIONS[decision]


def parse_event_status(value) -> EventStatus:
    try:
        return EventStatus(value)
    except ValueError as e:
        raise ValidationError(f"Invalid status: {value}") from e


def can_transition_event(current: EventStatus, target: EventStatus) -> bool:
    return target in EVENT_TRANSITIONS[EventStatus(current)]


def can_transition_swap(current: SwapStatus, target: SwapStatus) -> bool:
    return target in SWAP_TRANSITIONS[SwapStatus(current)]


def ensure_owner_status_change(current: EventStatus, target: EventStatus) -> None:
    """
    Validate a status change requested by the event owner.

    Owners only toggle between BUSY and SWAPPABLE; SWAP_PENDING is entered
    and left exclusively through swap requests.
    """
    if target not in OWNER_SETTABLE_STATUSES:
        raise ValidationError(f"Status {target.value} cannot be set directly")
    current = EventStatus(current)
    if current == EventStatus.SWAP_PENDING and target != current:
        raise InvalidSlotError("Event is locked by a pending swap request")
    if not can_transition_event(current, target):
        raise InvalidSlotError(f"Cannot change status from {current.value} to {target.value}")
