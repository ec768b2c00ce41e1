"""Swap router - FastAPI endpoints for swap negotiation"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...realtime.registry import ConnectionRegistry, get_registry
from ..events.router import get_event_service
from ..events.schemas import SwappableEventResponse
from ..events.service import EventService
from .schemas import (
    SwapDecisionResponse,
    SwapRequestCreate,
    SwapRequestResponse,
    SwapResponseRequest,
)
from .service import SwapService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/swap", tags=["Swaps"])


def get_swap_service(
    db: Session = Depends(get_db),
    registry: Optional[ConnectionRegistry] = Depends(get_registry),
) -> SwapService:
    """Dependency injection for SwapService"""
    return SwapService(db, registry)


@router.get("/swappable-slots", response_model=list[SwappableEventResponse])
async def swappable_slots(
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
):
    """SWAPPABLE slots of every other user"""
    return [SwappableEventResponse.from_event(e) for e in service.get_swappable_events(current_user)]


@router.post("/swap-request", response_model=SwapRequestResponse)
async def swap_request(
    data: SwapRequestCreate,
    current_user: User = Depends(get_current_user),
    service: SwapService = Depends(get_swap_service),
):
    created = await service.create_swap_request(data, current_user)
    return SwapRequestResponse.from_swap_request(created)


@router.post("/swap-response", response_model=SwapDecisionResponse)
async def swap_response(
    data: SwapResponseRequest,
    current_user: User = Depends(get_current_user),
    service: SwapService = Depends(get_swap_service),
):
    """Accept or reject a swap request addressed to the current user"""
    return await service.respond_to_swap_request(data, current_user)


@router.get("/swap-incoming-requests", response_model=list[SwapRequestResponse])
async def swap_incoming_requests(
    current_user: User = Depends(get_current_user),
    service: SwapService = Depends(get_swap_service),
):
    return [SwapRequestResponse.from_swap_request(sr) for sr in service.get_incoming_requests(current_user)]


@router.get("/swap-outgoing-requests", response_model=list[SwapRequestResponse])
async def swap_outgoing_requests(
    current_user: User = Depends(get_current_user),
    service: SwapService = Depends(get_swap_service),
):
    return [SwapRequestResponse.from_swap_request(sr) for sr in service.get_outgoing_requests(current_user)]
