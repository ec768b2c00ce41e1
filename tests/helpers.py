"""Shared test helpers"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from jose import jwt
from starlette.websockets import WebSocketDisconnect, WebSocketState

from slotswap.config import JWT_ALGORITHM, SECRET_KEY
from slotswap.models import Event, EventStatus, SwapRequest, SwapStatus


class FakeSocket:
    """Stand-in for a Starlette WebSocket that records what it was sent"""

    def __init__(self, state=WebSocketState.CONNECTED, fail=False):
        self.client_state = state
        self.application_state = WebSocketState.CONNECTED
        self.fail = fail
        self.sent = []

    async def send_text(self, data: str):
        if self.fail:
            raise RuntimeError("socket closed underneath us")
        self.sent.append(json.loads(data))


class StalledSocket(FakeSocket):
    """Open socket whose peer never drains, so send_text never completes"""

    async def send_text(self, data: str):
        await asyncio.Event().wait()


class ScriptedSocket(FakeSocket):
    """Server-side socket fed a fixed list of inbound frames, then disconnected"""

    def __init__(self, registry, frames, **kwargs):
        super().__init__(**kwargs)
        self.app = SimpleNamespace(state=SimpleNamespace(registry=registry))
        self.frames = list(frames)

    async def accept(self):
        pass

    async def receive_text(self) -> str:
        if not self.frames:
            raise WebSocketDisconnect(code=1000)
        return self.frames.pop(0)


def token_for(user_id, expires_in=timedelta(hours=1), **claims):
    payload = {"sub": str(user_id), "exp": datetime.now(timezone.utc) + expires_in}
    payload.update(claims)
    return jwt.encode(payload, SECRET_KEY, algorithm=JWT_ALGORITHM)


def auth_headers(user):
    return {"Authorization": f"Bearer {token_for(user.id)}"}


def refetch(db, model, pk):
    """Read a row fresh from the database"""
    db.expire_all()
    return db.get(model, pk)


def assert_pending_invariant(db):
    """status == SWAP_PENDING  <=>  exactly one PENDING swap request references the event"""
    db.expire_all()
    pending = db.query(SwapRequest).filter(SwapRequest.status == SwapStatus.PENDING.value).all()
    for event in db.query(Event).all():
        refs = [sr for sr in pending if event.id in (sr.requester_slot_id, sr.responder_slot_id)]
        if event.status == EventStatus.SWAP_PENDING.value:
            assert len(refs) == 1, f"event {event.id} is SWAP_PENDING with {len(refs)} pending requests"
        else:
            assert not refs, f"event {event.id} is {event.status} but referenced by a pending request"
