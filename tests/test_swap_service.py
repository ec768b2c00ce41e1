import asyncio

import pytest

from slotswap.domain.events.schemas import EventCreate, EventUpdate
from slotswap.domain.events.service import EventService
from slotswap.domain.swaps.schemas import SwapRequestCreate, SwapResponseRequest
from slotswap.domain.swaps.service import SwapService
from slotswap.errors import InvalidSlotError, ValidationError
from slotswap.models import Event, EventStatus, SwapRequest, SwapStatus
from slotswap.realtime.registry import ConnectionRegistry

from .helpers import FakeSocket, StalledSocket, assert_pending_invariant, refetch


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def service(db, registry):
    return SwapService(db, registry)


@pytest.fixture
def slots(alice, bob, make_event):
    """E1 owned by Alice and E2 owned by Bob, both SWAPPABLE"""
    return make_event(alice, title="Alice slot"), make_event(bob, title="Bob slot")


def propose(service, requester, responder, requester_slot, responder_slot):
    return service.create_swap_request(
        SwapRequestCreate(
            responderId=responder.id,
            requesterSlotId=requester_slot.id,
            responderSlotId=responder_slot.id,
        ),
        requester,
    )


def respond(service, responder, swap_request_id, decision):
    return service.respond_to_swap_request(
        SwapResponseRequest(swapRequestId=swap_request_id, response=decision), responder
    )


class TestPropose:
    @pytest.mark.asyncio
    async def test_locks_both_slots(self, db, service, alice, bob, slots):
        e1, e2 = slots
        swap_request = await propose(service, alice, bob, e1, e2)

        assert swap_request.status == SwapStatus.PENDING.value
        assert swap_request.requester_id == alice.id
        assert swap_request.responder_id == bob.id
        assert refetch(db, Event, e1.id).status == EventStatus.SWAP_PENDING.value
        assert refetch(db, Event, e2.id).status == EventStatus.SWAP_PENDING.value
        assert db.query(SwapRequest).count() == 1
        assert_pending_invariant(db)

    @pytest.mark.asyncio
    async def test_notifies_responder(self, service, registry, alice, bob, slots):
        e1, e2 = slots
        bob_socket, alice_socket = FakeSocket(), FakeSocket()
        registry.register(bob.id, bob_socket)
        registry.register(alice.id, alice_socket)

        swap_request = await propose(service, alice, bob, e1, e2)

        assert alice_socket.sent == []
        [message] = bob_socket.sent
        assert message["type"] == "swap_request"
        payload = message["payload"]
        assert payload["swapRequestId"] == swap_request.id
        assert payload["requesterName"] == "Alice"
        assert payload["requesterSlot"]["id"] == e1.id
        assert payload["responderSlot"]["id"] == e2.id
        assert payload["message"] == "Alice wants to swap slots with you!"

    @pytest.mark.asyncio
    async def test_offline_responder_does_not_fail_proposal(self, db, service, alice, bob, slots):
        e1, e2 = slots
        swap_request = await propose(service, alice, bob, e1, e2)
        assert refetch(db, SwapRequest, swap_request.id).status == SwapStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_broken_socket_does_not_fail_proposal(self, db, service, registry, alice, bob, slots):
        e1, e2 = slots
        registry.register(bob.id, FakeSocket(fail=True))
        swap_request = await propose(service, alice, bob, e1, e2)
        assert refetch(db, SwapRequest, swap_request.id) is not None

    @pytest.mark.asyncio
    async def test_stalled_socket_does_not_block_proposal(self, db, alice, bob, slots):
        e1, e2 = slots
        registry = ConnectionRegistry(send_timeout=0.05)
        registry.register(bob.id, StalledSocket())
        service = SwapService(db, registry)

        swap_request = await asyncio.wait_for(propose(service, alice, bob, e1, e2), timeout=2)

        assert refetch(db, SwapRequest, swap_request.id).status == SwapStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_pending_slot_cannot_be_proposed_again(self, db, service, alice, bob, carol, slots, make_event):
        e1, e2 = slots
        e3 = make_event(carol)
        await propose(service, alice, bob, e1, e2)

        # Carol targets Bob's slot, which is already locked
        with pytest.raises(InvalidSlotError):
            await propose(service, carol, bob, e3, e2)
        # Bob cannot offer the locked slot either
        with pytest.raises(InvalidSlotError):
            await propose(service, bob, carol, e2, e3)

        assert refetch(db, Event, e3.id).status == EventStatus.SWAPPABLE.value
        assert db.query(SwapRequest).count() == 1
        assert_pending_invariant(db)

    @pytest.mark.asyncio
    async def test_busy_slot_rejected(self, service, alice, bob, make_event):
        e1 = make_event(alice, status=EventStatus.BUSY)
        e2 = make_event(bob)
        with pytest.raises(InvalidSlotError, match="Invalid requester slot"):
            await propose(service, alice, bob, e1, e2)

    @pytest.mark.asyncio
    async def test_wrong_owner_rejected(self, service, alice, bob, carol, make_event):
        e1 = make_event(alice)
        carols = make_event(carol)
        with pytest.raises(InvalidSlotError, match="Invalid responder slot"):
            await propose(service, alice, bob, e1, carols)
        with pytest.raises(InvalidSlotError, match="Invalid requester slot"):
            await propose(service, alice, carol, carols, e1)

    @pytest.mark.asyncio
    async def test_missing_fields(self, service, alice):
        with pytest.raises(ValidationError, match="Fields are missing"):
            await service.create_swap_request(SwapRequestCreate(responderId=2), alice)

    @pytest.mark.asyncio
    async def test_self_swap(self, service, alice, make_event):
        a1, a2 = make_event(alice), make_event(alice)
        with pytest.raises(ValidationError):
            await propose(service, alice, alice, a1, a2)

    @pytest.mark.asyncio
    async def test_lost_gate_rolls_back(self, db, service, alice, bob, slots, monkeypatch):
        """If a slot is claimed between the read and the update, nothing is written"""
        e1, e2 = slots
        monkeypatch.setattr(service.repo, "claim_slots", lambda *args: 1)

        with pytest.raises(InvalidSlotError):
            await propose(service, alice, bob, e1, e2)

        assert db.query(SwapRequest).count() == 0
        assert refetch(db, Event, e1.id).status == EventStatus.SWAPPABLE.value


class TestRespond:
    @pytest.mark.asyncio
    async def test_accept_exchanges_owners(self, db, service, registry, alice, bob, slots):
        e1, e2 = slots
        alice_socket = FakeSocket()
        registry.register(alice.id, alice_socket)
        swap_request = await propose(service, alice, bob, e1, e2)

        result = await respond(service, bob, swap_request.id, "ACCEPT")

        assert result.status == SwapStatus.ACCEPTED.value
        stored_e1, stored_e2 = refetch(db, Event, e1.id), refetch(db, Event, e2.id)
        assert stored_e1.owner_id == bob.id
        assert stored_e2.owner_id == alice.id
        assert stored_e1.status == stored_e2.status == EventStatus.BUSY.value
        assert refetch(db, SwapRequest, swap_request.id).status == SwapStatus.ACCEPTED.value
        assert_pending_invariant(db)

        [message] = alice_socket.sent
        assert message["type"] == "swap_accepted"
        assert message["payload"]["newSlot"]["id"] == e2.id
        assert message["payload"]["newSlot"]["title"] == "Bob slot"
        assert message["payload"]["responderName"] == "Bob"
        assert message["payload"]["message"] == "Bob accepted your swap request!"

    @pytest.mark.asyncio
    async def test_stalled_socket_does_not_block_response(self, db, alice, bob, slots):
        e1, e2 = slots
        registry = ConnectionRegistry(send_timeout=0.05)
        registry.register(alice.id, StalledSocket())
        service = SwapService(db, registry)
        swap_request = await propose(service, alice, bob, e1, e2)

        result = await asyncio.wait_for(respond(service, bob, swap_request.id, "ACCEPT"), timeout=2)

        assert result.status == SwapStatus.ACCEPTED.value
        assert refetch(db, Event, e1.id).owner_id == bob.id

    @pytest.mark.asyncio
    async def test_reject_releases_slots(self, db, service, registry, alice, bob, slots):
        e1, e2 = slots
        alice_socket = FakeSocket()
        registry.register(alice.id, alice_socket)
        swap_request = await propose(service, alice, bob, e1, e2)

        result = await respond(service, bob, swap_request.id, "REJECT")

        assert result.message == "Swap request rejected successfully"
        stored_e1, stored_e2 = refetch(db, Event, e1.id), refetch(db, Event, e2.id)
        assert (stored_e1.owner_id, stored_e2.owner_id) == (alice.id, bob.id)
        assert stored_e1.status == stored_e2.status == EventStatus.SWAPPABLE.value
        assert refetch(db, SwapRequest, swap_request.id).status == SwapStatus.REJECTED.value
        assert alice_socket.sent == [
            {
                "type": "swap_rejected",
                "payload": {"swapRequestId": swap_request.id, "message": "Your swap request was declined."},
            }
        ]
        assert_pending_invariant(db)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("first,second", [("ACCEPT", "REJECT"), ("REJECT", "ACCEPT"), ("ACCEPT", "ACCEPT")])
    async def test_terminal_states_cannot_be_answered_twice(self, db, service, alice, bob, slots, first, second):
        e1, e2 = slots
        swap_request = await propose(service, alice, bob, e1, e2)
        await respond(service, bob, swap_request.id, first)

        with pytest.raises(InvalidSlotError):
            await respond(service, bob, swap_request.id, second)

        expected = SwapStatus.ACCEPTED if first == "ACCEPT" else SwapStatus.REJECTED
        assert refetch(db, SwapRequest, swap_request.id).status == expected.value

    @pytest.mark.asyncio
    async def test_stale_terminal_request_is_refused_before_writing(
        self, db, service, alice, bob, slots, monkeypatch
    ):
        e1, e2 = slots
        swap_request = await propose(service, alice, bob, e1, e2)
        stale = refetch(db, SwapRequest, swap_request.id)
        stale.status = SwapStatus.REJECTED.value
        monkeypatch.setattr(service.repo, "get_pending_for_responder", lambda *args: stale)
        closed = []
        monkeypatch.setattr(service.repo, "close_swap_request", lambda *args: closed.append(args))

        with pytest.raises(InvalidSlotError, match="already been resolved"):
            await respond(service, bob, swap_request.id, "ACCEPT")

        assert closed == []
        db.rollback()
        assert refetch(db, SwapRequest, swap_request.id).status == SwapStatus.PENDING.value
        assert refetch(db, Event, e1.id).owner_id == alice.id
        assert_pending_invariant(db)

    @pytest.mark.asyncio
    async def test_only_responder_may_answer(self, db, service, alice, bob, slots):
        e1, e2 = slots
        swap_request = await propose(service, alice, bob, e1, e2)
        with pytest.raises(InvalidSlotError, match="Invalid swap request"):
            await respond(service, alice, swap_request.id, "ACCEPT")
        assert refetch(db, SwapRequest, swap_request.id).status == SwapStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_invalid_decision(self, service, alice, bob, slots):
        e1, e2 = slots
        swap_request = await propose(service, alice, bob, e1, e2)
        with pytest.raises(ValidationError, match="Invalid response"):
            await respond(service, bob, swap_request.id, "MAYBE")

    @pytest.mark.asyncio
    async def test_missing_fields(self, service, bob):
        with pytest.raises(ValidationError):
            await service.respond_to_swap_request(SwapResponseRequest(response="ACCEPT"), bob)

    @pytest.mark.asyncio
    async def test_failed_slot_release_rolls_back(self, db, service, alice, bob, slots, monkeypatch):
        e1, e2 = slots
        swap_request = await propose(service, alice, bob, e1, e2)
        monkeypatch.setattr(service.repo, "release_slot", lambda *args, **kwargs: 0)

        with pytest.raises(InvalidSlotError):
            await respond(service, bob, swap_request.id, "ACCEPT")

        assert refetch(db, SwapRequest, swap_request.id).status == SwapStatus.PENDING.value
        assert refetch(db, Event, e1.id).owner_id == alice.id
        assert_pending_invariant(db)


class TestListings:
    @pytest.mark.asyncio
    async def test_incoming_and_outgoing_are_pending_only_newest_first(
        self, db, service, alice, bob, carol, make_event
    ):
        a1, a2 = make_event(alice), make_event(alice)
        b1, c1 = make_event(bob), make_event(carol)
        first = await propose(service, bob, alice, b1, a1)
        second = await propose(service, carol, alice, c1, a2)

        incoming = service.get_incoming_requests(alice)
        assert [sr.id for sr in incoming] == [second.id, first.id]
        assert incoming[0].requester.name == "Carol"
        assert service.get_outgoing_requests(bob)[0].id == first.id
        assert service.get_outgoing_requests(alice) == []

        await respond(service, alice, first.id, "REJECT")
        assert [sr.id for sr in service.get_incoming_requests(alice)] == [second.id]
        assert service.get_outgoing_requests(bob) == []


class TestScenario:
    @pytest.mark.asyncio
    async def test_delete_during_pending_swap(self, db, service, alice, bob):
        """Alice and Bob open slots, Alice proposes, then deletes her slot"""
        events = EventService(db)

        e1 = events.create_event(
            EventCreate(title="E1", startTime="2026-11-03T09:00:00", endTime="2026-11-03T10:00:00"), alice
        )
        events.update_event(e1.id, EventUpdate(status="SWAPPABLE"), alice)
        e2 = events.create_event(
            EventCreate(title="E2", startTime="2026-11-04T09:00:00", endTime="2026-11-04T10:00:00"), bob
        )
        events.update_event(e2.id, EventUpdate(status="SWAPPABLE"), bob)
        e1_id, e2_id = e1.id, e2.id

        swap_request = await propose(service, alice, bob, e1, e2)
        swap_id = swap_request.id
        assert refetch(db, Event, e1_id).status == EventStatus.SWAP_PENDING.value

        events.delete_event(e1_id, alice)

        assert refetch(db, Event, e1_id) is None
        assert refetch(db, SwapRequest, swap_id) is None
        assert refetch(db, Event, e2_id).status == EventStatus.SWAPPABLE.value
        assert_pending_invariant(db)
