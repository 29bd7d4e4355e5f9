"""
Tests for tier admission: the count check, tier resolution and the gate.
"""

from decimal import Decimal

import pytest

from eventdesk.core.exceptions import (
    EventInactive,
    EventNotFound,
    InvalidInput,
    PriceMismatch,
    SeatsExhausted,
    UnknownTier,
)
from eventdesk.domain import RegistrationStatus
from eventdesk.services.registration_service import Attendee
from eventdesk.services.seat_allocator import SeatAllocator

from tests.conftest import make_event
from tests.fakes import RecordingAdmission


def attendee(n: int) -> Attendee:
    return Attendee(name=f"Guest {n}", email=f"guest{n}@example.com", phone="555-0100")


@pytest.mark.asyncio
async def test_gold_tier_sells_out_after_two(ledger, allocator, event):
    """gold has 2 seats at 500: A and B get in, C is turned away."""
    first = await allocator.reserve(event.event_id, "gold", 1, Decimal("500"))
    assert first.total_amount == Decimal("500")
    assert first.remaining == 1
    await ledger.register(event.event_id, attendee(1), "gold", price=Decimal("500"))

    await ledger.register(event.event_id, attendee(2), "gold", price=Decimal("500"))

    with pytest.raises(SeatsExhausted) as exc_info:
        await ledger.register(event.event_id, attendee(3), "gold", price=Decimal("500"))
    assert exc_info.value.tier_name == "gold"
    assert exc_info.value.remaining == 0


@pytest.mark.asyncio
async def test_total_amount_scales_with_units(allocator, event):
    admission = await allocator.reserve(event.event_id, "silver", 3)
    assert admission.unit_price == Decimal("100")
    assert admission.total_amount == Decimal("300")
    assert admission.remaining == 2


@pytest.mark.asyncio
async def test_requesting_more_than_remaining(allocator, event):
    with pytest.raises(SeatsExhausted) as exc_info:
        await allocator.reserve(event.event_id, "silver", 6)
    assert exc_info.value.remaining == 5


@pytest.mark.asyncio
async def test_tier_match_is_case_insensitive(allocator, event):
    admission = await allocator.reserve(event.event_id, "GOLD")
    assert admission.tier_name == "gold"


@pytest.mark.asyncio
async def test_omitted_tier_uses_first(allocator, event):
    admission = await allocator.reserve(event.event_id)
    assert admission.tier_name == "gold"


@pytest.mark.asyncio
async def test_tierless_event_uses_general_tier(store, allocator):
    event = make_event("evt-free", tiers=(), max_capacity=1)
    store.events[event.event_id] = event

    admission = await allocator.reserve(event.event_id)
    assert admission.tier_name == "general"
    assert admission.total_amount == Decimal("0")
    assert admission.capacity == 1


@pytest.mark.asyncio
async def test_unknown_tier(allocator, event):
    with pytest.raises(UnknownTier):
        await allocator.reserve(event.event_id, "diamond")


@pytest.mark.asyncio
async def test_price_mismatch(allocator, event):
    with pytest.raises(PriceMismatch):
        await allocator.reserve(event.event_id, "gold", 1, Decimal("400"))


@pytest.mark.asyncio
async def test_units_must_be_positive(allocator, event):
    with pytest.raises(InvalidInput):
        await allocator.reserve(event.event_id, "gold", 0)


@pytest.mark.asyncio
async def test_unknown_event(allocator):
    with pytest.raises(EventNotFound):
        await allocator.reserve("missing", "gold")


@pytest.mark.asyncio
async def test_inactive_event(store, allocator):
    event = make_event("evt-closed", is_active=False)
    store.events[event.event_id] = event
    with pytest.raises(EventInactive):
        await allocator.reserve(event.event_id, "gold")


@pytest.mark.asyncio
async def test_cancelled_registrations_free_their_seat(ledger, allocator, event):
    """Counts exclude cancelled rows, so cancelling reopens the tier."""
    first = await ledger.register(event.event_id, attendee(1), "gold")
    await ledger.register(event.event_id, attendee(2), "gold")
    with pytest.raises(SeatsExhausted):
        await allocator.reserve(event.event_id, "gold")

    await ledger.update_status(first.registration_id, RegistrationStatus.CANCELLED)

    admission = await allocator.reserve(event.event_id, "gold")
    assert admission.remaining == 0


@pytest.mark.asyncio
async def test_serialized_registrations_never_oversell(ledger, store, event):
    for n in range(12):
        try:
            await ledger.register(event.event_id, attendee(n), "silver" if n % 2 else "gold")
        except SeatsExhausted:
            pass

    booked = len(store.registrations)
    assert booked == sum(tier.seats for tier in event.ticket_tiers)


@pytest.mark.asyncio
async def test_gate_rejection_is_seats_exhausted(uow, event):
    allocator = SeatAllocator(uow, RecordingAdmission(slots=0))
    admission = await allocator.reserve(event.event_id, "gold")
    with pytest.raises(SeatsExhausted):
        await allocator.admit(admission)


@pytest.mark.asyncio
async def test_admit_marks_whether_the_gate_holds_seats(uow, event):
    held = SeatAllocator(uow, RecordingAdmission())
    admission = await held.reserve(event.event_id, "gold")
    assert not admission.held
    assert (await held.admit(admission)).held

    open_gate = RecordingAdmission(failing_open=True)
    allocator = SeatAllocator(uow, open_gate)
    admitted = await allocator.admit(await allocator.reserve(event.event_id, "gold"))
    assert not admitted.held

    await allocator.abandon(admitted)
    assert open_gate.released == []


@pytest.mark.asyncio
async def test_sync_event_reseeds_every_tier(uow, event, ledger, admission):
    await ledger.register(event.event_id, attendee(1), "gold")
    allocator = SeatAllocator(uow, admission)

    await allocator.sync_event(event)

    assert (event.event_id, "gold", 2, 1) in admission.synced
    assert (event.event_id, "silver", 5, 0) in admission.synced
