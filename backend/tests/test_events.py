"""
Tests for the event catalog.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from eventdesk.core.exceptions import EventInactive, EventNotFound, InvalidInput
from eventdesk.domain import TicketTier
from eventdesk.services.event_service import build_tiers
from eventdesk.services.registration_service import Attendee

from tests.conftest import make_event


NEXT_MONTH = datetime.now(timezone.utc) + timedelta(days=30)


@pytest.mark.asyncio
async def test_create_event_with_tiers(catalog, store):
    event = await catalog.create(
        name="  PyCon Local ",
        date=NEXT_MONTH,
        venue="Hall B",
        description="Talks and sprints",
        time="09:00 AM",
        max_capacity=300,
        ticket_tiers=[{"name": "VIP", "price": "250.50", "seats": 20}, {"name": "Standard", "price": 40, "seats": 280}],
    )

    assert event.name == "PyCon Local"
    assert event.is_active
    assert event.max_capacity == 300
    assert event.ticket_tiers == (
        TicketTier(name="VIP", price=Decimal("250.50"), seats=20),
        TicketTier(name="Standard", price=Decimal("40"), seats=280),
    )
    assert store.events[event.event_id] == event


@pytest.mark.asyncio
async def test_create_event_defaults_capacity(catalog):
    event = await catalog.create(name="Meetup", date=NEXT_MONTH, venue="Cafe", description="")
    assert event.max_capacity == 1000
    assert event.ticket_tiers == ()


def test_build_tiers_rejects_duplicate_names():
    with pytest.raises(InvalidInput):
        build_tiers([{"name": "Gold", "price": 1, "seats": 1}, {"name": "gold", "price": 2, "seats": 2}])


def test_build_tiers_rejects_blank_name_and_negative_seats():
    with pytest.raises(InvalidInput):
        build_tiers([{"name": "  ", "price": 1, "seats": 1}])
    with pytest.raises(InvalidInput):
        build_tiers([{"name": "Gold", "price": 1, "seats": -1}])


@pytest.mark.asyncio
async def test_negative_capacity_rejected(catalog):
    with pytest.raises(InvalidInput):
        await catalog.create(name="Meetup", date=NEXT_MONTH, venue="Cafe", description="", max_capacity=-5)


@pytest.mark.asyncio
async def test_get_unknown_event(catalog):
    with pytest.raises(EventNotFound):
        await catalog.get("missing")


@pytest.mark.asyncio
async def test_list_only_active_events_by_date(catalog, store, ledger, event):
    later = make_event("evt-later", date=NEXT_MONTH + timedelta(days=30))
    closed = make_event("evt-closed", is_active=False)
    store.events[later.event_id] = later
    store.events[closed.event_id] = closed
    await ledger.register(event.event_id, Attendee(name="Ann", email="ann@example.com"))

    summaries = await catalog.list_events()

    assert [s.event.event_id for s in summaries] == ["evt-1", "evt-later"]
    assert summaries[0].registration_count == 1
    assert summaries[0].checked_in_count == 0
    assert summaries[1].registration_count == 0


@pytest.mark.asyncio
async def test_detail_reports_remaining_per_tier(catalog, ledger, event):
    await ledger.register(event.event_id, Attendee(name="Ann", email="ann@example.com"), "GOLD")

    detail = await catalog.get_detail(event.event_id)

    availability = {tier.name: (tier.seats, tier.booked, tier.remaining) for tier in detail.tiers}
    assert availability == {"gold": (2, 1, 1), "silver": (5, 0, 5)}
    assert detail.registration_count == 1


@pytest.mark.asyncio
async def test_detail_of_tierless_event_shows_general_admission(catalog, store):
    event = make_event("evt-open", tiers=(), max_capacity=50)
    store.events[event.event_id] = event

    detail = await catalog.get_detail(event.event_id)

    assert [(t.name, t.price, t.seats, t.remaining) for t in detail.tiers] == [("general", Decimal("0"), 50, 50)]


@pytest.mark.asyncio
async def test_partial_update_keeps_other_fields(catalog, event, admission):
    updated = await catalog.update(event.event_id, {"venue": "Annex", "name": None})

    assert updated.venue == "Annex"
    assert updated.name == event.name
    assert updated.ticket_tiers == event.ticket_tiers
    assert admission.synced == []


@pytest.mark.asyncio
async def test_replacing_tiers_resyncs_the_gate(catalog, ledger, event, admission):
    await ledger.register(event.event_id, Attendee(name="Ann", email="ann@example.com"), "silver")

    updated = await catalog.update(
        event.event_id,
        {"ticket_tiers": [{"name": "silver", "price": 100, "seats": 8}, {"name": "bronze", "price": 20, "seats": 30}]},
    )

    assert [tier.name for tier in updated.ticket_tiers] == ["silver", "bronze"]
    assert admission.synced == [
        (event.event_id, "silver", 8, 1),
        (event.event_id, "bronze", 30, 0),
    ]


@pytest.mark.asyncio
async def test_delete_is_soft(catalog, ledger, event, store):
    await catalog.delete(event.event_id)

    assert store.events[event.event_id].is_active is False
    assert await catalog.list_events() == []
    with pytest.raises(EventInactive):
        await ledger.register(event.event_id, Attendee(name="Ann", email="ann@example.com"))
