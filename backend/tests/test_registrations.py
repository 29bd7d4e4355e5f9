"""
Tests for the registration ledger.
"""

import asyncio
import json
from decimal import Decimal

import pytest

from eventdesk.core.exceptions import (
    DuplicateRegistration,
    InvalidInput,
    InvalidStatusTransition,
    RegistrationNotFound,
    SeatsExhausted,
    StoreUnavailable,
)
from eventdesk.domain import RegistrationStatus, RegistrationType
from eventdesk.services.checkin_service import ManualSelector, QrSelector
from eventdesk.services.registration_service import Attendee, RegistrationLedger, generate_code
from eventdesk.services.seat_allocator import SeatAllocator

from tests.conftest import make_event
from tests.fakes import RecordingAdmission


def alice(**overrides) -> Attendee:
    fields = dict(name="Alice Doe", email="alice@example.com", phone="555-0101")
    fields.update(overrides)
    return Attendee(**fields)


@pytest.mark.asyncio
async def test_register_creates_confirmed_registration(ledger, event, store):
    registration = await ledger.register(event.event_id, alice(), "gold", price=Decimal("500"))

    assert len(registration.registration_id) == 8
    assert all(ch.isdigit() or "A" <= ch <= "Z" for ch in registration.registration_id)
    assert registration.status == RegistrationStatus.CONFIRMED
    assert registration.ticket_tier == "gold"
    assert registration.ticket_price == Decimal("500")
    assert registration.registration_type == RegistrationType.ONLINE
    assert not registration.is_checked_in
    assert store.registrations[registration.registration_id] == registration


def test_generated_codes_use_upper_alphanumerics():
    for _ in range(50):
        code = generate_code(8)
        assert len(code) == 8
        assert all(ch.isdigit() or "A" <= ch <= "Z" for ch in code)


@pytest.mark.asyncio
async def test_email_is_normalized(ledger, event):
    registration = await ledger.register(event.event_id, alice(email="  Alice@Example.COM "))
    assert registration.email == "alice@example.com"


@pytest.mark.asyncio
async def test_angle_brackets_are_stripped(ledger, event):
    registration = await ledger.register(
        event.event_id,
        alice(name="<script>Alice</script>", organization="<b>Acme</b>"),
    )
    assert registration.name == "scriptAlice/script"
    assert registration.organization == "bAcme/b"


@pytest.mark.asyncio
async def test_blank_name_rejected(ledger, event):
    with pytest.raises(InvalidInput):
        await ledger.register(event.event_id, alice(name="<>"))


@pytest.mark.asyncio
async def test_qr_payload_document(ledger, event):
    registration = await ledger.register(event.event_id, alice())

    document = json.loads(registration.qr_payload)
    assert set(document) == {"registrationId", "eventId", "name", "email", "timestamp"}
    assert document["registrationId"] == registration.registration_id
    assert document["eventId"] == event.event_id
    assert document["email"] == "alice@example.com"


@pytest.mark.asyncio
async def test_qr_payload_resolves_to_its_registration(ledger, engine, event):
    registration = await ledger.register(event.event_id, alice())
    result = await engine.check_in(QrSelector(registration.qr_payload))
    assert result.registration.registration_id == registration.registration_id


@pytest.mark.asyncio
async def test_duplicate_returns_original_and_writes_nothing(ledger, event, store):
    original = await ledger.register(event.event_id, alice())

    with pytest.raises(DuplicateRegistration) as exc_info:
        await ledger.register(event.event_id, alice(email="ALICE@example.com"), "silver")

    assert exc_info.value.registration_id == original.registration_id
    assert exc_info.value.existing == original
    assert len(store.registrations) == 1


@pytest.mark.asyncio
async def test_same_email_other_event_is_allowed(ledger, event, store):
    other = make_event("evt-2")
    store.events[other.event_id] = other

    await ledger.register(event.event_id, alice())
    await ledger.register(other.event_id, alice())
    assert len(store.registrations) == 2


@pytest.mark.asyncio
async def test_cancelled_registration_frees_the_email(ledger, event):
    first = await ledger.register(event.event_id, alice())
    await ledger.update_status(first.registration_id, RegistrationStatus.CANCELLED)

    second = await ledger.register(event.event_id, alice())
    assert second.registration_id != first.registration_id


@pytest.mark.asyncio
async def test_concurrent_duplicate_reports_existing(store, event, broker):
    """Two requests for one email racing past the duplicate check: one wins, one sees it."""
    ledgers = [
        RegistrationLedger(uow, SeatAllocator(uow, RecordingAdmission()), broker)
        for uow in (store.uow(), store.uow())
    ]
    results = await asyncio.gather(
        *(ledger.register(event.event_id, alice(), "silver") for ledger in ledgers),
        return_exceptions=True,
    )

    created = [r for r in results if not isinstance(r, Exception)]
    duplicates = [r for r in results if isinstance(r, DuplicateRegistration)]
    assert len(created) == 1
    assert len(duplicates) == 1
    assert duplicates[0].registration_id == created[0].registration_id
    assert len(store.registrations) == 1


@pytest.mark.asyncio
async def test_rejected_registration_releases_nothing_it_did_not_take(ledger, event, admission):
    await ledger.register(event.event_id, alice(email="a@example.com"), "gold")
    await ledger.register(event.event_id, alice(email="b@example.com"), "gold")
    with pytest.raises(SeatsExhausted):
        await ledger.register(event.event_id, alice(email="c@example.com"), "gold")

    assert len(admission.admitted) == 2
    assert admission.released == []


@pytest.mark.asyncio
async def test_store_failure_releases_gate_slot(ledger, event, store, admission):
    original_commit = ledger._uow.commit

    async def failing_commit():
        store.unavailable = True
        try:
            await original_commit()
        finally:
            store.unavailable = False

    ledger._uow.commit = failing_commit

    with pytest.raises(StoreUnavailable):
        await ledger.register(event.event_id, alice())

    assert admission.released == [(event.event_id, "gold", 1)]
    assert store.registrations == {}


@pytest.mark.asyncio
async def test_store_failure_after_open_gate_releases_nothing(ledger, event, store, admission):
    admission.failing_open = True
    original_commit = ledger._uow.commit

    async def failing_commit():
        store.unavailable = True
        try:
            await original_commit()
        finally:
            store.unavailable = False

    ledger._uow.commit = failing_commit

    with pytest.raises(StoreUnavailable):
        await ledger.register(event.event_id, alice())

    assert admission.released == []


@pytest.mark.asyncio
async def test_registration_publishes_notification(ledger, event, broker):
    subscription = broker.subscribe(event.event_id)

    registration = await ledger.register(event.event_id, alice())

    message = subscription.queue.get_nowait()
    assert message.type == "newRegistration"
    assert message.to_dict()["registration"]["registrationId"] == registration.registration_id


@pytest.mark.asyncio
async def test_get_missing_registration(ledger):
    with pytest.raises(RegistrationNotFound):
        await ledger.get("AB12CD34")


@pytest.mark.asyncio
async def test_listing_is_newest_first(ledger, event):
    first = await ledger.register(event.event_id, alice(email="first@example.com"))
    second = await ledger.register(event.event_id, alice(email="second@example.com"))

    listed = await ledger.list_for_event(event.event_id)
    assert [r.registration_id for r in listed] == [second.registration_id, first.registration_id]
    assert [r.registration_id for r in await ledger.list_all()] == [
        second.registration_id,
        first.registration_id,
    ]


@pytest.mark.asyncio
async def test_search_by_email_is_case_insensitive(ledger, event):
    registration = await ledger.register(event.event_id, alice())
    found = await ledger.search("ALICE@EXAMPLE.COM")
    assert [r.registration_id for r in found] == [registration.registration_id]


@pytest.mark.asyncio
async def test_status_changes(ledger, event):
    registration = await ledger.register(event.event_id, alice())

    pending = await ledger.update_status(registration.registration_id, RegistrationStatus.PENDING)
    assert pending.status == RegistrationStatus.PENDING

    confirmed = await ledger.update_status(registration.registration_id, RegistrationStatus.CONFIRMED)
    assert confirmed.status == RegistrationStatus.CONFIRMED


@pytest.mark.asyncio
async def test_checked_in_status_cannot_be_set_directly(ledger, event):
    registration = await ledger.register(event.event_id, alice())
    with pytest.raises(InvalidInput):
        await ledger.update_status(registration.registration_id, RegistrationStatus.CHECKED_IN)


@pytest.mark.asyncio
async def test_checked_in_registration_is_frozen(ledger, engine, event):
    registration = await ledger.register(event.event_id, alice())
    await engine.check_in(ManualSelector(registration.registration_id))

    with pytest.raises(InvalidStatusTransition):
        await ledger.update_status(registration.registration_id, RegistrationStatus.CANCELLED)


@pytest.mark.asyncio
async def test_cancelled_registration_stays_cancelled(ledger, event, admission):
    registration = await ledger.register(event.event_id, alice())
    await ledger.update_status(registration.registration_id, RegistrationStatus.CANCELLED)

    assert admission.released == [(event.event_id, "gold", 1)]
    with pytest.raises(InvalidStatusTransition):
        await ledger.update_status(registration.registration_id, RegistrationStatus.CONFIRMED)
