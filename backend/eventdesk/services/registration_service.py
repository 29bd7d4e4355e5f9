"""
Registration ledger: the registration lifecycle.

register
  1. Normalize the attendee (trim, lower-case email, strip angle brackets)
  2. Duplicate check on (event, email) among live registrations
  3. Seat allocator: reserve (count check) then admit (gate)
  4. Draw a fresh registration code, write, commit
  5. After commit: publish newRegistration, send the confirmation email

A duplicate that slips past step 2 under concurrency is rejected by the
partial unique index and reported exactly like the step 2 duplicate. The
check-in fields are never written here.
"""

import secrets
import string
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from eventdesk.core.background import fire_and_forget
from eventdesk.core.config import get_settings
from eventdesk.core.exceptions import (
    DomainError,
    DuplicateRegistration,
    InvalidInput,
    InvalidStatusTransition,
    RegistrationNotFound,
    StoreConflict,
    StoreUnavailable,
)
from eventdesk.core.logging import get_logger
from eventdesk.core.metrics import record_registration
from eventdesk.db.base import utcnow
from eventdesk.domain import Event, Registration, RegistrationStatus, RegistrationType
from eventdesk.repositories.interfaces import UnitOfWork
from eventdesk.services.email_service import ConfirmationMailer
from eventdesk.services.notification_service import NotificationBroker, new_registration
from eventdesk.services.qr_service import encode_payload
from eventdesk.services.seat_allocator import Admission, SeatAllocator

logger = get_logger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits

# Statuses an admin may set; checked_in belongs to the check-in engine
SETTABLE_STATUSES = {
    RegistrationStatus.PENDING,
    RegistrationStatus.CONFIRMED,
    RegistrationStatus.CANCELLED,
}


def _clean(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.replace("<", "").replace(">", "").strip()


def normalize_email(email: str) -> str:
    return _clean(email).lower()


@dataclass(frozen=True)
class Attendee:
    name: str
    email: str
    phone: str = ""
    organization: str = ""
    designation: str = ""

    def sanitized(self) -> "Attendee":
        return Attendee(
            name=_clean(self.name),
            email=normalize_email(self.email),
            phone=_clean(self.phone),
            organization=_clean(self.organization),
            designation=_clean(self.designation),
        )


def generate_code(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class RegistrationLedger:
    def __init__(
        self,
        uow: UnitOfWork,
        allocator: SeatAllocator,
        broker: NotificationBroker,
        mailer: Optional[ConfirmationMailer] = None,
    ) -> None:
        self._uow = uow
        self._allocator = allocator
        self._broker = broker
        self._mailer = mailer
        self._code_length = get_settings().REGISTRATION_ID_LENGTH

    async def _new_code(self) -> str:
        while True:
            code = generate_code(self._code_length)
            if not await self._uow.registrations.exists(code):
                return code

    async def _raise_if_duplicate(self, event_id: str, email: str) -> None:
        existing = await self._uow.registrations.find_live_by_email(event_id, email)
        if existing is not None:
            record_registration("duplicate")
            logger.info(
                "registration_duplicate",
                event_id=event_id,
                registration_id=existing.registration_id,
            )
            raise DuplicateRegistration(existing)

    async def register(
        self,
        event_id: str,
        attendee: Attendee,
        tier_name: Optional[str] = None,
        registration_type: RegistrationType = RegistrationType.ONLINE,
        price: Optional[Decimal] = None,
    ) -> Registration:
        """
        Create a registration.

        Raises:
            DuplicateRegistration: a live registration exists for (event, email).
            InvalidInput: name or email empty after normalization.
            EventNotFound, EventInactive, UnknownTier, PriceMismatch,
            SeatsExhausted: from the seat allocator.
            StoreUnavailable: the store failed; outcome unknown.
        """
        attendee = attendee.sanitized()
        if not attendee.name or not attendee.email:
            raise InvalidInput("Name and email are required")

        await self._raise_if_duplicate(event_id, attendee.email)

        try:
            admission = await self._allocator.reserve(event_id, tier_name, 1, price)
            admission = await self._allocator.admit(admission)
        except DomainError:
            record_registration("rejected")
            raise

        try:
            registration = await self._write(event_id, attendee, admission, registration_type)
        except (DuplicateRegistration, StoreUnavailable):
            await self._allocator.abandon(admission)
            raise

        record_registration("created")
        logger.info(
            "registration_created",
            registration_id=registration.registration_id,
            event_id=event_id,
            tier=registration.ticket_tier,
            type=registration.registration_type.value,
        )
        self._after_commit(registration, admission.event)
        return registration

    async def _write(
        self,
        event_id: str,
        attendee: Attendee,
        admission: Admission,
        registration_type: RegistrationType,
    ) -> Registration:
        while True:
            code = await self._new_code()
            now = utcnow()
            registration = Registration(
                registration_id=code,
                event_id=event_id,
                name=attendee.name,
                email=attendee.email,
                phone=attendee.phone,
                organization=attendee.organization,
                designation=attendee.designation,
                ticket_tier=admission.tier_name,
                ticket_price=admission.total_amount,
                qr_payload=encode_payload(code, event_id, attendee.name, attendee.email, now),
                registration_type=registration_type,
                status=RegistrationStatus.CONFIRMED,
                created_at=now,
                updated_at=now,
            )
            try:
                stored = await self._uow.registrations.add(registration)
                await self._uow.commit()
                return stored
            except StoreConflict as e:
                await self._uow.rollback()
                # Either a concurrent registration for the same email won
                # the unique index, or the code collided after the check
                await self._raise_if_duplicate(event_id, attendee.email)
                logger.info("registration_code_collision", code=code, constraint=e.constraint)

    def _after_commit(self, registration: Registration, event: Optional[Event]) -> None:
        self._broker.publish(new_registration(registration))
        if self._mailer is not None and self._mailer.enabled:
            fire_and_forget(
                self._mailer.send_confirmation(registration, event),
                name=f"confirmation-email-{registration.registration_id}",
            )

    async def get(self, registration_id: str) -> Registration:
        registration = await self._uow.registrations.get(registration_id)
        if registration is None:
            raise RegistrationNotFound(registration_id)
        return registration

    async def list_for_event(self, event_id: str) -> list[Registration]:
        return await self._uow.registrations.list_for_event(event_id)

    async def search(self, email: str) -> list[Registration]:
        return await self._uow.registrations.list_by_email(normalize_email(email))

    async def list_all(self) -> list[Registration]:
        return await self._uow.registrations.list_all()

    async def update_status(
        self, registration_id: str, status: RegistrationStatus
    ) -> Registration:
        """
        Admin status change.

        pending and confirmed move freely between each other and to
        cancelled. A cancelled registration stays cancelled (its seat and
        email are free for a new registration) and a checked-in one cannot
        be changed.
        """
        if status not in SETTABLE_STATUSES:
            raise InvalidInput(f"Status {status.value} cannot be set directly", status=status.value)

        current = await self.get(registration_id)
        if current.status == status:
            return current
        if current.is_checked_in or current.status == RegistrationStatus.CANCELLED:
            raise InvalidStatusTransition(current.status.value, status.value)

        updated = await self._uow.registrations.set_status(registration_id, status)
        if updated is None:
            # Checked in between the read and the write
            latest = await self.get(registration_id)
            raise InvalidStatusTransition(latest.status.value, status.value)
        await self._uow.commit()

        if status == RegistrationStatus.CANCELLED:
            await self._allocator.release(updated.event_id, updated.ticket_tier)

        logger.info(
            "registration_status_changed",
            registration_id=registration_id,
            old_status=current.status.value,
            new_status=status.value,
        )
        return updated
