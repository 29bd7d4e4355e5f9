"""
Check-in engine with exactly-once semantics.

CONCURRENCY STRATEGY: Conditional update (compare-and-swap)
===========================================================

Problem:
  The same attendee is scanned at two doors at once, or a QR scan races a
  manual entry at the desk. Both read is_checked_in=false, both write a
  check-in record. Result: two records and a double-counted attendee.

Solution:
  The read is only used to answer early. The write is one conditional
  operation in a single transaction:

    UPDATE registrations SET is_checked_in = true, checked_in_at = :now, ...
    WHERE registration_id = :rid AND event_id = :eid
      AND is_checked_in = false AND status != 'cancelled'

  and the check-in record is inserted in the same transaction only when
  that UPDATE matched a row. The loser of a race matches 0 rows, writes
  nothing, re-reads and answers ALREADY_CHECKED_IN. The unique constraint
  on checkins.registration_id backs this up: a duplicate record can never
  commit.

QR and manual entry resolve to the same (registration_id, event_id) key
before touching the store, so both paths race on the same row.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from eventdesk.core.exceptions import (
    InvalidSelector,
    RegistrationCancelled,
    RegistrationNotFound,
    StoreConflict,
)
from eventdesk.core.logging import get_logger
from eventdesk.core.metrics import checkin_latency, checkin_races_lost, record_checkin
from eventdesk.db.base import utcnow
from eventdesk.domain import CheckinRecord, Registration, RegistrationStatus
from eventdesk.repositories.interfaces import UnitOfWork
from eventdesk.services.notification_service import NotificationBroker, new_checkin
from eventdesk.services.qr_service import decode_selector

logger = get_logger(__name__)

SYSTEM_ACTOR = "system"


class CheckinOutcome(str, Enum):
    SUCCESS = "success"
    ALREADY_CHECKED_IN = "already_checked_in"


@dataclass(frozen=True)
class QrSelector:
    """Scanned QR text: `registrationId|eventId` or the registration's JSON payload."""

    raw: str
    channel = "qr"


@dataclass(frozen=True)
class ManualSelector:
    """Registration id typed in by staff; the owning event is looked up."""

    registration_id: str
    channel = "manual"


Selector = Union[QrSelector, ManualSelector]


@dataclass(frozen=True)
class CheckinResult:
    outcome: CheckinOutcome
    registration: Registration
    checkin: Optional[CheckinRecord] = None

    @property
    def success(self) -> bool:
        return self.outcome == CheckinOutcome.SUCCESS

    @property
    def message(self) -> str:
        if self.success:
            return "Check-in successful"
        return "User already checked in"


class CheckinEngine:
    def __init__(self, uow: UnitOfWork, broker: NotificationBroker) -> None:
        self._uow = uow
        self._broker = broker

    async def _resolve(self, selector: Selector) -> tuple[str, str]:
        if isinstance(selector, QrSelector):
            return decode_selector(selector.raw)

        if isinstance(selector, ManualSelector):
            registration_id = (selector.registration_id or "").strip()
            if not registration_id:
                raise InvalidSelector("Invalid check-in data")
            registration = await self._uow.registrations.get(registration_id)
            if registration is None:
                raise RegistrationNotFound(registration_id)
            return registration.registration_id, registration.event_id

        raise InvalidSelector("Invalid check-in data")

    async def check_in(self, selector: Selector, actor: Optional[str] = None) -> CheckinResult:
        """
        Check an attendee in, at most once.

        Returns SUCCESS with the new record, or ALREADY_CHECKED_IN with the
        registration as it stands (and its existing record).

        Raises:
            InvalidSelector: malformed QR text; raised before any store access.
            RegistrationNotFound: no registration for the resolved key.
            RegistrationCancelled: the registration was cancelled.
            StoreUnavailable: store failure; re-query before retrying.
        """
        channel = getattr(selector, "channel", "unknown")
        with checkin_latency.time():
            try:
                result = await self._check_in(selector, actor or SYSTEM_ACTOR)
            except InvalidSelector:
                record_checkin("invalid", channel)
                raise
            except RegistrationNotFound:
                record_checkin("not_found", channel)
                raise
            except RegistrationCancelled:
                record_checkin("cancelled", channel)
                raise
        record_checkin(result.outcome.value, channel)
        return result

    async def _check_in(self, selector: Selector, actor: str) -> CheckinResult:
        registration_id, event_id = await self._resolve(selector)

        registration = await self._uow.registrations.get_for_event(registration_id, event_id)
        if registration is None:
            raise RegistrationNotFound(registration_id)
        if registration.status == RegistrationStatus.CANCELLED:
            raise RegistrationCancelled(registration_id)
        if registration.is_checked_in:
            return await self._already_checked_in(registration)

        record = CheckinRecord(
            checkin_id=str(uuid.uuid4()),
            registration_id=registration_id,
            event_id=event_id,
            checked_in_at=utcnow(),
            checked_in_by=actor,
        )
        try:
            flipped = await self._uow.checkins.record_checkin(record)
            if flipped:
                await self._uow.commit()
        except StoreConflict:
            flipped = False

        if not flipped:
            await self._uow.rollback()
            checkin_races_lost.inc()
            logger.info("checkin_race_lost", registration_id=registration_id, event_id=event_id)
            latest = await self._uow.registrations.get_for_event(registration_id, event_id)
            if latest is None:
                raise RegistrationNotFound(registration_id)
            if latest.status == RegistrationStatus.CANCELLED:
                raise RegistrationCancelled(registration_id)
            return await self._already_checked_in(latest)

        updated = await self._uow.registrations.get_for_event(registration_id, event_id)
        checked_in_count = await self._uow.registrations.count(event_id, checked_in=True)
        self._broker.publish(new_checkin(event_id, registration_id, checked_in_count))

        logger.info(
            "checkin_success",
            registration_id=registration_id,
            event_id=event_id,
            checked_in_by=actor,
            checked_in_count=checked_in_count,
        )
        return CheckinResult(CheckinOutcome.SUCCESS, updated or registration, record)

    async def _already_checked_in(self, registration: Registration) -> CheckinResult:
        existing = await self._uow.checkins.get_for_registration(registration.registration_id)
        logger.info(
            "checkin_duplicate",
            registration_id=registration.registration_id,
            event_id=registration.event_id,
        )
        return CheckinResult(CheckinOutcome.ALREADY_CHECKED_IN, registration, existing)
