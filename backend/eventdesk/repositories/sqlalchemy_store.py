"""SQLAlchemy implementation of the store interfaces.

All repositories share the request's AsyncSession; `SqlAlchemyUnitOfWork`
commits it. Rows are converted to domain models before leaving this module.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.exceptions import StoreConflict, StoreUnavailable
from eventdesk.core.logging import get_logger
from eventdesk.db.base import utcnow
from eventdesk.domain import (
    Admin,
    CheckinRecord,
    Consultation,
    ConsultationStatus,
    Event,
    Registration,
    RegistrationStatus,
    RegistrationType,
    TicketTier,
)
from eventdesk.models import Admin as AdminRow
from eventdesk.models import Checkin as CheckinRow
from eventdesk.models import Consultation as ConsultationRow
from eventdesk.models import Event as EventRow
from eventdesk.models import Registration as RegistrationRow
from eventdesk.models import TicketTier as TicketTierRow
from eventdesk.repositories.interfaces import (
    AdminRepository,
    CheckinRepository,
    ConsultationRepository,
    EventRepository,
    RegistrationRepository,
    UnitOfWork,
)

logger = get_logger(__name__)


@asynccontextmanager
async def translate_errors(session: AsyncSession):
    """Map driver errors onto the store error taxonomy, rolling back first."""
    try:
        yield
    except IntegrityError as e:
        await session.rollback()
        logger.info("store_conflict", error=str(e.orig))
        raise StoreConflict(str(e.orig)) from e
    except (OperationalError, DBAPIError) as e:
        await session.rollback()
        logger.error("store_unavailable", error=str(e))
        raise StoreUnavailable() from e


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything stored is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_event(row: EventRow) -> Event:
    return Event(
        event_id=row.event_id,
        name=row.name,
        date=_aware(row.date),
        time=row.time or "",
        venue=row.venue,
        description=row.description,
        image_url=row.image_url or "",
        is_active=row.is_active,
        max_capacity=row.max_capacity,
        ticket_tiers=tuple(
            TicketTier(name=t.name, price=Decimal(t.price), seats=t.seats)
            for t in row.ticket_tiers
        ),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _tier_rows(event: Event) -> list[TicketTierRow]:
    return [
        TicketTierRow(position=position, name=tier.name, price=tier.price, seats=tier.seats)
        for position, tier in enumerate(event.ticket_tiers)
    ]


def _to_registration(row: RegistrationRow) -> Registration:
    return Registration(
        registration_id=row.registration_id,
        event_id=row.event_id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        organization=row.organization or "",
        designation=row.designation or "",
        registration_type=RegistrationType(row.registration_type),
        ticket_tier=row.ticket_tier,
        ticket_price=Decimal(row.ticket_price),
        qr_payload=row.qr_payload,
        status=RegistrationStatus(row.status),
        is_checked_in=row.is_checked_in,
        checked_in_at=_aware(row.checked_in_at),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _to_checkin(row: CheckinRow) -> CheckinRecord:
    return CheckinRecord(
        checkin_id=row.checkin_id,
        registration_id=row.registration_id,
        event_id=row.event_id,
        checked_in_at=_aware(row.checked_in_at),
        checked_in_by=row.checked_in_by,
    )


def _to_consultation(row: ConsultationRow) -> Consultation:
    return Consultation(
        consultation_id=row.consultation_id,
        company=row.company,
        contact=row.contact,
        email=row.email,
        phone=row.phone,
        requirements=row.requirements,
        status=ConsultationStatus(row.status),
        checked_at=_aware(row.checked_at),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class SqlAlchemyEventRepository(EventRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _row(self, event_id: str) -> Optional[EventRow]:
        result = await self._session.execute(
            select(EventRow).where(EventRow.event_id == event_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def add(self, event: Event) -> Event:
        row = EventRow(
            event_id=event.event_id,
            name=event.name,
            date=event.date,
            time=event.time,
            venue=event.venue,
            description=event.description,
            image_url=event.image_url,
            is_active=event.is_active,
            max_capacity=event.max_capacity,
            ticket_tiers=_tier_rows(event),
        )
        async with translate_errors(self._session):
            self._session.add(row)
            await self._session.flush()
        return _to_event(row)

    async def get(self, event_id: str) -> Optional[Event]:
        row = await self._row(event_id)
        return _to_event(row) if row else None

    async def list_events(self, active_only: bool = True) -> list[Event]:
        query = select(EventRow)
        if active_only:
            query = query.where(EventRow.is_active.is_(True))
        result = await self._session.execute(
            query.order_by(EventRow.date.asc()).execution_options(populate_existing=True)
        )
        return [_to_event(row) for row in result.scalars().all()]

    async def update(self, event: Event) -> Event:
        row = await self._row(event.event_id)
        if row is None:
            raise LookupError(event.event_id)

        row.name = event.name
        row.date = event.date
        row.time = event.time
        row.venue = event.venue
        row.description = event.description
        row.image_url = event.image_url
        row.is_active = event.is_active
        row.max_capacity = event.max_capacity
        row.updated_at = utcnow()

        async with translate_errors(self._session):
            # Flush the orphan deletes first so a kept tier name does not
            # collide with its own old row on the unique constraint
            row.ticket_tiers.clear()
            await self._session.flush()
            row.ticket_tiers.extend(_tier_rows(event))
            await self._session.flush()
        return _to_event(row)


class SqlAlchemyRegistrationRepository(RegistrationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _one(self, *criteria) -> Optional[Registration]:
        result = await self._session.execute(
            select(RegistrationRow).where(*criteria).execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_registration(row) if row else None

    async def _many(self, *criteria, limit: Optional[int] = None) -> list[Registration]:
        query = (
            select(RegistrationRow)
            .where(*criteria)
            .order_by(RegistrationRow.created_at.desc(), RegistrationRow.id.desc())
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self._session.execute(query)
        return [_to_registration(row) for row in result.scalars().all()]

    async def add(self, registration: Registration) -> Registration:
        row = RegistrationRow(
            registration_id=registration.registration_id,
            event_id=registration.event_id,
            name=registration.name,
            email=registration.email,
            phone=registration.phone,
            organization=registration.organization,
            designation=registration.designation,
            registration_type=registration.registration_type.value,
            ticket_tier=registration.ticket_tier,
            ticket_price=registration.ticket_price,
            qr_payload=registration.qr_payload,
            status=registration.status.value,
            is_checked_in=False,
            checked_in_at=None,
            created_at=registration.created_at or utcnow(),
            updated_at=registration.updated_at or utcnow(),
        )
        async with translate_errors(self._session):
            self._session.add(row)
            await self._session.flush()
        return _to_registration(row)

    async def get(self, registration_id: str) -> Optional[Registration]:
        return await self._one(RegistrationRow.registration_id == registration_id)

    async def get_for_event(self, registration_id: str, event_id: str) -> Optional[Registration]:
        return await self._one(
            RegistrationRow.registration_id == registration_id,
            RegistrationRow.event_id == event_id,
        )

    async def exists(self, registration_id: str) -> bool:
        result = await self._session.execute(
            select(RegistrationRow.id).where(RegistrationRow.registration_id == registration_id)
        )
        return result.first() is not None

    async def find_live_by_email(self, event_id: str, email: str) -> Optional[Registration]:
        return await self._one(
            RegistrationRow.event_id == event_id,
            RegistrationRow.email == email,
            RegistrationRow.status != RegistrationStatus.CANCELLED.value,
        )

    async def count(
        self,
        event_id: str,
        tier: Optional[str] = None,
        checked_in: Optional[bool] = None,
        registration_type: Optional[str] = None,
    ) -> int:
        query = (
            select(func.count())
            .select_from(RegistrationRow)
            .where(
                RegistrationRow.event_id == event_id,
                RegistrationRow.status != RegistrationStatus.CANCELLED.value,
            )
        )
        if tier is not None:
            query = query.where(func.lower(RegistrationRow.ticket_tier) == tier.lower())
        if checked_in is not None:
            query = query.where(RegistrationRow.is_checked_in.is_(checked_in))
        if registration_type is not None:
            query = query.where(RegistrationRow.registration_type == registration_type)
        return (await self._session.execute(query)).scalar_one()

    async def count_by_tier(self, event_id: str) -> dict[str, int]:
        result = await self._session.execute(
            select(RegistrationRow.ticket_tier, func.count())
            .where(
                RegistrationRow.event_id == event_id,
                RegistrationRow.status != RegistrationStatus.CANCELLED.value,
            )
            .group_by(RegistrationRow.ticket_tier)
        )
        return {tier: count for tier, count in result.all()}

    async def list_for_event(self, event_id: str, limit: Optional[int] = None) -> list[Registration]:
        return await self._many(RegistrationRow.event_id == event_id, limit=limit)

    async def list_by_email(self, email: str) -> list[Registration]:
        return await self._many(RegistrationRow.email == email)

    async def list_all(self) -> list[Registration]:
        return await self._many()

    async def set_status(
        self, registration_id: str, status: RegistrationStatus
    ) -> Optional[Registration]:
        async with translate_errors(self._session):
            result = await self._session.execute(
                update(RegistrationRow)
                .where(
                    RegistrationRow.registration_id == registration_id,
                    RegistrationRow.is_checked_in.is_(False),
                )
                .values(status=status.value, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            return None
        # The bulk UPDATE bypasses the identity map; re-read the row fresh
        result = await self._session.execute(
            select(RegistrationRow)
            .where(RegistrationRow.registration_id == registration_id)
            .execution_options(populate_existing=True)
        )
        return _to_registration(result.scalar_one())


class SqlAlchemyCheckinRepository(CheckinRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record_checkin(self, record: CheckinRecord) -> bool:
        async with translate_errors(self._session):
            # Compare-and-swap on the flag. Under concurrent attempts the
            # row lock serialises the updates and the loser matches 0 rows.
            result = await self._session.execute(
                update(RegistrationRow)
                .where(
                    RegistrationRow.registration_id == record.registration_id,
                    RegistrationRow.event_id == record.event_id,
                    RegistrationRow.is_checked_in.is_(False),
                    RegistrationRow.status != RegistrationStatus.CANCELLED.value,
                )
                .values(
                    is_checked_in=True,
                    checked_in_at=record.checked_in_at,
                    status=RegistrationStatus.CHECKED_IN.value,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return False

            self._session.add(
                CheckinRow(
                    checkin_id=record.checkin_id,
                    registration_id=record.registration_id,
                    event_id=record.event_id,
                    checked_in_at=record.checked_in_at,
                    checked_in_by=record.checked_in_by,
                )
            )
            await self._session.flush()
        return True

    async def get_for_registration(self, registration_id: str) -> Optional[CheckinRecord]:
        result = await self._session.execute(
            select(CheckinRow).where(CheckinRow.registration_id == registration_id)
        )
        row = result.scalar_one_or_none()
        return _to_checkin(row) if row else None

    async def list_for_event(
        self,
        event_id: str,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
    ) -> list[CheckinRecord]:
        query = select(CheckinRow).where(CheckinRow.event_id == event_id)
        if since is not None:
            query = query.where(CheckinRow.checked_in_at >= since)
        query = query.order_by(CheckinRow.checked_in_at.desc(), CheckinRow.id.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await self._session.execute(query)
        return [_to_checkin(row) for row in result.scalars().all()]


class SqlAlchemyAdminRepository(AdminRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, username: str) -> Optional[Admin]:
        result = await self._session.execute(select(AdminRow).where(AdminRow.username == username))
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return Admin(username=row.username, hashed_password=row.hashed_password, is_active=row.is_active)

    async def add(self, admin: Admin) -> Admin:
        async with translate_errors(self._session):
            self._session.add(
                AdminRow(
                    username=admin.username,
                    hashed_password=admin.hashed_password,
                    is_active=admin.is_active,
                )
            )
            await self._session.flush()
        return admin


class SqlAlchemyConsultationRepository(ConsultationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _many(self, *criteria) -> list[Consultation]:
        result = await self._session.execute(
            select(ConsultationRow)
            .where(*criteria)
            .order_by(ConsultationRow.created_at.desc(), ConsultationRow.id.desc())
            .execution_options(populate_existing=True)
        )
        return [_to_consultation(row) for row in result.scalars().all()]

    async def add(self, consultation: Consultation) -> Consultation:
        row = ConsultationRow(
            consultation_id=consultation.consultation_id,
            company=consultation.company,
            contact=consultation.contact,
            email=consultation.email,
            phone=consultation.phone,
            requirements=consultation.requirements,
            status=consultation.status.value,
            checked_at=consultation.checked_at,
            created_at=consultation.created_at or utcnow(),
            updated_at=consultation.updated_at or utcnow(),
        )
        async with translate_errors(self._session):
            self._session.add(row)
            await self._session.flush()
        return _to_consultation(row)

    async def get(self, consultation_id: str) -> Optional[Consultation]:
        result = await self._session.execute(
            select(ConsultationRow)
            .where(ConsultationRow.consultation_id == consultation_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_consultation(row) if row else None

    async def list_consultations(
        self, status: Optional[ConsultationStatus] = None
    ) -> list[Consultation]:
        if status is None:
            return await self._many()
        return await self._many(ConsultationRow.status == status.value)

    async def search_by_email(self, fragment: str) -> list[Consultation]:
        return await self._many(
            func.lower(ConsultationRow.email).contains(fragment.lower(), autoescape=True)
        )

    async def set_status(
        self,
        consultation_id: str,
        status: ConsultationStatus,
        checked_at: Optional[datetime] = None,
    ) -> Optional[Consultation]:
        values = {"status": status.value, "updated_at": utcnow()}
        if checked_at is not None:
            values["checked_at"] = checked_at
        async with translate_errors(self._session):
            result = await self._session.execute(
                update(ConsultationRow)
                .where(ConsultationRow.consultation_id == consultation_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            return None
        return await self.get(consultation_id)


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.events = SqlAlchemyEventRepository(session)
        self.registrations = SqlAlchemyRegistrationRepository(session)
        self.checkins = SqlAlchemyCheckinRepository(session)
        self.admins = SqlAlchemyAdminRepository(session)
        self.consultations = SqlAlchemyConsultationRepository(session)

    async def commit(self) -> None:
        async with translate_errors(self.session):
            await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
