"""
Per-request wiring: one unit of work over the request session, services
built on top of it. The notification broker and the admission gate are
process-wide.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.db.session import get_db
from eventdesk.repositories.interfaces import UnitOfWork
from eventdesk.repositories.sqlalchemy_store import SqlAlchemyUnitOfWork
from eventdesk.services.checkin_service import CheckinEngine
from eventdesk.services.consultation_service import ConsultationDesk
from eventdesk.services.dashboard_service import DashboardAggregator
from eventdesk.services.email_service import ConfirmationMailer
from eventdesk.services.event_service import EventCatalog
from eventdesk.services.interfaces.admission import AdmissionStrategy
from eventdesk.services.notification_service import NotificationBroker, get_broker
from eventdesk.services.registration_service import RegistrationLedger
from eventdesk.services.seat_allocator import SeatAllocator
from eventdesk.services.strategy_factory import get_admission


def get_uow(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    return SqlAlchemyUnitOfWork(db)


def get_mailer() -> ConfirmationMailer:
    return ConfirmationMailer()


def get_allocator(
    uow: UnitOfWork = Depends(get_uow),
    admission: AdmissionStrategy = Depends(get_admission),
) -> SeatAllocator:
    return SeatAllocator(uow, admission)


def get_catalog(
    uow: UnitOfWork = Depends(get_uow),
    allocator: SeatAllocator = Depends(get_allocator),
) -> EventCatalog:
    return EventCatalog(uow, allocator)


def get_ledger(
    uow: UnitOfWork = Depends(get_uow),
    allocator: SeatAllocator = Depends(get_allocator),
    broker: NotificationBroker = Depends(get_broker),
    mailer: ConfirmationMailer = Depends(get_mailer),
) -> RegistrationLedger:
    return RegistrationLedger(uow, allocator, broker, mailer)


def get_checkin_engine(
    uow: UnitOfWork = Depends(get_uow),
    broker: NotificationBroker = Depends(get_broker),
) -> CheckinEngine:
    return CheckinEngine(uow, broker)


def get_dashboard(uow: UnitOfWork = Depends(get_uow)) -> DashboardAggregator:
    return DashboardAggregator(uow)


def get_consultation_desk(uow: UnitOfWork = Depends(get_uow)) -> ConsultationDesk:
    return ConsultationDesk(uow)
