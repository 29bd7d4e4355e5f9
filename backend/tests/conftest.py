"""
Pytest fixtures for the in-memory store, the SQL store, the HTTP client and
admin authentication.

Service tests run against the in-memory unit of work in tests/fakes.py.
Store and API tests run against SQLite (aiosqlite) with one shared
connection, tables created and dropped per test for isolation.
"""

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from eventdesk.main import app
from eventdesk.api.deps import get_mailer
from eventdesk.db.base import Base
from eventdesk.db.session import get_db
from eventdesk.core.config import Settings
from eventdesk.core.security import create_access_token, hash_password
from eventdesk.domain import Admin, Event, TicketTier
from eventdesk.repositories.sqlalchemy_store import SqlAlchemyUnitOfWork
from eventdesk.services.checkin_service import CheckinEngine
from eventdesk.services.email_service import ConfirmationMailer
from eventdesk.services.event_service import EventCatalog
from eventdesk.services.notification_service import NotificationBroker, get_broker
from eventdesk.services.registration_service import RegistrationLedger
from eventdesk.services.seat_allocator import SeatAllocator
from eventdesk.services.strategy_factory import get_admission

from tests.fakes import FakeStore, FakeUnitOfWork, RecordingAdmission

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


def make_event(event_id: str = "evt-1", tiers=None, **overrides) -> Event:
    """Domain event two weeks out, gold (2 @ 500) and silver (5 @ 100) by default."""
    if tiers is None:
        tiers = (
            TicketTier(name="gold", price=Decimal("500"), seats=2),
            TicketTier(name="silver", price=Decimal("100"), seats=5),
        )
    fields = dict(
        event_id=event_id,
        name="Tech Summit",
        date=datetime.now(timezone.utc) + timedelta(days=14),
        time="10:00 AM",
        venue="Convention Hall",
        description="Annual summit",
        ticket_tiers=tuple(tiers),
    )
    fields.update(overrides)
    return Event(**fields)


# ---- In-memory store ----

@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def uow(store: FakeStore) -> FakeUnitOfWork:
    return store.uow()


@pytest.fixture
def admission() -> RecordingAdmission:
    return RecordingAdmission()


@pytest.fixture
def broker() -> NotificationBroker:
    return NotificationBroker(queue_size=10)


@pytest.fixture
def allocator(uow: FakeUnitOfWork, admission: RecordingAdmission) -> SeatAllocator:
    return SeatAllocator(uow, admission)


@pytest.fixture
def ledger(uow: FakeUnitOfWork, allocator: SeatAllocator, broker: NotificationBroker) -> RegistrationLedger:
    return RegistrationLedger(uow, allocator, broker)


@pytest.fixture
def engine(uow: FakeUnitOfWork, broker: NotificationBroker) -> CheckinEngine:
    return CheckinEngine(uow, broker)


@pytest.fixture
def catalog(uow: FakeUnitOfWork, allocator: SeatAllocator) -> EventCatalog:
    return EventCatalog(uow, allocator)


@pytest_asyncio.fixture
async def event(store: FakeStore) -> Event:
    """Active event with gold (2 seats @ 500) and silver (5 seats @ 100)."""
    event = make_event()
    store.events[event.event_id] = event
    return event


# ---- SQL store ----

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def sql_uow(db_session: AsyncSession) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(db_session)


@pytest.fixture
def api_broker() -> NotificationBroker:
    return NotificationBroker(queue_size=10)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, api_broker: NotificationBroker) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_broker] = lambda: api_broker
    app.dependency_overrides[get_admission] = lambda: RecordingAdmission()
    app.dependency_overrides[get_mailer] = lambda: ConfirmationMailer(Settings(SMTP_HOST=""))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_admin(sql_uow: SqlAlchemyUnitOfWork) -> Admin:
    """Create an admin in the database."""
    admin = Admin(username="admin", hashed_password=hash_password("adminpassword123"))
    await sql_uow.admins.add(admin)
    await sql_uow.commit()
    return admin


@pytest_asyncio.fixture
async def admin_token(test_admin: Admin) -> str:
    """Generate a JWT token for the test admin."""
    return create_access_token(data={"sub": test_admin.username, "role": "admin"})


@pytest_asyncio.fixture
async def admin_headers(admin_token: str) -> dict:
    """Authorization headers with Bearer token."""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest_asyncio.fixture
async def test_event(sql_uow: SqlAlchemyUnitOfWork) -> Event:
    """Event stored in SQL with gold (2 @ 500) and silver (5 @ 100)."""
    event = await sql_uow.events.add(make_event())
    await sql_uow.commit()
    return event


@pytest_asyncio.fixture
async def inactive_event(sql_uow: SqlAlchemyUnitOfWork) -> Event:
    event = await sql_uow.events.add(make_event("evt-closed", is_active=False, name="Closed Meetup"))
    await sql_uow.commit()
    return event
