"""Store interfaces (repository pattern).

Services depend only on these. Stores return domain models and must be
swappable: the SQLAlchemy store backs the API, an in-memory store backs the
unit tests. Writes become durable on `UnitOfWork.commit()`.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from eventdesk.domain import (
    Admin,
    CheckinRecord,
    Consultation,
    ConsultationStatus,
    Event,
    Registration,
    RegistrationStatus,
)


class EventRepository(ABC):
    """Event catalog persistence."""

    @abstractmethod
    async def add(self, event: Event) -> Event:
        ...

    @abstractmethod
    async def get(self, event_id: str) -> Optional[Event]:
        """Return an event by public id, active or not, or None."""
        ...

    @abstractmethod
    async def list_events(self, active_only: bool = True) -> list[Event]:
        """Return events ordered by date ascending."""
        ...

    @abstractmethod
    async def update(self, event: Event) -> Event:
        """Replace the stored event, ticket tiers included."""
        ...


class RegistrationRepository(ABC):
    """Registration ledger persistence. Counts never include cancelled rows."""

    @abstractmethod
    async def add(self, registration: Registration) -> Registration:
        """Insert a registration.

        Raises:
            StoreConflict: the registration id or the live (event, email)
                pair already exists.
        """
        ...

    @abstractmethod
    async def get(self, registration_id: str) -> Optional[Registration]:
        ...

    @abstractmethod
    async def get_for_event(self, registration_id: str, event_id: str) -> Optional[Registration]:
        """Fetch by the composite (registration, event) key."""
        ...

    @abstractmethod
    async def exists(self, registration_id: str) -> bool:
        ...

    @abstractmethod
    async def find_live_by_email(self, event_id: str, email: str) -> Optional[Registration]:
        """Return the non-cancelled registration for (event, email), if any."""
        ...

    @abstractmethod
    async def count(
        self,
        event_id: str,
        tier: Optional[str] = None,
        checked_in: Optional[bool] = None,
        registration_type: Optional[str] = None,
    ) -> int:
        ...

    @abstractmethod
    async def count_by_tier(self, event_id: str) -> dict[str, int]:
        ...

    @abstractmethod
    async def list_for_event(self, event_id: str, limit: Optional[int] = None) -> list[Registration]:
        """Newest first."""
        ...

    @abstractmethod
    async def list_by_email(self, email: str) -> list[Registration]:
        """Newest first."""
        ...

    @abstractmethod
    async def list_all(self) -> list[Registration]:
        """Newest first."""
        ...

    @abstractmethod
    async def set_status(
        self, registration_id: str, status: RegistrationStatus
    ) -> Optional[Registration]:
        """Change the status of a registration that is not checked in.

        Returns None when the registration is checked in at write time.
        """
        ...


class CheckinRepository(ABC):
    """Check-in audit trail. Sole writer of the registration checked-in fields."""

    @abstractmethod
    async def record_checkin(self, record: CheckinRecord) -> bool:
        """Flip the registration to checked-in and append the record, atomically.

        Must behave as one conditional write: the registration is updated
        only if it is not already checked in (and not cancelled), and the
        record is inserted only when that update happened. Returns False,
        with nothing written, when the condition did not hold.
        """
        ...

    @abstractmethod
    async def get_for_registration(self, registration_id: str) -> Optional[CheckinRecord]:
        ...

    @abstractmethod
    async def list_for_event(
        self,
        event_id: str,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
    ) -> list[CheckinRecord]:
        """Most recent first."""
        ...


class AdminRepository(ABC):
    @abstractmethod
    async def get(self, username: str) -> Optional[Admin]:
        ...

    @abstractmethod
    async def add(self, admin: Admin) -> Admin:
        ...


class ConsultationRepository(ABC):
    """Consultation request queue. Listings are newest first."""

    @abstractmethod
    async def add(self, consultation: Consultation) -> Consultation:
        ...

    @abstractmethod
    async def get(self, consultation_id: str) -> Optional[Consultation]:
        ...

    @abstractmethod
    async def list_consultations(
        self, status: Optional[ConsultationStatus] = None
    ) -> list[Consultation]:
        ...

    @abstractmethod
    async def search_by_email(self, fragment: str) -> list[Consultation]:
        """Case-insensitive substring match on the email address."""
        ...

    @abstractmethod
    async def set_status(
        self,
        consultation_id: str,
        status: ConsultationStatus,
        checked_at: Optional[datetime] = None,
    ) -> Optional[Consultation]:
        """Change the status, stamping checked_at when one is given.

        Returns None when the consultation does not exist.
        """
        ...


class UnitOfWork(ABC):
    """Groups the repositories over one store transaction."""

    events: EventRepository
    registrations: RegistrationRepository
    checkins: CheckinRepository
    admins: AdminRepository
    consultations: ConsultationRepository

    @abstractmethod
    async def commit(self) -> None:
        """Make pending writes durable.

        Raises:
            StoreConflict: a uniqueness constraint rejected the writes.
            StoreUnavailable: the store could not be reached.
        """
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...
