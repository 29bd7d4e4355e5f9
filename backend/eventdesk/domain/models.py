"""Domain models returned by the stores.

Plain frozen dataclasses: services and the in-memory store work with these,
the SQLAlchemy store converts its rows into them. Mutations go through
`dataclasses.replace` and a store write.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    CHECKED_IN = "checked_in"


class RegistrationType(str, Enum):
    ONLINE = "online"
    KIOSK = "kiosk"


@dataclass(frozen=True)
class TicketTier:
    name: str
    price: Decimal
    seats: int

    def __post_init__(self) -> None:
        if self.seats < 0:
            raise ValueError("Tier seats cannot be negative")
        if self.price < 0:
            raise ValueError("Tier price cannot be negative")


@dataclass(frozen=True)
class Event:
    event_id: str
    name: str
    date: datetime
    venue: str
    description: str
    time: str = ""
    image_url: str = ""
    is_active: bool = True
    max_capacity: int = 1000
    ticket_tiers: tuple[TicketTier, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_tier(self, name: str) -> Optional[TicketTier]:
        """Tier lookup is case-insensitive, as tier names are unique ignoring case."""
        wanted = name.strip().lower()
        for tier in self.ticket_tiers:
            if tier.name.lower() == wanted:
                return tier
        return None


@dataclass(frozen=True)
class Registration:
    registration_id: str
    event_id: str
    name: str
    email: str
    phone: str
    ticket_tier: str
    ticket_price: Decimal
    qr_payload: str
    registration_type: RegistrationType = RegistrationType.ONLINE
    organization: str = ""
    designation: str = ""
    status: RegistrationStatus = RegistrationStatus.CONFIRMED
    is_checked_in: bool = False
    checked_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def checkin_token(self) -> str:
        """Compact form printed on badges: `registrationId|eventId`."""
        return f"{self.registration_id}|{self.event_id}"


@dataclass(frozen=True)
class CheckinRecord:
    checkin_id: str
    registration_id: str
    event_id: str
    checked_in_at: datetime
    checked_in_by: str = "system"


@dataclass(frozen=True)
class Admin:
    username: str
    hashed_password: str
    is_active: bool = True


class ConsultationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CHECKED_IN = "checked_in"


@dataclass(frozen=True)
class Consultation:
    """A company's request for a consultation slot at the event venue."""

    consultation_id: str
    company: str
    contact: str
    email: str
    phone: str
    requirements: str
    status: ConsultationStatus = ConsultationStatus.PENDING
    checked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
