"""
Event catalog: event metadata and ticket tiers.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

from eventdesk.core.config import get_settings
from eventdesk.core.exceptions import EventNotFound, InvalidInput
from eventdesk.core.logging import get_logger
from eventdesk.db.base import utcnow
from eventdesk.domain import Event, TicketTier
from eventdesk.repositories.interfaces import UnitOfWork
from eventdesk.services.seat_allocator import SeatAllocator, resolve_tier

logger = get_logger(__name__)

UPDATABLE_FIELDS = (
    "name",
    "date",
    "time",
    "venue",
    "description",
    "image_url",
    "is_active",
    "max_capacity",
)


@dataclass(frozen=True)
class TierAvailability:
    name: str
    price: Decimal
    seats: int
    booked: int

    @property
    def remaining(self) -> int:
        return max(self.seats - self.booked, 0)


@dataclass(frozen=True)
class EventSummary:
    event: Event
    registration_count: int
    checked_in_count: int


@dataclass(frozen=True)
class EventDetail:
    event: Event
    registration_count: int
    checked_in_count: int
    tiers: list[TierAvailability]


def build_tiers(tiers: Optional[Sequence[Any]]) -> tuple[TicketTier, ...]:
    """
    Turn tier input into TicketTiers, rejecting duplicate names.

    Accepts TicketTier instances or mappings / objects with name, price, seats.
    """
    built = []
    seen = set()
    for tier in tiers or ():
        if isinstance(tier, TicketTier):
            name, price, seats = tier.name, tier.price, tier.seats
        elif isinstance(tier, dict):
            name, price, seats = tier.get("name"), tier.get("price", 0), tier.get("seats", 0)
        else:
            name, price, seats = tier.name, tier.price, tier.seats

        name = (name or "").strip()
        if not name:
            raise InvalidInput("Ticket tier name is required")
        if name.lower() in seen:
            raise InvalidInput(f"Duplicate ticket tier: {name}", tier=name)
        seen.add(name.lower())

        try:
            built.append(TicketTier(name=name, price=Decimal(str(price)), seats=int(seats)))
        except ValueError as e:
            raise InvalidInput(str(e), tier=name)
    return tuple(built)


class EventCatalog:
    def __init__(self, uow: UnitOfWork, allocator: Optional[SeatAllocator] = None) -> None:
        self._uow = uow
        self._allocator = allocator

    async def create(
        self,
        name: str,
        date: datetime,
        venue: str,
        description: str,
        time: str = "",
        image_url: str = "",
        max_capacity: Optional[int] = None,
        ticket_tiers: Optional[Sequence[Any]] = None,
    ) -> Event:
        if max_capacity is not None and max_capacity < 0:
            raise InvalidInput("Capacity cannot be negative")
        now = utcnow()
        event = Event(
            event_id=str(uuid.uuid4()),
            name=name.strip(),
            date=date,
            time=time or "",
            venue=venue.strip(),
            description=description,
            image_url=image_url or "",
            is_active=True,
            max_capacity=max_capacity if max_capacity is not None else get_settings().DEFAULT_EVENT_CAPACITY,
            ticket_tiers=build_tiers(ticket_tiers),
            created_at=now,
            updated_at=now,
        )
        event = await self._uow.events.add(event)
        await self._uow.commit()
        logger.info(
            "event_created",
            event_id=event.event_id,
            name=event.name,
            tiers=[tier.name for tier in event.ticket_tiers],
        )
        return event

    async def get(self, event_id: str) -> Event:
        event = await self._uow.events.get(event_id)
        if event is None:
            raise EventNotFound(event_id)
        return event

    async def list_events(self) -> list[EventSummary]:
        """Active events by date, each with its live and checked-in counts."""
        summaries = []
        for event in await self._uow.events.list_events(active_only=True):
            summaries.append(
                EventSummary(
                    event=event,
                    registration_count=await self._uow.registrations.count(event.event_id),
                    checked_in_count=await self._uow.registrations.count(event.event_id, checked_in=True),
                )
            )
        return summaries

    async def get_detail(self, event_id: str) -> EventDetail:
        event = await self.get(event_id)
        booked_by_tier = {
            name.lower(): count
            for name, count in (await self._uow.registrations.count_by_tier(event_id)).items()
        }
        tiers = event.ticket_tiers or (resolve_tier(event, None),)
        return EventDetail(
            event=event,
            registration_count=await self._uow.registrations.count(event_id),
            checked_in_count=await self._uow.registrations.count(event_id, checked_in=True),
            tiers=[
                TierAvailability(
                    name=tier.name,
                    price=tier.price,
                    seats=tier.seats,
                    booked=booked_by_tier.get(tier.name.lower(), 0),
                )
                for tier in tiers
            ],
        )

    async def update(self, event_id: str, changes: dict[str, Any]) -> Event:
        """
        Apply a partial update. `ticket_tiers`, when present, replaces the
        tier list wholesale; the seat gate is re-synced afterwards.
        """
        current = await self.get(event_id)

        fields = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS and value is not None}
        if "max_capacity" in fields and fields["max_capacity"] < 0:
            raise InvalidInput("Capacity cannot be negative")
        if changes.get("ticket_tiers") is not None:
            fields["ticket_tiers"] = build_tiers(changes["ticket_tiers"])

        event = await self._uow.events.update(replace(current, updated_at=utcnow(), **fields))
        await self._uow.commit()

        if self._allocator is not None and "ticket_tiers" in fields:
            await self._allocator.sync_event(event)

        logger.info("event_updated", event_id=event_id, fields=sorted(fields))
        return event

    async def delete(self, event_id: str) -> Event:
        """Soft delete: the event stops accepting registrations but keeps its history."""
        current = await self.get(event_id)
        event = await self._uow.events.update(replace(current, is_active=False, updated_at=utcnow()))
        await self._uow.commit()
        logger.info("event_deactivated", event_id=event_id)
        return event
