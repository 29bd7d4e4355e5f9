"""
Seat allocator: per-tier availability and admission.

CONCURRENCY STRATEGY: Count-then-admit, optional atomic gate
=============================================================

`reserve` counts the live registrations for (event, tier) and admits the
request when `count + units <= seats`. It is a check, not a lock: the
registration insert is what consumes the seat, so two requests that read
the same count can both be admitted and oversubscribe the tier by up to
(racers - 1) seats.

`admit` puts an admission through the configured AdmissionStrategy:
  - OptimisticAdmission keeps the baseline above unchanged
  - RedisAdmission takes the seat with an atomic increment-if-below-capacity,
    closing the race for as long as Redis is reachable

Tier seat counts are fixed on the event; nothing here mutates them.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from eventdesk.core.exceptions import (
    EventInactive,
    EventNotFound,
    InvalidInput,
    PriceMismatch,
    SeatsExhausted,
    UnknownTier,
)
from eventdesk.core.logging import get_logger
from eventdesk.core.metrics import record_admission
from eventdesk.domain import Event, TicketTier
from eventdesk.repositories.interfaces import UnitOfWork
from eventdesk.services.interfaces.admission import AdmissionStrategy, GateDecision

logger = get_logger(__name__)

GENERAL_TIER = "general"


@dataclass(frozen=True)
class Admission:
    event_id: str
    tier_name: str
    units: int
    unit_price: Decimal
    total_amount: Decimal
    capacity: int
    booked: int
    held: bool = False
    event: Optional[Event] = field(default=None, compare=False, repr=False)

    @property
    def remaining(self) -> int:
        """Seats left after this admission, as seen by the count."""
        return max(self.capacity - self.booked - self.units, 0)


def resolve_tier(event: Event, tier_name: Optional[str]) -> TicketTier:
    """
    Pick the tier a request refers to.

    An omitted tier means the event's first tier. An event without tiers
    sells a single implicit free tier bounded by its overall capacity.
    """
    if not event.ticket_tiers:
        if tier_name and tier_name.strip().lower() != GENERAL_TIER:
            raise UnknownTier(tier_name)
        return TicketTier(name=GENERAL_TIER, price=Decimal("0"), seats=event.max_capacity)

    if not tier_name:
        return event.ticket_tiers[0]

    tier = event.find_tier(tier_name)
    if tier is None:
        raise UnknownTier(tier_name)
    return tier


class SeatAllocator:
    """Admits or rejects registration requests against tier capacity."""

    def __init__(self, uow: UnitOfWork, admission: AdmissionStrategy) -> None:
        self._uow = uow
        self._admission = admission

    async def reserve(
        self,
        event_id: str,
        tier_name: Optional[str] = None,
        requested_units: int = 1,
        price: Optional[Decimal] = None,
    ) -> Admission:
        """
        Validate a request against the event and count the tier's bookings.

        Raises:
            InvalidInput: requested_units below 1.
            EventNotFound / EventInactive: unknown or soft-deleted event.
            UnknownTier: no tier with that name (case-insensitive).
            PriceMismatch: caller's price disagrees with the tier price.
            SeatsExhausted: count + units exceeds the tier's seats.
        """
        if requested_units < 1:
            raise InvalidInput("Requested units must be at least 1", requested_units=requested_units)

        event = await self._uow.events.get(event_id)
        if event is None:
            raise EventNotFound(event_id)
        if not event.is_active:
            raise EventInactive(event_id)

        tier = resolve_tier(event, tier_name)

        if price is not None and Decimal(str(price)) != tier.price:
            raise PriceMismatch(tier.name, tier.price, price)

        booked = await self._uow.registrations.count(event_id, tier=tier.name)
        if booked + requested_units > tier.seats:
            remaining = max(tier.seats - booked, 0)
            record_admission("exhausted")
            logger.warning(
                "seats_exhausted",
                event_id=event_id,
                tier=tier.name,
                requested=requested_units,
                remaining=remaining,
            )
            raise SeatsExhausted(tier.name, remaining)

        record_admission("admitted")
        return Admission(
            event_id=event_id,
            tier_name=tier.name,
            units=requested_units,
            unit_price=tier.price,
            total_amount=tier.price * requested_units,
            capacity=tier.seats,
            booked=booked,
            event=event,
        )

    async def admit(self, admission: Admission) -> Admission:
        """
        Pass an admission through the gate before the registration write.

        Returns the admission marked `held` when the gate counted its seats.

        Raises:
            SeatsExhausted: the gate has no room left for the tier.
        """
        decision = await self._admission.admit(
            admission.event_id,
            admission.tier_name,
            admission.units,
            admission.capacity,
            admission.booked,
        )
        if not decision.admitted:
            record_admission("gate_rejected")
            logger.warning(
                "admission_gate_rejected",
                event_id=admission.event_id,
                tier=admission.tier_name,
            )
            raise SeatsExhausted(admission.tier_name, 0)
        return replace(admission, held=decision is GateDecision.HELD)

    async def abandon(self, admission: Admission) -> None:
        """Give back an admission whose registration was never written."""
        if admission.held:
            await self._admission.release(admission.event_id, admission.tier_name, admission.units)

    async def release(self, event_id: str, tier_name: str, units: int = 1) -> None:
        """Give back the seat of a cancelled registration."""
        await self._admission.release(event_id, tier_name, units)

    async def sync_event(self, event: Event) -> None:
        """Re-seed the gate for every tier after the event's tiers changed."""
        for tier in event.ticket_tiers:
            booked = await self._uow.registrations.count(event.event_id, tier=tier.name)
            await self._admission.sync(event.event_id, tier.name, tier.seats, booked)
