"""
Seat admission gate interface.
Allows swapping between different concurrency control approaches for the
per-tier seat count.
"""

from abc import ABC, abstractmethod
from enum import Enum


class GateDecision(str, Enum):
    """
    Outcome of one admission attempt.

    HELD: the gate counted the seats; they must be released if the
        registration is never written.
    OPEN: admitted without the gate counting anything (no gate, or the
        gate failed open); there is nothing to release.
    FULL: rejected, the tier has no room left.
    """

    HELD = "held"
    OPEN = "open"
    FULL = "full"

    @property
    def admitted(self) -> bool:
        return self is not GateDecision.FULL


class AdmissionStrategy(ABC):
    """
    Interface for admission gates consulted after the seat allocator's count check.

    Implementations:
    - OptimisticAdmission: No gate, count-then-admit only (best effort under races)
    - RedisAdmission: Atomic increment-if-below-capacity per tier in Redis
    """

    @abstractmethod
    async def admit(
        self, event_id: str, tier: str, units: int, capacity: int, booked: int
    ) -> GateDecision:
        """
        Try to take `units` seats of a tier through the gate.

        Args:
            event_id: Event being registered for
            tier: Canonical tier name
            units: Seats requested
            capacity: Tier seat count, used to seed the gate lazily
            booked: Live registrations counted by the allocator, used to seed the gate

        Returns:
            HELD or OPEN if admitted (proceed to the registration write)
            FULL if rejected
        """
        pass

    @abstractmethod
    async def release(self, event_id: str, tier: str, units: int = 1):
        """
        Give seats back (held admission not written, or registration cancelled).
        """
        pass

    @abstractmethod
    async def sync(self, event_id: str, tier: str, capacity: int, booked: int):
        """
        Reset gate state from the store (reconciliation after event updates).
        """
        pass
