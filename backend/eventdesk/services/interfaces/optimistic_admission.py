"""
Optimistic admission strategy - no gate.
The allocator's count-then-admit check is the only guard.
"""

from eventdesk.services.interfaces.admission import AdmissionStrategy, GateDecision


class OptimisticAdmission(AdmissionStrategy):
    """
    No admission gate - always admit.

    Two registrations racing for the last seat can both pass the count
    check; the tier may be oversubscribed by (racers - 1). Accepted for
    normal load; switch to RedisAdmission for flash registrations.
    """

    async def admit(
        self, event_id: str, tier: str, units: int, capacity: int, booked: int
    ) -> GateDecision:
        """Always admit - the count check already ran, nothing is held."""
        return GateDecision.OPEN

    async def release(self, event_id: str, tier: str, units: int = 1):
        """No-op - nothing held."""
        pass

    async def sync(self, event_id: str, tier: str, capacity: int, booked: int):
        """No-op - no state to sync."""
        pass
