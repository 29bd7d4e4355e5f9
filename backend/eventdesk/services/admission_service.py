"""
Redis admission gate for high-contention registrations.
Implements AdmissionStrategy with an atomic Lua increment-if-below-capacity.

Circuit Breaker Pattern:
  On Redis failure, the gate "fails open" (admits the request without
  holding a seat). This prevents Redis outages from blocking all registrations.
  The allocator's store count still runs first, so behaviour degrades to
  the optimistic count-then-admit baseline rather than to no check at all.

  A tier that failed open (or whose release was lost) is marked stale: its
  counter no longer matches the store, so the next admission that reaches
  Redis re-seeds the reserved count from the store before taking a seat.
"""

import os
from typing import Optional

import redis.asyncio as redis

from eventdesk.core.logging import get_logger
from eventdesk.core.metrics import redis_circuit_breaker_open, redis_connection_errors
from eventdesk.infrastructure.redis_client import get_redis
from eventdesk.services.interfaces.admission import AdmissionStrategy, GateDecision

logger = get_logger(__name__)

SCRIPT_DIR = os.path.join(os.path.dirname(__file__), '../infrastructure')


def _load_script(name: str) -> str:
    with open(os.path.join(SCRIPT_DIR, name), 'r') as f:
        return f.read()


ADMISSION_SCRIPT = _load_script('admission.lua')
RELEASE_SCRIPT = _load_script('release.lua')

NOT_SEEDED = -1


def _keys(event_id: str, tier: str) -> tuple[str, str]:
    tier_key = tier.lower()
    return f"seats:{event_id}:{tier_key}", f"reserved:{event_id}:{tier_key}"


class RedisAdmission(AdmissionStrategy):
    """
    Redis-based admission gate.

    Strategy: the counter in Redis is taken with one atomic script per
    attempt, so concurrent registrations for the last seat cannot both pass.
    Releases run as a script too: they only touch a seeded tier and never
    take the counter below zero.

    Use when:
    - Many concurrent registrations per tier (ticket drops, kiosks at doors)
    - Overselling is not acceptable even by one seat
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        self._client = client
        self._admit_script = None
        self._release_script = None
        self._stale: set[tuple[str, str]] = set()

    async def _redis(self) -> Optional[redis.Redis]:
        if self._client is None:
            self._client = await get_redis()
        if self._client is not None and self._admit_script is None:
            self._admit_script = self._client.register_script(ADMISSION_SCRIPT)
            self._release_script = self._client.register_script(RELEASE_SCRIPT)
        return self._client

    def _trip(self, operation: str, event_id: str, tier: str, error: Optional[Exception] = None) -> None:
        self._stale.add((event_id, tier.lower()))
        redis_connection_errors.inc()
        redis_circuit_breaker_open.set(1)
        logger.warning(
            "admission_gate_unavailable",
            operation=operation,
            event_id=event_id,
            tier=tier,
            error=str(error) if error else "redis disabled",
        )

    def is_stale(self, event_id: str, tier: str) -> bool:
        return (event_id, tier.lower()) in self._stale

    async def admit(
        self, event_id: str, tier: str, units: int, capacity: int, booked: int
    ) -> GateDecision:
        seats_key, reserved_key = _keys(event_id, tier)
        try:
            client = await self._redis()
            if client is None:
                self._trip("admit", event_id, tier)
                return GateDecision.OPEN

            if self.is_stale(event_id, tier):
                await client.set(seats_key, capacity)
                await client.set(reserved_key, booked)
                self._stale.discard((event_id, tier.lower()))
                logger.info("admission_gate_reseeded", event_id=event_id, tier=tier, booked=booked)

            result = await self._admit_script(keys=[seats_key, reserved_key], args=[units])
            if int(result) == NOT_SEEDED:
                # First sight of this tier: seed from the store without
                # clobbering a concurrent seeder
                await client.set(seats_key, capacity, nx=True)
                await client.set(reserved_key, booked, nx=True)
                result = await self._admit_script(keys=[seats_key, reserved_key], args=[units])

            redis_circuit_breaker_open.set(0)
            return GateDecision.HELD if int(result) == 1 else GateDecision.FULL
        except Exception as e:
            # Circuit breaker: on Redis failure, fail open
            self._trip("admit", event_id, tier, e)
            return GateDecision.OPEN

    async def release(self, event_id: str, tier: str, units: int = 1):
        """Give reserved seats back (held admission not written, or cancelled)."""
        seats_key, reserved_key = _keys(event_id, tier)
        try:
            client = await self._redis()
            if client is None:
                self._trip("release", event_id, tier)
                return
            await self._release_script(keys=[seats_key, reserved_key], args=[units])
        except Exception as e:
            self._trip("release", event_id, tier, e)  # Best effort

    async def sync(self, event_id: str, tier: str, capacity: int, booked: int):
        """Reset the gate from the store (reconciliation after event updates)."""
        seats_key, reserved_key = _keys(event_id, tier)
        try:
            client = await self._redis()
            if client is None:
                self._trip("sync", event_id, tier)
                return
            await client.set(seats_key, capacity)
            await client.set(reserved_key, booked)
            self._stale.discard((event_id, tier.lower()))
        except Exception as e:
            self._trip("sync", event_id, tier, e)  # Best effort
