"""
Dashboard aggregator: read-only statistics over the ledger and the
check-in trail, plus the admin exports.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from eventdesk.core.exceptions import EventNotFound
from eventdesk.core.logging import get_logger
from eventdesk.domain import CheckinRecord, Event, Registration, RegistrationType
from eventdesk.repositories.interfaces import UnitOfWork

logger = get_logger(__name__)

RECENT_LIMIT = 10


@dataclass(frozen=True)
class Statistics:
    total_registrations: int
    total_checkins: int
    online_registrations: int
    kiosk_registrations: int
    by_tier: dict[str, int]
    attendance_rate: float


@dataclass(frozen=True)
class RecentCheckin:
    checkin: CheckinRecord
    registration: Optional[Registration]


@dataclass(frozen=True)
class Dashboard:
    event: Event
    statistics: Statistics
    recent_registrations: list[Registration]
    recent_checkins: list[RecentCheckin]
    hourly_checkins: list[dict[str, int]]


def attendance_rate(registrations: int, checkins: int) -> float:
    if registrations == 0:
        return 0.0
    return round(checkins / registrations * 100, 1)


def hourly_histogram(checkins: list[CheckinRecord]) -> list[dict[str, int]]:
    """Bucket check-ins by UTC hour, ascending, omitting empty hours."""
    counts = Counter(record.checked_in_at.astimezone(timezone.utc).hour for record in checkins)
    return [{"hour": hour, "count": counts[hour]} for hour in sorted(counts)]


def start_of_day(now: datetime) -> datetime:
    now = now.astimezone(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class DashboardAggregator:
    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def _event(self, event_id: str) -> Event:
        event = await self._uow.events.get(event_id)
        if event is None:
            raise EventNotFound(event_id)
        return event

    async def statistics(self, event_id: str) -> Statistics:
        registrations = self._uow.registrations
        total = await registrations.count(event_id)
        checked_in = await registrations.count(event_id, checked_in=True)
        return Statistics(
            total_registrations=total,
            total_checkins=checked_in,
            online_registrations=await registrations.count(
                event_id, registration_type=RegistrationType.ONLINE.value
            ),
            kiosk_registrations=await registrations.count(
                event_id, registration_type=RegistrationType.KIOSK.value
            ),
            by_tier=await registrations.count_by_tier(event_id),
            attendance_rate=attendance_rate(total, checked_in),
        )

    async def dashboard(self, event_id: str, now: Optional[datetime] = None) -> Dashboard:
        """
        Statistics, recent activity and today's hourly check-ins for an event.
        An event with no activity yields zeros and empty lists.
        """
        event = await self._event(event_id)
        now = now or datetime.now(timezone.utc)
        day_start = start_of_day(now)

        recent_checkins = []
        for record in await self._uow.checkins.list_for_event(event_id, limit=RECENT_LIMIT):
            recent_checkins.append(
                RecentCheckin(
                    checkin=record,
                    registration=await self._uow.registrations.get(record.registration_id),
                )
            )

        todays = await self._uow.checkins.list_for_event(event_id, since=day_start)
        todays = [record for record in todays if record.checked_in_at < day_start + timedelta(days=1)]

        return Dashboard(
            event=event,
            statistics=await self.statistics(event_id),
            recent_registrations=await self._uow.registrations.list_for_event(event_id, limit=RECENT_LIMIT),
            recent_checkins=recent_checkins,
            hourly_checkins=hourly_histogram(todays),
        )

    async def export_registrations(self, event_id: str) -> dict[str, Any]:
        event = await self._event(event_id)
        rows = [
            {
                "Registration ID": registration.registration_id,
                "Name": registration.name,
                "Email": registration.email,
                "Phone": registration.phone,
                "Registration Type": registration.registration_type.value,
                "Ticket Tier": registration.ticket_tier,
                "Status": registration.status.value,
                "Checked In": "Yes" if registration.is_checked_in else "No",
                "Registration Date": registration.created_at.isoformat() if registration.created_at else "",
            }
            for registration in await self._uow.registrations.list_for_event(event_id)
        ]
        logger.info("export_registrations", event_id=event_id, rows=len(rows))
        return {"event_name": event.name, "data": rows}

    async def export_checkins(self, event_id: str) -> dict[str, Any]:
        event = await self._event(event_id)
        rows = []
        for record in await self._uow.checkins.list_for_event(event_id):
            registration = await self._uow.registrations.get(record.registration_id)
            rows.append(
                {
                    "Check-in ID": record.checkin_id,
                    "Registration ID": record.registration_id,
                    "Name": registration.name if registration else "N/A",
                    "Email": registration.email if registration else "N/A",
                    "Phone": registration.phone if registration else "N/A",
                    "Check-in Time": record.checked_in_at.isoformat(),
                    "Checked In By": record.checked_in_by,
                }
            )
        logger.info("export_checkins", event_id=event_id, rows=len(rows))
        return {"event_name": event.name, "data": rows}
