"""
Pydantic schemas for the admin dashboard and exports.
"""

from typing import Any, Optional

from eventdesk.schemas.base import CamelModel
from eventdesk.schemas.checkin import CheckinResponse
from eventdesk.schemas.event import EventResponse
from eventdesk.schemas.registration import RegistrationResponse
from eventdesk.services.dashboard_service import Dashboard


class StatisticsResponse(CamelModel):
    total_registrations: int
    total_checkins: int
    online_registrations: int
    kiosk_registrations: int
    by_tier: dict[str, int]
    attendance_rate: float


class RecentCheckinResponse(CheckinResponse):
    registration: Optional[RegistrationResponse] = None


class HourlyBucket(CamelModel):
    hour: int
    count: int


class DashboardResponse(CamelModel):
    event: EventResponse
    statistics: StatisticsResponse
    recent_registrations: list[RegistrationResponse]
    recent_checkins: list[RecentCheckinResponse]
    hourly_checkins: list[HourlyBucket]

    @classmethod
    def from_dashboard(cls, dashboard: Dashboard) -> "DashboardResponse":
        return cls(
            event=EventResponse.model_validate(dashboard.event),
            statistics=StatisticsResponse.model_validate(dashboard.statistics),
            recent_registrations=[
                RegistrationResponse.model_validate(registration)
                for registration in dashboard.recent_registrations
            ],
            recent_checkins=[
                RecentCheckinResponse(
                    **CheckinResponse.model_validate(item.checkin).model_dump(),
                    registration=(
                        RegistrationResponse.model_validate(item.registration)
                        if item.registration
                        else None
                    ),
                )
                for item in dashboard.recent_checkins
            ],
            hourly_checkins=[HourlyBucket(**bucket) for bucket in dashboard.hourly_checkins],
        )


class ExportResponse(CamelModel):
    event_name: str
    data: list[dict[str, Any]]
