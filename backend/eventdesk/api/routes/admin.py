"""
Admin dashboard and exports. Every route here needs an admin bearer token.
"""

from fastapi import APIRouter, Depends

from eventdesk.api.deps import get_dashboard
from eventdesk.core.security import get_current_admin
from eventdesk.schemas.dashboard import DashboardResponse, ExportResponse
from eventdesk.services.dashboard_service import DashboardAggregator

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/dashboard/{event_id}", response_model=DashboardResponse)
async def event_dashboard(event_id: str, aggregator: DashboardAggregator = Depends(get_dashboard)):
    return DashboardResponse.from_dashboard(await aggregator.dashboard(event_id))


@router.get("/export/registrations/{event_id}", response_model=ExportResponse)
async def export_registrations(event_id: str, aggregator: DashboardAggregator = Depends(get_dashboard)):
    return ExportResponse(**await aggregator.export_registrations(event_id))


@router.get("/export/checkins/{event_id}", response_model=ExportResponse)
async def export_checkins(event_id: str, aggregator: DashboardAggregator = Depends(get_dashboard)):
    return ExportResponse(**await aggregator.export_checkins(event_id))
