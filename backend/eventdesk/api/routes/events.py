"""
Event endpoints. Reads are public; create, update and delete need an admin token.
"""

from fastapi import APIRouter, Depends, status

from eventdesk.api.deps import get_catalog
from eventdesk.core.logging import get_logger
from eventdesk.core.security import get_current_admin
from eventdesk.schemas.event import (
    EventCreate,
    EventDetailEnvelope,
    EventDetailResponse,
    EventEnvelope,
    EventListEnvelope,
    EventResponse,
    EventSummaryResponse,
    EventUpdate,
)
from eventdesk.services.event_service import EventCatalog

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=EventListEnvelope)
async def list_events_endpoint(catalog: EventCatalog = Depends(get_catalog)):
    """Active events by date, with registration and check-in counts."""
    summaries = await catalog.list_events()
    data = [EventSummaryResponse.from_summary(summary) for summary in summaries]
    return EventListEnvelope(data=data, count=len(data))


@router.get("/{event_id}", response_model=EventDetailEnvelope)
async def get_event_endpoint(event_id: str, catalog: EventCatalog = Depends(get_catalog)):
    """Single event with per-tier booked and remaining seats. Not cached (live counts)."""
    detail = await catalog.get_detail(event_id)
    return EventDetailEnvelope(data=EventDetailResponse.from_detail(detail))


@router.post("", response_model=EventEnvelope, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    admin: str = Depends(get_current_admin),
    catalog: EventCatalog = Depends(get_catalog),
):
    event = await catalog.create(
        name=event_data.name,
        date=event_data.date,
        time=event_data.time,
        venue=event_data.venue,
        description=event_data.description,
        image_url=event_data.image_url or "",
        max_capacity=event_data.max_capacity,
        ticket_tiers=event_data.ticket_tiers,
    )
    logger.info("event_created_by_admin", event_id=event.event_id, admin=admin)
    return EventEnvelope(data=EventResponse.model_validate(event), message="Event created successfully")


@router.put("/{event_id}", response_model=EventEnvelope)
async def update_event_endpoint(
    event_id: str,
    event_data: EventUpdate,
    admin: str = Depends(get_current_admin),
    catalog: EventCatalog = Depends(get_catalog),
):
    changes = event_data.model_dump(exclude_unset=True)
    event = await catalog.update(event_id, changes)
    return EventEnvelope(data=EventResponse.model_validate(event), message="Event updated successfully")


@router.delete("/{event_id}", response_model=EventEnvelope)
async def delete_event_endpoint(
    event_id: str,
    admin: str = Depends(get_current_admin),
    catalog: EventCatalog = Depends(get_catalog),
):
    """Soft delete: the event disappears from listings and stops taking registrations."""
    event = await catalog.delete(event_id)
    return EventEnvelope(data=EventResponse.model_validate(event), message="Event deleted successfully")
