"""
Consultation desk endpoints.

Submitting is public; the queue, the search and status changes expose
contact details and need an admin bearer token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from eventdesk.api.deps import get_consultation_desk
from eventdesk.core.security import get_current_admin
from eventdesk.domain import ConsultationStatus
from eventdesk.schemas.consultation import (
    ConsultationCreate,
    ConsultationCreated,
    ConsultationResponse,
    ConsultationStatusUpdate,
)
from eventdesk.services.consultation_service import ConsultationDesk, ConsultationRequest

router = APIRouter(prefix="/consultations", tags=["Consultations"])


@router.post("", response_model=ConsultationCreated, status_code=status.HTTP_201_CREATED)
async def submit_consultation(
    data: ConsultationCreate,
    desk: ConsultationDesk = Depends(get_consultation_desk),
):
    consultation = await desk.submit(
        ConsultationRequest(
            company=data.company,
            contact=data.contact,
            email=data.email,
            phone=data.phone,
            requirements=data.requirements,
        )
    )
    return ConsultationCreated(consultation=ConsultationResponse.model_validate(consultation))


@router.get("", response_model=list[ConsultationResponse], dependencies=[Depends(get_current_admin)])
async def list_consultations(
    status_filter: Optional[ConsultationStatus] = Query(None, alias="status"),
    desk: ConsultationDesk = Depends(get_consultation_desk),
):
    return await desk.list_consultations(status_filter)


@router.get("/search", response_model=list[ConsultationResponse], dependencies=[Depends(get_current_admin)])
async def search_consultations(
    email: str = Query("", max_length=255),
    desk: ConsultationDesk = Depends(get_consultation_desk),
):
    return await desk.search(email)


@router.patch(
    "/{consultation_id}/status",
    response_model=ConsultationResponse,
    dependencies=[Depends(get_current_admin)],
)
async def update_consultation_status(
    consultation_id: str,
    data: ConsultationStatusUpdate,
    desk: ConsultationDesk = Depends(get_consultation_desk),
):
    return await desk.update_status(consultation_id, data.status)
