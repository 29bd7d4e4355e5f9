"""
Registration endpoints.

POST returns 201 for a new registration and 200 with `duplicate: true` and
the existing registration when the email is already registered for the
event, so kiosks can retry safely.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from eventdesk.api.deps import get_ledger
from eventdesk.core.exceptions import DuplicateRegistration
from eventdesk.core.security import get_current_admin
from eventdesk.domain import Registration
from eventdesk.schemas.registration import (
    RegistrationCreate,
    RegistrationCreated,
    RegistrationResponse,
    StatusUpdate,
)
from eventdesk.services.qr_service import data_url, registration_png
from eventdesk.services.registration_service import Attendee, RegistrationLedger

router = APIRouter(prefix="/registrations", tags=["Registrations"])


def _created(registration: Registration, message: str, duplicate: bool = False) -> RegistrationCreated:
    return RegistrationCreated(
        message=message,
        duplicate=duplicate,
        registration=RegistrationResponse.model_validate(registration),
        qr_code=data_url(registration),
    )


@router.post("", response_model=RegistrationCreated, status_code=status.HTTP_201_CREATED)
async def create_registration(
    data: RegistrationCreate,
    response: Response,
    ledger: RegistrationLedger = Depends(get_ledger),
):
    attendee = Attendee(
        name=data.name,
        email=str(data.email),
        phone=data.phone,
        organization=data.organization or "",
        designation=data.designation or "",
    )
    try:
        registration = await ledger.register(
            data.event_id,
            attendee,
            tier_name=data.ticket_tier,
            registration_type=data.registration_type,
            price=data.ticket_price,
        )
    except DuplicateRegistration as e:
        response.status_code = status.HTTP_200_OK
        return _created(e.existing, "Already registered for this event", duplicate=True)

    return _created(registration, "Registration created successfully!")


@router.get("", response_model=list[RegistrationResponse])
async def list_registrations(ledger: RegistrationLedger = Depends(get_ledger)):
    return await ledger.list_all()


@router.get("/search", response_model=list[RegistrationResponse])
async def search_registrations(
    email: str = Query(..., min_length=1, max_length=255),
    ledger: RegistrationLedger = Depends(get_ledger),
):
    return await ledger.search(email)


@router.get("/user/{email}", response_model=list[RegistrationResponse])
async def list_user_registrations(email: str, ledger: RegistrationLedger = Depends(get_ledger)):
    return await ledger.search(email)


@router.get("/event/{event_id}", response_model=list[RegistrationResponse])
async def list_event_registrations(event_id: str, ledger: RegistrationLedger = Depends(get_ledger)):
    return await ledger.list_for_event(event_id)


@router.get("/{registration_id}", response_model=RegistrationResponse)
async def get_registration(registration_id: str, ledger: RegistrationLedger = Depends(get_ledger)):
    return await ledger.get(registration_id)


@router.get("/{registration_id}/qr", response_class=Response)
async def get_registration_qr(registration_id: str, ledger: RegistrationLedger = Depends(get_ledger)):
    registration = await ledger.get(registration_id)
    return Response(content=registration_png(registration), media_type="image/png")


@router.patch("/{registration_id}/status", response_model=RegistrationResponse)
async def update_registration_status(
    registration_id: str,
    data: StatusUpdate,
    admin: str = Depends(get_current_admin),
    ledger: RegistrationLedger = Depends(get_ledger),
):
    return await ledger.update_status(registration_id, data.status)
