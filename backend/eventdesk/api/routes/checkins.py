"""
Check-in endpoint shared by door scanners and the manual desk.

Both payload shapes go through the same engine call, so a QR scan and a
manual entry for one attendee race on the same conditional write.
"""

from fastapi import APIRouter, Depends

from eventdesk.api.deps import get_checkin_engine
from eventdesk.core.exceptions import InvalidSelector
from eventdesk.schemas.checkin import CheckinResponse, CheckinVerify, CheckinVerifyResponse
from eventdesk.schemas.registration import RegistrationResponse
from eventdesk.services.checkin_service import CheckinEngine, ManualSelector, QrSelector

router = APIRouter(prefix="/checkins", tags=["Check-ins"])


@router.post("/verify", response_model=CheckinVerifyResponse)
async def verify_checkin(
    data: CheckinVerify,
    engine: CheckinEngine = Depends(get_checkin_engine),
):
    """
    `{qrData}` for a scan, `{registrationId}` for manual entry.

    An attendee who is already in gets 200 with `success: false` and
    `alreadyCheckedIn: true`.
    """
    if data.qr_data:
        selector = QrSelector(data.qr_data)
    elif data.registration_id:
        selector = ManualSelector(data.registration_id)
    else:
        raise InvalidSelector("Invalid check-in data")

    result = await engine.check_in(selector, actor=data.checked_in_by)
    return CheckinVerifyResponse(
        success=result.success,
        already_checked_in=not result.success,
        message=result.message,
        registration=RegistrationResponse.model_validate(result.registration),
        checkin=CheckinResponse.model_validate(result.checkin) if result.checkin else None,
    )
