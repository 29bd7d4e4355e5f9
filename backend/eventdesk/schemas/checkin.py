"""
Pydantic schemas for check-in verification.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from eventdesk.schemas.base import CamelModel
from eventdesk.schemas.registration import RegistrationResponse


class CheckinVerify(CamelModel):
    """Exactly one of qr_data (scan) or registration_id (manual entry) is used; qr_data wins."""

    qr_data: Optional[str] = Field(None, max_length=4096)
    registration_id: Optional[str] = Field(None, max_length=64)
    checked_in_by: Optional[str] = Field(None, max_length=100)


class CheckinResponse(CamelModel):
    checkin_id: str
    registration_id: str
    event_id: str
    checked_in_at: datetime
    checked_in_by: str


class CheckinVerifyResponse(CamelModel):
    success: bool
    already_checked_in: bool
    message: str
    registration: RegistrationResponse
    checkin: Optional[CheckinResponse] = None
