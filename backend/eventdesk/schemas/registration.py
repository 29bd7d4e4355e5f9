"""
Pydantic schemas for registration request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field

from eventdesk.domain import RegistrationStatus, RegistrationType
from eventdesk.schemas.base import CamelModel


class RegistrationCreate(CamelModel):
    event_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(default="", max_length=50)
    organization: Optional[str] = Field(None, max_length=255)
    designation: Optional[str] = Field(None, max_length=255)
    registration_type: RegistrationType = RegistrationType.ONLINE
    ticket_tier: Optional[str] = Field(None, max_length=100)
    ticket_price: Optional[Decimal] = Field(None, ge=0)


class RegistrationResponse(CamelModel):
    registration_id: str
    event_id: str
    name: str
    email: str
    phone: str
    organization: str
    designation: str
    registration_type: RegistrationType
    ticket_tier: str
    ticket_price: float
    qr_payload: str
    status: RegistrationStatus
    is_checked_in: bool
    checked_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RegistrationCreated(CamelModel):
    message: str
    duplicate: bool = False
    registration: RegistrationResponse
    qr_code: str


class StatusUpdate(CamelModel):
    status: RegistrationStatus
