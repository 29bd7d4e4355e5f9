"""
Pydantic schemas for the consultation desk.

Field presence and email format are checked by the desk so that a bad
request gets the same 400 body whether a field is missing or blank.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from eventdesk.domain import ConsultationStatus
from eventdesk.schemas.base import CamelModel


class ConsultationCreate(CamelModel):
    company: str = Field(default="", max_length=255)
    contact: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)
    requirements: str = Field(default="", max_length=5000)


class ConsultationResponse(CamelModel):
    consultation_id: str
    company: str
    contact: str
    email: str
    phone: str
    requirements: str
    status: ConsultationStatus
    checked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConsultationCreated(CamelModel):
    message: str = "Consultation request submitted successfully"
    consultation: ConsultationResponse


class ConsultationStatusUpdate(CamelModel):
    status: ConsultationStatus
