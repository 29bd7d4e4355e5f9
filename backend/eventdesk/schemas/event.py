"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from eventdesk.schemas.base import CamelModel
from eventdesk.services.event_service import EventDetail, EventSummary


class TicketTierIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    seats: int = Field(..., ge=0, le=1000000)


class EventCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    date: datetime
    time: str = Field(default="", max_length=50)
    venue: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=5000)
    image_url: Optional[str] = Field(None, max_length=500)
    max_capacity: Optional[int] = Field(None, ge=0, le=1000000)
    ticket_tiers: list[TicketTierIn] = Field(default_factory=list)


class EventUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    date: Optional[datetime] = None
    time: Optional[str] = Field(None, max_length=50)
    venue: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    max_capacity: Optional[int] = Field(None, ge=0, le=1000000)
    ticket_tiers: Optional[list[TicketTierIn]] = None


class TicketTierResponse(CamelModel):
    name: str
    price: float
    seats: int


class EventResponse(CamelModel):
    event_id: str
    name: str
    date: datetime
    time: str
    venue: str
    description: str
    image_url: str
    is_active: bool
    max_capacity: int
    ticket_tiers: list[TicketTierResponse]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventSummaryResponse(EventResponse):
    registration_count: int
    checked_in_count: int

    @classmethod
    def from_summary(cls, summary: EventSummary) -> "EventSummaryResponse":
        return cls(
            **EventResponse.model_validate(summary.event).model_dump(),
            registration_count=summary.registration_count,
            checked_in_count=summary.checked_in_count,
        )


class TierAvailabilityResponse(CamelModel):
    name: str
    price: float
    seats: int
    booked: int
    remaining: int


class EventDetailResponse(EventSummaryResponse):
    tiers: list[TierAvailabilityResponse]

    @classmethod
    def from_detail(cls, detail: EventDetail) -> "EventDetailResponse":
        return cls(
            **EventResponse.model_validate(detail.event).model_dump(),
            registration_count=detail.registration_count,
            checked_in_count=detail.checked_in_count,
            tiers=[TierAvailabilityResponse.model_validate(tier) for tier in detail.tiers],
        )


class EventEnvelope(CamelModel):
    success: bool = True
    data: EventResponse
    message: Optional[str] = None


class EventDetailEnvelope(CamelModel):
    success: bool = True
    data: EventDetailResponse


class EventListEnvelope(CamelModel):
    success: bool = True
    data: list[EventSummaryResponse]
    count: int
