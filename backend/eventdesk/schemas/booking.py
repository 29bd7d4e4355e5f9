"""
Pydantic schemas for the advisory seat quote.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from eventdesk.schemas.base import CamelModel


class BookingQuote(CamelModel):
    event_id: str = Field(..., min_length=1, max_length=64)
    ticket_tier: Optional[str] = Field(None, max_length=100)
    ticket_price: Optional[Decimal] = Field(None, ge=0)
    seat_count: int = Field(default=1, gt=0, le=10)


class BookingQuoteResponse(CamelModel):
    success: bool = True
    event_id: str
    ticket_tier: str
    ticket_price: float
    seat_count: int
    total_amount: float
    available_seats: int
    message: str = "Booking validated successfully"
