"""
Advisory seat quote. Validates a prospective booking against tier capacity
without writing anything; the registration is what takes the seat.
"""

from fastapi import APIRouter, Depends

from eventdesk.api.deps import get_allocator
from eventdesk.schemas.booking import BookingQuote, BookingQuoteResponse
from eventdesk.services.seat_allocator import SeatAllocator

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingQuoteResponse)
async def quote_booking(
    booking_data: BookingQuote,
    allocator: SeatAllocator = Depends(get_allocator),
):
    """
    Check that `seat_count` seats of a tier are available right now.

    Seats are not held: a later registration may still find the tier full.
    """
    admission = await allocator.reserve(
        booking_data.event_id,
        booking_data.ticket_tier,
        booking_data.seat_count,
        booking_data.ticket_price,
    )
    return BookingQuoteResponse(
        event_id=admission.event_id,
        ticket_tier=admission.tier_name,
        ticket_price=admission.unit_price,
        seat_count=admission.units,
        total_amount=admission.total_amount,
        available_seats=admission.capacity - admission.booked,
    )
