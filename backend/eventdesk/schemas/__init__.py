from eventdesk.schemas.auth import AdminLogin, Token
from eventdesk.schemas.booking import BookingQuote, BookingQuoteResponse
from eventdesk.schemas.checkin import CheckinResponse, CheckinVerify, CheckinVerifyResponse
from eventdesk.schemas.consultation import (
    ConsultationCreate,
    ConsultationCreated,
    ConsultationResponse,
    ConsultationStatusUpdate,
)
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
from eventdesk.schemas.registration import (
    RegistrationCreate,
    RegistrationCreated,
    RegistrationResponse,
    StatusUpdate,
)

__all__ = [
    "AdminLogin", "Token",
    "BookingQuote", "BookingQuoteResponse",
    "CheckinResponse", "CheckinVerify", "CheckinVerifyResponse",
    "ConsultationCreate", "ConsultationCreated", "ConsultationResponse", "ConsultationStatusUpdate",
    "EventCreate", "EventDetailEnvelope", "EventDetailResponse", "EventEnvelope",
    "EventListEnvelope", "EventResponse", "EventSummaryResponse", "EventUpdate",
    "RegistrationCreate", "RegistrationCreated", "RegistrationResponse", "StatusUpdate",
]
