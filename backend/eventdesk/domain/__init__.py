from eventdesk.domain.models import (
    Admin,
    CheckinRecord,
    Consultation,
    ConsultationStatus,
    Event,
    Registration,
    RegistrationStatus,
    RegistrationType,
    TicketTier,
)

__all__ = [
    "Admin",
    "CheckinRecord",
    "Consultation",
    "ConsultationStatus",
    "Event",
    "Registration",
    "RegistrationStatus",
    "RegistrationType",
    "TicketTier",
]
