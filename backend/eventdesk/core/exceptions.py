"""
Domain error taxonomy.

Every error carries a stable code, a user-safe message, the kind it belongs
to and the HTTP status the API maps it to. Services raise these; the
handler registered in main.py renders them. Core-path outcomes keep their
own type so callers can branch on them (NotFound vs InvalidSelector vs a
store failure).
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


class ErrorCode(str, Enum):
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_INACTIVE = "EVENT_INACTIVE"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    REGISTRATION_CANCELLED = "REGISTRATION_CANCELLED"
    CONSULTATION_NOT_FOUND = "CONSULTATION_NOT_FOUND"
    UNKNOWN_TIER = "UNKNOWN_TIER"
    PRICE_MISMATCH = "PRICE_MISMATCH"
    SEATS_EXHAUSTED = "SEATS_EXHAUSTED"
    DUPLICATE_REGISTRATION = "DUPLICATE_REGISTRATION"
    INVALID_SELECTOR = "INVALID_SELECTOR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    UNAUTHORIZED = "UNAUTHORIZED"
    STORE_CONFLICT = "STORE_CONFLICT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: ErrorCode = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code.value, **self.extra}

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: str) -> None:
        super().__init__("Event not found", event_id=event_id)
        self.event_id = event_id


class EventInactive(DomainError):
    kind = ErrorKind.CONFLICT
    code = ErrorCode.EVENT_INACTIVE

    def __init__(self, event_id: str) -> None:
        super().__init__("Event is no longer accepting registrations", event_id=event_id)
        self.event_id = event_id


class RegistrationNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = ErrorCode.REGISTRATION_NOT_FOUND

    def __init__(self, registration_id: str) -> None:
        super().__init__("Registration not found", registration_id=registration_id)
        self.registration_id = registration_id


class RegistrationCancelled(DomainError):
    kind = ErrorKind.CONFLICT
    code = ErrorCode.REGISTRATION_CANCELLED

    def __init__(self, registration_id: str) -> None:
        super().__init__("Registration has been cancelled", registration_id=registration_id)
        self.registration_id = registration_id


class ConsultationNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = ErrorCode.CONSULTATION_NOT_FOUND

    def __init__(self, consultation_id: str) -> None:
        super().__init__("Consultation not found", consultation_id=consultation_id)
        self.consultation_id = consultation_id


class UnknownTier(DomainError):
    kind = ErrorKind.INVALID_INPUT
    code = ErrorCode.UNKNOWN_TIER

    def __init__(self, tier_name: str) -> None:
        super().__init__("Invalid ticket tier", tier=tier_name)
        self.tier_name = tier_name


class PriceMismatch(DomainError):
    kind = ErrorKind.INVALID_INPUT
    code = ErrorCode.PRICE_MISMATCH

    def __init__(self, tier_name: str, expected, supplied) -> None:
        super().__init__(
            "Invalid ticket price",
            tier=tier_name,
            expected_price=str(expected),
            supplied_price=str(supplied),
        )
        self.tier_name = tier_name


class SeatsExhausted(DomainError):
    kind = ErrorKind.CONFLICT
    code = ErrorCode.SEATS_EXHAUSTED

    def __init__(self, tier_name: str, remaining: int) -> None:
        super().__init__(
            f"No seats available for {tier_name} tier",
            tier=tier_name,
            remaining=remaining,
        )
        self.tier_name = tier_name
        self.remaining = remaining


class DuplicateRegistration(DomainError):
    """Not a hard failure: carries the existing registration for idempotent lookups."""

    kind = ErrorKind.CONFLICT
    code = ErrorCode.DUPLICATE_REGISTRATION

    def __init__(self, existing) -> None:
        super().__init__(
            "Already registered for this event",
            registration_id=existing.registration_id,
        )
        self.existing = existing
        self.registration_id = existing.registration_id


class InvalidSelector(DomainError):
    kind = ErrorKind.INVALID_INPUT
    code = ErrorCode.INVALID_SELECTOR

    def __init__(self, message: str = "Invalid QR code format") -> None:
        super().__init__(message)


class InvalidInput(DomainError):
    kind = ErrorKind.INVALID_INPUT
    code = ErrorCode.INVALID_INPUT


class InvalidStatusTransition(DomainError):
    kind = ErrorKind.CONFLICT
    code = ErrorCode.INVALID_STATUS_TRANSITION

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot change status from {current} to {requested}",
            current_status=current,
            requested_status=requested,
        )


class Unauthorized(DomainError):
    kind = ErrorKind.UNAUTHORIZED
    code = ErrorCode.UNAUTHORIZED


class StoreConflict(DomainError):
    """A uniqueness constraint rejected a write. Raised by stores, mapped by services."""

    kind = ErrorKind.CONFLICT
    code = ErrorCode.STORE_CONFLICT

    def __init__(self, constraint: str = "") -> None:
        super().__init__("Conflicting write", constraint=constraint)
        self.constraint = constraint


class StoreUnavailable(DomainError):
    """The data store could not be reached; outcome of a pending write is unknown."""

    kind = ErrorKind.INTERNAL
    code = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, message: str = "Data store unavailable, please retry") -> None:
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return status.HTTP_503_SERVICE_UNAVAILABLE
