"""
Registration model: one row per attendee per event.

Key design decisions:
- Partial unique index on (event_id, email) ignoring cancelled rows enforces
  one live registration per attendee and catches racing duplicates
- The check constraint ties the three checked-in fields together so a row
  can never be half checked in
- (event_id, ticket_tier) index serves the per-tier seat count
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)

from eventdesk.db.base import Base, TimestampMixin

LIVE_REGISTRATION = text("status <> 'cancelled'")


class Registration(Base, TimestampMixin):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(String(16), unique=True, nullable=False)
    event_id = Column(String(64), ForeignKey("events.event_id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    organization = Column(String(255), nullable=False, default="")
    designation = Column(String(255), nullable=False, default="")
    registration_type = Column(String(20), nullable=False, default="online")
    ticket_tier = Column(String(100), nullable=False)
    ticket_price = Column(Numeric(10, 2), nullable=False, default=0)
    qr_payload = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="confirmed")
    is_checked_in = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index(
            "uq_registration_event_email_live",
            "event_id",
            "email",
            unique=True,
            postgresql_where=LIVE_REGISTRATION,
            sqlite_where=LIVE_REGISTRATION,
        ),
        Index("ix_registrations_event_tier", "event_id", "ticket_tier"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'checked_in')",
            name="check_registration_status",
        ),
        CheckConstraint(
            "registration_type IN ('online', 'kiosk')",
            name="check_registration_type",
        ),
        CheckConstraint(
            "(is_checked_in AND checked_in_at IS NOT NULL AND status = 'checked_in') OR "
            "(NOT is_checked_in AND checked_in_at IS NULL AND status <> 'checked_in')",
            name="check_checked_in_consistent",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Registration(registration_id={self.registration_id}, event={self.event_id}, "
            f"status={self.status})>"
        )
