"""
Event and ticket tier models.

Key design decisions:
- `event_id` is the public opaque identifier; `id` stays internal
- Tier seat counts are fixed at create/update time, bookings are counted
  from registrations rather than decremented here
- Events are soft-deleted through `is_active`
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
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from eventdesk.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(64), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    time = Column(String(50), nullable=False, default="")
    venue = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String(500), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    max_capacity = Column(Integer, nullable=False, default=1000)

    ticket_tiers = relationship(
        "TicketTier",
        back_populates="event",
        order_by="TicketTier.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("max_capacity >= 0", name="check_event_capacity_non_negative"),
        Index("ix_events_active_date", "is_active", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(event_id={self.event_id}, name={self.name}, active={self.is_active})>"


class TicketTier(Base):
    __tablename__ = "ticket_tiers"

    id = Column(Integer, primary_key=True)
    event_id = Column(String(64), ForeignKey("events.event_id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    seats = Column(Integer, nullable=False, default=0)

    event = relationship("Event", back_populates="ticket_tiers")

    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_ticket_tier_event_name"),
        CheckConstraint("seats >= 0", name="check_tier_seats_non_negative"),
        CheckConstraint("price >= 0", name="check_tier_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<TicketTier(event={self.event_id}, name={self.name}, seats={self.seats})>"
