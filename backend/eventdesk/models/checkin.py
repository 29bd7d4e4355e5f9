"""
Check-in audit record. Append-only.

The unique constraint on registration_id is the store-level guarantee of at
most one record per registration.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from eventdesk.db.base import Base, utcnow


class Checkin(Base):
    __tablename__ = "checkins"

    id = Column(Integer, primary_key=True, index=True)
    checkin_id = Column(String(64), unique=True, nullable=False)
    registration_id = Column(
        String(16), ForeignKey("registrations.registration_id"), nullable=False, unique=True
    )
    event_id = Column(String(64), ForeignKey("events.event_id"), nullable=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    checked_in_by = Column(String(100), nullable=False, default="system")

    __table_args__ = (
        Index("ix_checkins_event_time", "event_id", "checked_in_at"),
    )

    def __repr__(self) -> str:
        return f"<Checkin(registration={self.registration_id}, at={self.checked_in_at})>"
