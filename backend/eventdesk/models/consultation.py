"""
Consultation request submitted from the event site.

Independent of events and registrations: the desk works through the queue
by status, newest first.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text

from eventdesk.db.base import Base, TimestampMixin


class Consultation(Base, TimestampMixin):
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True, index=True)
    consultation_id = Column(String(64), unique=True, nullable=False)
    company = Column(String(255), nullable=False)
    contact = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    requirements = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    checked_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_consultations_status_created", "status", "created_at"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'checked_in')",
            name="check_consultation_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Consultation(consultation_id={self.consultation_id}, status={self.status})>"
