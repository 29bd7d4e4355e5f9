"""
Consultation desk: companies ask for a consultation slot, staff work the
queue by status and mark arrivals.

Independent of the registration ledger. A consultation has no seats and no
QR code; arriving is a status change stamped with `checked_at`.
"""

import re
import uuid
from dataclasses import dataclass
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from eventdesk.core.exceptions import ConsultationNotFound, InvalidInput
from eventdesk.core.logging import get_logger
from eventdesk.core.metrics import record_consultation
from eventdesk.db.base import utcnow
from eventdesk.domain import Consultation, ConsultationStatus
from eventdesk.repositories.interfaces import UnitOfWork

logger = get_logger(__name__)

NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class ConsultationRequest:
    company: str
    contact: str
    email: str
    phone: str
    requirements: str


def normalize_phone(phone: str) -> str:
    """Keep digits only: "+1 (555) 010-1" -> "15550101"."""
    return NON_DIGITS.sub("", phone or "")


class ConsultationDesk:
    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def submit(self, request: ConsultationRequest) -> Consultation:
        """
        Queue a consultation request as pending.

        Raises:
            InvalidInput: a field is blank, the email is malformed, or the
                phone number has no digits.
        """
        fields = {
            "company": (request.company or "").strip(),
            "contact": (request.contact or "").strip(),
            "email": (request.email or "").strip(),
            "phone": (request.phone or "").strip(),
            "requirements": (request.requirements or "").strip(),
        }
        missing = sorted(name for name, value in fields.items() if not value)
        if missing:
            raise InvalidInput("All fields are required", missing=missing)

        try:
            validate_email(fields["email"], check_deliverability=False)
        except EmailNotValidError as e:
            raise InvalidInput("Invalid email format") from e

        phone = normalize_phone(fields["phone"])
        if not phone:
            raise InvalidInput("Phone number must contain digits")

        now = utcnow()
        consultation = await self._uow.consultations.add(
            Consultation(
                consultation_id=str(uuid.uuid4()),
                company=fields["company"],
                contact=fields["contact"],
                email=fields["email"].lower(),
                phone=phone,
                requirements=fields["requirements"],
                created_at=now,
                updated_at=now,
            )
        )
        await self._uow.commit()

        record_consultation("submitted")
        logger.info(
            "consultation_submitted",
            consultation_id=consultation.consultation_id,
            company=consultation.company,
        )
        return consultation

    async def get(self, consultation_id: str) -> Consultation:
        consultation = await self._uow.consultations.get(consultation_id)
        if consultation is None:
            raise ConsultationNotFound(consultation_id)
        return consultation

    async def list_consultations(
        self, status: Optional[ConsultationStatus] = None
    ) -> list[Consultation]:
        return await self._uow.consultations.list_consultations(status)

    async def search(self, email: str) -> list[Consultation]:
        fragment = (email or "").strip().lower()
        if not fragment:
            raise InvalidInput("Email parameter required")
        return await self._uow.consultations.search_by_email(fragment)

    async def update_status(
        self, consultation_id: str, status: ConsultationStatus
    ) -> Consultation:
        """
        Move a consultation to any status.

        The first move to checked_in stamps `checked_at`; repeating it keeps
        the original arrival time. Leaving checked_in keeps the stamp.
        """
        current = await self.get(consultation_id)
        checked_at = None
        if status == ConsultationStatus.CHECKED_IN and current.checked_at is None:
            checked_at = utcnow()

        updated = await self._uow.consultations.set_status(consultation_id, status, checked_at)
        if updated is None:
            raise ConsultationNotFound(consultation_id)
        await self._uow.commit()

        record_consultation(status.value)
        logger.info(
            "consultation_status_changed",
            consultation_id=consultation_id,
            old_status=current.status.value,
            new_status=status.value,
        )
        return updated
