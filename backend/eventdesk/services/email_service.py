"""
Registration confirmation email.

Sent over SMTP after the registration is committed. smtplib blocks, so the
send runs in a worker thread. Failures are logged and counted; they never
reach the registration caller.
"""

import asyncio
import smtplib
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from eventdesk.core.config import Settings, get_settings
from eventdesk.core.logging import get_logger
from eventdesk.core.metrics import record_email
from eventdesk.domain import Event, Registration
from eventdesk.services.qr_service import registration_png

logger = get_logger(__name__)

QR_CONTENT_ID = "qrcode"


def _text_body(registration: Registration, event: Optional[Event]) -> str:
    event_name = event.name if event else "our event"
    lines = [
        f"Hi {registration.name},",
        "",
        f"Your registration for {event_name} is confirmed.",
        "",
        f"Registration ID: {registration.registration_id}",
        f"Ticket: {registration.ticket_tier}",
    ]
    if event:
        lines.append(f"Date: {event.date:%d %B %Y} {event.time}".rstrip())
        lines.append(f"Venue: {event.venue}")
    lines += ["", "Show the attached QR code at the entrance to check in."]
    return "\n".join(lines)


def _html_body(registration: Registration, event: Optional[Event]) -> str:
    event_name = escape(event.name) if event else "our event"
    details = ""
    if event:
        details = (
            f"<p><strong>Date:</strong> {event.date:%d %B %Y} {escape(event.time)}<br>"
            f"<strong>Venue:</strong> {escape(event.venue)}</p>"
        )
    return (
        "<html><body>"
        f"<h2>Registration confirmed</h2>"
        f"<p>Hi {escape(registration.name)}, your registration for "
        f"<strong>{event_name}</strong> is confirmed.</p>"
        f"<p><strong>Registration ID:</strong> {escape(registration.registration_id)}<br>"
        f"<strong>Ticket:</strong> {escape(registration.ticket_tier)}</p>"
        f"{details}"
        f'<p><img src="cid:{QR_CONTENT_ID}" alt="Check-in QR code" width="200" height="200"></p>'
        "<p>Show this QR code at the entrance to check in.</p>"
        "</body></html>"
    )


def build_confirmation(
    registration: Registration,
    event: Optional[Event],
    sender: str,
) -> MIMEMultipart:
    message = MIMEMultipart("related")
    event_name = event.name if event else "Our Event"
    message["Subject"] = f"Registration Confirmed - {event_name}"
    message["From"] = sender
    message["To"] = registration.email

    alternative = MIMEMultipart("alternative")
    alternative.attach(MIMEText(_text_body(registration, event), "plain"))
    alternative.attach(MIMEText(_html_body(registration, event), "html"))
    message.attach(alternative)

    image = MIMEImage(registration_png(registration), _subtype="png")
    image.add_header("Content-ID", f"<{QR_CONTENT_ID}>")
    image.add_header(
        "Content-Disposition",
        "inline",
        filename=f"qr-code-{registration.registration_id}.png",
    )
    message.attach(image)
    return message


class ConfirmationMailer:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.SMTP_HOST)

    def _deliver(self, message: MIMEMultipart) -> None:
        settings = self.settings
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            if settings.SMTP_USERNAME:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(message)

    async def send_confirmation(self, registration: Registration, event: Optional[Event]) -> bool:
        """Send the confirmation. Returns False, after logging, on any failure."""
        if not self.enabled:
            record_email("skipped")
            logger.debug("email_skipped", registration_id=registration.registration_id)
            return False

        try:
            message = build_confirmation(registration, event, self.settings.EMAIL_FROM)
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            record_email("failed")
            logger.warning(
                "email_failed",
                registration_id=registration.registration_id,
                email=registration.email,
                error=str(e),
            )
            return False

        record_email("sent")
        logger.info("email_sent", registration_id=registration.registration_id, email=registration.email)
        return True
