"""
Tests for the confirmation email.
"""

import smtplib
from decimal import Decimal

import pytest

from eventdesk.core.background import drain
from eventdesk.core.config import Settings
from eventdesk.domain import Registration
from eventdesk.services.email_service import ConfirmationMailer, build_confirmation
from eventdesk.services.registration_service import Attendee, RegistrationLedger

from tests.conftest import make_event


def registration() -> Registration:
    return Registration(
        registration_id="AB12CD34",
        event_id="evt-1",
        name="Ann <Lee>",
        email="ann@example.com",
        phone="",
        ticket_tier="gold",
        ticket_price=Decimal("500"),
        qr_payload="AB12CD34|evt-1",
    )


def smtp_settings() -> Settings:
    return Settings(SMTP_HOST="smtp.example.com", EMAIL_FROM="Desk <desk@example.com>")


def test_confirmation_embeds_the_qr_code():
    message = build_confirmation(registration(), make_event(), "Desk <desk@example.com>")

    assert message["Subject"] == "Registration Confirmed - Tech Summit"
    assert message["To"] == "ann@example.com"
    alternative, image = message.get_payload()
    text, html = alternative.get_payload()
    assert "AB12CD34" in text.get_payload()
    assert 'src="cid:qrcode"' in html.get_payload()
    assert "Ann &lt;Lee&gt;" in html.get_payload()
    assert image["Content-ID"] == "<qrcode>"
    assert image.get_content_type() == "image/png"


@pytest.mark.asyncio
async def test_disabled_mailer_skips():
    mailer = ConfirmationMailer(Settings(SMTP_HOST=""))
    assert not mailer.enabled
    assert await mailer.send_confirmation(registration(), make_event()) is False


@pytest.mark.asyncio
async def test_send_delivers_message(monkeypatch):
    mailer = ConfirmationMailer(smtp_settings())
    sent = []
    monkeypatch.setattr(mailer, "_deliver", sent.append)

    assert await mailer.send_confirmation(registration(), make_event()) is True
    assert sent[0]["From"] == "Desk <desk@example.com>"


@pytest.mark.asyncio
async def test_smtp_failure_is_reported_not_raised(monkeypatch):
    mailer = ConfirmationMailer(smtp_settings())

    def refuse(message):
        raise smtplib.SMTPRecipientsRefused({"ann@example.com": (550, b"no such user")})

    monkeypatch.setattr(mailer, "_deliver", refuse)

    assert await mailer.send_confirmation(registration(), make_event()) is False


@pytest.mark.asyncio
async def test_registration_survives_mail_failure(uow, allocator, broker, event, store, monkeypatch):
    mailer = ConfirmationMailer(smtp_settings())
    attempts = []

    def unreachable(message):
        attempts.append(message["To"])
        raise OSError("connection refused")

    monkeypatch.setattr(mailer, "_deliver", unreachable)
    ledger = RegistrationLedger(uow, allocator, broker, mailer)

    created = await ledger.register(event.event_id, Attendee(name="Ann", email="ann@example.com"))
    await drain()

    assert attempts == ["ann@example.com"]
    assert store.registrations[created.registration_id] == created
