"""
QR payload codec and image rendering.

A registration's QR code carries a JSON document; badges printed by the
kiosk carry the compact `registrationId|eventId` form. Both decode to the
same (registration_id, event_id) key.
"""

import base64
import io
import json
from datetime import datetime

import qrcode

from eventdesk.core.exceptions import InvalidSelector
from eventdesk.domain import Registration

PIPE = "|"


def encode_payload(
    registration_id: str,
    event_id: str,
    name: str,
    email: str,
    timestamp: datetime,
) -> str:
    """Serialize the QR document. Key order is fixed so payloads are reproducible."""
    return json.dumps(
        {
            "registrationId": registration_id,
            "eventId": event_id,
            "name": name,
            "email": email,
            "timestamp": timestamp.isoformat(),
        },
        sort_keys=True,
        separators=(",", ":"),
    )


def decode_selector(raw: str) -> tuple[str, str]:
    """
    Resolve scanned QR text to (registration_id, event_id).

    Raises:
        InvalidSelector: neither the pipe form nor the JSON document.
    """
    if not isinstance(raw, str):
        raise InvalidSelector()
    text = raw.strip()
    if not text:
        raise InvalidSelector()

    if text.startswith("{"):
        try:
            document = json.loads(text)
        except ValueError:
            raise InvalidSelector()
        if not isinstance(document, dict):
            raise InvalidSelector()
        registration_id = document.get("registrationId")
        event_id = document.get("eventId")
        if not isinstance(registration_id, str) or not isinstance(event_id, str):
            raise InvalidSelector()
        if not registration_id.strip() or not event_id.strip():
            raise InvalidSelector()
        return registration_id.strip(), event_id.strip()

    parts = text.split(PIPE)
    if len(parts) != 2:
        raise InvalidSelector()
    registration_id, event_id = (part.strip() for part in parts)
    if not registration_id or not event_id:
        raise InvalidSelector()
    return registration_id, event_id


def render_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render text as a QR code PNG."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def registration_png(registration: Registration) -> bytes:
    return render_png(registration.qr_payload)


def data_url(registration: Registration) -> str:
    """PNG as a data URL, for clients that inline the code directly."""
    encoded = base64.b64encode(registration_png(registration)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
