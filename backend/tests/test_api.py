"""
HTTP tests over the ASGI app with the SQLite session.
"""

import pytest


def registration_body(event_id: str, **overrides) -> dict:
    body = {
        "eventId": event_id,
        "name": "Ann Lee",
        "email": "ann@example.com",
        "phone": "555-0101",
        "ticketTier": "gold",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["redis"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


@pytest.mark.asyncio
async def test_register_then_duplicate(client, test_event):
    first = await client.post("/api/registrations", json=registration_body(test_event.event_id))
    assert first.status_code == 201
    created = first.json()
    assert created["duplicate"] is False
    assert created["qrCode"].startswith("data:image/png;base64,")
    registration = created["registration"]
    assert len(registration["registrationId"]) == 8
    assert registration["ticketTier"] == "gold"
    assert registration["ticketPrice"] == 500.0
    assert registration["status"] == "confirmed"
    assert registration["isCheckedIn"] is False

    again = await client.post(
        "/api/registrations",
        json=registration_body(test_event.event_id, email="ANN@example.com", ticketTier="silver"),
    )
    assert again.status_code == 200
    assert again.json()["duplicate"] is True
    assert again.json()["registration"]["registrationId"] == registration["registrationId"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, status_code, code",
    [
        ({"eventId": "missing"}, 404, "EVENT_NOT_FOUND"),
        ({"ticketTier": "platinum"}, 400, "UNKNOWN_TIER"),
        ({"ticketPrice": "450"}, 400, "PRICE_MISMATCH"),
    ],
)
async def test_register_rejections(client, test_event, overrides, status_code, code):
    response = await client.post("/api/registrations", json=registration_body(test_event.event_id, **overrides))
    assert response.status_code == status_code
    assert response.json()["code"] == code


@pytest.mark.asyncio
async def test_register_for_inactive_event(client, inactive_event):
    response = await client.post(
        "/api/registrations", json=registration_body(inactive_event.event_id, ticketTier=None)
    )
    assert response.status_code == 409
    assert response.json()["code"] == "EVENT_INACTIVE"


@pytest.mark.asyncio
async def test_sold_out_tier(client, test_event):
    for email in ("a@example.com", "b@example.com"):
        response = await client.post("/api/registrations", json=registration_body(test_event.event_id, email=email))
        assert response.status_code == 201

    response = await client.post("/api/registrations", json=registration_body(test_event.event_id, email="c@example.com"))
    assert response.status_code == 409
    assert response.json()["code"] == "SEATS_EXHAUSTED"
    assert response.json()["remaining"] == 0


@pytest.mark.asyncio
async def test_invalid_email_is_rejected(client, test_event):
    response = await client.post(
        "/api/registrations", json=registration_body(test_event.event_id, email="not-an-email")
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_registration_lookups(client, test_event):
    created = (await client.post("/api/registrations", json=registration_body(test_event.event_id))).json()
    registration_id = created["registration"]["registrationId"]

    response = await client.get(f"/api/registrations/{registration_id}")
    assert response.json()["email"] == "ann@example.com"

    response = await client.get("/api/registrations/search", params={"email": "Ann@Example.com"})
    assert [r["registrationId"] for r in response.json()] == [registration_id]

    response = await client.get("/api/registrations/user/ann@example.com")
    assert [r["registrationId"] for r in response.json()] == [registration_id]
    assert (await client.get("/api/registrations/user/nobody@example.com")).json() == []

    response = await client.get(f"/api/registrations/event/{test_event.event_id}")
    assert len(response.json()) == 1

    response = await client.get(f"/api/registrations/{registration_id}/qr")
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")

    response = await client.get("/api/registrations/NOPE0000")
    assert response.status_code == 404
    assert response.json()["code"] == "REGISTRATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_check_in_by_qr_then_manual(client, test_event):
    created = (await client.post("/api/registrations", json=registration_body(test_event.event_id))).json()
    registration = created["registration"]

    first = await client.post(
        "/api/checkins/verify", json={"qrData": registration["qrPayload"], "checkedInBy": "door-1"}
    )
    assert first.status_code == 200
    assert first.json()["success"] is True
    assert first.json()["alreadyCheckedIn"] is False
    assert first.json()["registration"]["status"] == "checked_in"
    assert first.json()["checkin"]["checkedInBy"] == "door-1"

    second = await client.post("/api/checkins/verify", json={"registrationId": registration["registrationId"]})
    assert second.status_code == 200
    assert second.json()["success"] is False
    assert second.json()["alreadyCheckedIn"] is True
    assert second.json()["message"] == "User already checked in"


@pytest.mark.asyncio
async def test_check_in_errors(client, test_event):
    response = await client.post("/api/checkins/verify", json={"qrData": "garbage"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_SELECTOR"

    response = await client.post("/api/checkins/verify", json={})
    assert response.status_code == 400

    response = await client.post("/api/checkins/verify", json={"qrData": f"AB12CD34|{test_event.event_id}"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_check_in_publishes_to_subscribers(client, test_event, api_broker):
    subscription = api_broker.subscribe(test_event.event_id)
    created = (await client.post("/api/registrations", json=registration_body(test_event.event_id))).json()
    await client.post("/api/checkins/verify", json={"registrationId": created["registration"]["registrationId"]})

    types = [subscription.queue.get_nowait().type for _ in range(subscription.queue.qsize())]
    assert types == ["newRegistration", "newCheckin"]


@pytest.mark.asyncio
async def test_events_list_and_detail(client, test_event, inactive_event):
    await client.post("/api/registrations", json=registration_body(test_event.event_id))

    response = await client.get("/api/events")
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["data"][0]["eventId"] == test_event.event_id
    assert body["data"][0]["registrationCount"] == 1

    response = await client.get(f"/api/events/{test_event.event_id}")
    tiers = {tier["name"]: tier for tier in response.json()["data"]["tiers"]}
    assert tiers["gold"]["remaining"] == 1
    assert tiers["silver"]["remaining"] == 5

    response = await client.get("/api/events/missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_event_writes_need_admin(client):
    body = {
        "name": "Workshop",
        "date": "2030-01-15T10:00:00Z",
        "venue": "Lab 3",
        "description": "Hands-on session",
    }
    response = await client.post("/api/events", json=body)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_event_lifecycle(client, admin_headers):
    body = {
        "name": "Workshop",
        "date": "2030-01-15T10:00:00Z",
        "venue": "Lab 3",
        "description": "Hands-on session",
        "ticketTiers": [{"name": "Seat", "price": 25, "seats": 12}],
    }
    response = await client.post("/api/events", json=body, headers=admin_headers)
    assert response.status_code == 201
    event = response.json()["data"]
    assert event["ticketTiers"] == [{"name": "Seat", "price": 25.0, "seats": 12}]

    response = await client.put(
        f"/api/events/{event['eventId']}", json={"venue": "Lab 4"}, headers=admin_headers
    )
    assert response.json()["data"]["venue"] == "Lab 4"
    assert response.json()["data"]["name"] == "Workshop"

    response = await client.delete(f"/api/events/{event['eventId']}", headers=admin_headers)
    assert response.json()["data"]["isActive"] is False
    assert (await client.get("/api/events")).json()["count"] == 0


@pytest.mark.asyncio
async def test_admin_login(client, test_admin):
    response = await client.post("/api/admin/login", json={"username": "admin", "password": "adminpassword123"})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"
    assert response.json()["role"] == "admin"

    response = await client.post("/api/admin/login", json={"username": "admin", "password": "nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_dashboard_requires_token(client, test_event):
    response = await client.get(f"/api/admin/dashboard/{test_event.event_id}")
    assert response.status_code == 401

    response = await client.get(
        f"/api/admin/dashboard/{test_event.event_id}", headers={"Authorization": "Bearer forged"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_dashboard_and_exports(client, test_event, admin_headers):
    created = (await client.post("/api/registrations", json=registration_body(test_event.event_id))).json()
    await client.post(
        "/api/registrations",
        json=registration_body(test_event.event_id, email="ben@example.com", registrationType="kiosk", ticketTier="silver"),
    )
    await client.post("/api/checkins/verify", json={"registrationId": created["registration"]["registrationId"]})

    response = await client.get(f"/api/admin/dashboard/{test_event.event_id}", headers=admin_headers)
    assert response.status_code == 200
    dashboard = response.json()
    assert dashboard["statistics"]["totalRegistrations"] == 2
    assert dashboard["statistics"]["totalCheckins"] == 1
    assert dashboard["statistics"]["kioskRegistrations"] == 1
    assert dashboard["statistics"]["attendanceRate"] == 50.0
    assert dashboard["recentCheckins"][0]["registration"]["name"] == "Ann Lee"
    assert sum(bucket["count"] for bucket in dashboard["hourlyCheckins"]) == 1

    response = await client.get(f"/api/admin/export/registrations/{test_event.event_id}", headers=admin_headers)
    export = response.json()
    assert export["eventName"] == "Tech Summit"
    assert {row["Checked In"] for row in export["data"]} == {"Yes", "No"}

    response = await client.get(f"/api/admin/export/checkins/{test_event.event_id}", headers=admin_headers)
    assert [row["Name"] for row in response.json()["data"]] == ["Ann Lee"]


@pytest.mark.asyncio
async def test_status_update(client, test_event, admin_headers):
    created = (await client.post("/api/registrations", json=registration_body(test_event.event_id))).json()
    registration_id = created["registration"]["registrationId"]

    response = await client.patch(
        f"/api/registrations/{registration_id}/status", json={"status": "cancelled"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    response = await client.post("/api/checkins/verify", json={"registrationId": registration_id})
    assert response.status_code == 409
    assert response.json()["code"] == "REGISTRATION_CANCELLED"

    response = await client.patch(
        f"/api/registrations/{registration_id}/status", json={"status": "confirmed"}, headers=admin_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_booking_quote(client, test_event):
    response = await client.post(
        "/api/bookings",
        json={"eventId": test_event.event_id, "ticketTier": "silver", "ticketPrice": 100, "seatCount": 3},
    )
    assert response.status_code == 200
    quote = response.json()
    assert quote["totalAmount"] == 300.0
    assert quote["availableSeats"] == 5

    response = await client.post(
        "/api/bookings", json={"eventId": test_event.event_id, "ticketTier": "gold", "seatCount": 3}
    )
    assert response.status_code == 409
    assert response.json()["code"] == "SEATS_EXHAUSTED"


def consultation_body(**overrides) -> dict:
    body = {
        "company": "Acme Robotics",
        "contact": "Dana Kim",
        "email": "Dana@Acme.io",
        "phone": "555-010-2020",
        "requirements": "Booth layout review",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_submit_consultation(client):
    response = await client.post("/api/consultations", json=consultation_body())

    assert response.status_code == 201
    created = response.json()
    assert created["message"] == "Consultation request submitted successfully"
    assert created["consultation"]["email"] == "dana@acme.io"
    assert created["consultation"]["phone"] == "5550102020"
    assert created["consultation"]["status"] == "pending"
    assert created["consultation"]["checkedAt"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, detail",
    [
        (consultation_body(company=""), "All fields are required"),
        ({"company": "Acme"}, "All fields are required"),
        (consultation_body(email="dana-at-acme"), "Invalid email format"),
    ],
)
async def test_submit_consultation_rejections(client, body, detail):
    response = await client.post("/api/consultations", json=body)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"
    assert response.json()["detail"] == detail


@pytest.mark.asyncio
async def test_consultation_desk_needs_admin(client):
    assert (await client.get("/api/consultations")).status_code == 401
    assert (await client.get("/api/consultations/search", params={"email": "acme"})).status_code == 401
    response = await client.patch("/api/consultations/anything/status", json={"status": "completed"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_consultation_desk_workflow(client, admin_headers):
    first = (await client.post("/api/consultations", json=consultation_body())).json()["consultation"]
    second = (
        await client.post(
            "/api/consultations", json=consultation_body(company="Globex", email="hello@globex.com")
        )
    ).json()["consultation"]

    response = await client.get("/api/consultations", headers=admin_headers)
    assert [c["consultationId"] for c in response.json()] == [
        second["consultationId"],
        first["consultationId"],
    ]

    response = await client.patch(
        f"/api/consultations/{first['consultationId']}/status",
        json={"status": "checked_in"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "checked_in"
    assert response.json()["checkedAt"] is not None

    response = await client.get("/api/consultations", params={"status": "pending"}, headers=admin_headers)
    assert [c["consultationId"] for c in response.json()] == [second["consultationId"]]

    response = await client.get("/api/consultations/search", params={"email": "GLOBEX"}, headers=admin_headers)
    assert [c["company"] for c in response.json()] == ["Globex"]

    response = await client.get("/api/consultations/search", headers=admin_headers)
    assert response.status_code == 400

    response = await client.patch(
        "/api/consultations/missing/status", json={"status": "completed"}, headers=admin_headers
    )
    assert response.status_code == 404
    assert response.json()["code"] == "CONSULTATION_NOT_FOUND"

    response = await client.patch(
        f"/api/consultations/{first['consultationId']}/status",
        json={"status": "archived"},
        headers=admin_headers,
    )
    assert response.status_code == 422
