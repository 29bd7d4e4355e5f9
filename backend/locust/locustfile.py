"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Tier contention (overselling)
  locust -f locustfile.py --tags checkin      # Door scans racing on the same badges
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests

The server needs ADMIN_USERNAME / ADMIN_PASSWORD; set the same values here.
"""

import os
import random
import string
from datetime import datetime, timezone, timedelta

from locust import HttpUser, task, between, tag, events

ADMIN = {
    "username": os.environ.get("ADMIN_USERNAME", "admin"),
    "password": os.environ.get("ADMIN_PASSWORD", "adminpassword123"),
}

# Shared state
EVENT_IDS = []
BADGES = []
CONCURRENCY_EVENT_ID = None
CONCURRENCY_TIER = "limited"


def random_email():
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=10))
    return f"load_{suffix}@test.com"


def admin_headers(client):
    resp = client.post("/api/admin/login", json=ADMIN)
    if resp.status_code == 200:
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return {}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print("SETUP: Concurrency event is created by the first user")
    print("="*60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users → 10 seats in one tier

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM registrations
      WHERE event_id = X AND ticket_tier = 'limited' AND status <> 'cancelled';
    Should be ≤ 10 with ADMISSION_STRATEGY=redis
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        if CONCURRENCY_EVENT_ID:
            return
        headers = admin_headers(self.client)
        future = (datetime.now(timezone.utc) + timedelta(days=30)).isoformat()
        resp = self.client.post("/api/events",
            json={
                "name": "Concurrency Test Event",
                "description": "10 seats only",
                "date": future,
                "venue": "Test",
                "ticketTiers": [{"name": CONCURRENCY_TIER, "price": 0, "seats": 10}],
            },
            headers=headers
        )
        if resp.status_code == 201:
            globals()["CONCURRENCY_EVENT_ID"] = resp.json()["data"]["eventId"]
            print(f"\n✓ Created event {CONCURRENCY_EVENT_ID} with 10 seats\n")

    @tag("concurrency")
    @task
    def register_for_limited_tier(self):
        """All users fight for the same 10 seats."""
        if not CONCURRENCY_EVENT_ID:
            return

        with self.client.post("/api/registrations",
            json={
                "eventId": CONCURRENCY_EVENT_ID,
                "name": "Load User",
                "email": random_email(),
                "ticketTier": CONCURRENCY_TIER,
            },
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                registration = resp.json()["registration"]
                BADGES.append((registration["registrationId"], registration["qrPayload"]))
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class DoorUser(HttpUser):
    """
    TEST 2: Check-in races - many doors scanning the same badges

    Run: locust -f locustfile.py --tags concurrency,checkin -u 100 -r 50 --run-time 60s

    After test, verify:
      SELECT registration_id, COUNT(*) FROM checkins GROUP BY 1 HAVING COUNT(*) > 1;
    Should return no rows.
    """
    wait_time = between(0, 0.2)

    @tag("checkin")
    @task(3)
    def scan_qr(self):
        if not BADGES:
            return
        _, payload = random.choice(BADGES)
        self._verify({"qrData": payload, "checkedInBy": "locust-door"}, "/api/checkins/verify [qr]")

    @tag("checkin")
    @task(1)
    def manual_entry(self):
        if not BADGES:
            return
        registration_id, _ = random.choice(BADGES)
        self._verify({"registrationId": registration_id, "checkedInBy": "locust-desk"}, "/api/checkins/verify [manual]")

    def _verify(self, body, name):
        with self.client.post("/api/checkins/verify", json=body, name=name, catch_response=True) as resp:
            if resp.status_code == 200:
                resp.success()  # Success or already checked in
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post("/api/registrations",
            json={"eventId": "does-not-exist", "name": "X", "email": random_email()},
            catch_response=True
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def garbage_qr(self):
        with self.client.post("/api/checkins/verify",
            json={"qrData": "not a badge"},
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def zero_seat_quote(self):
        with self.client.post("/api/bookings",
            json={"eventId": "any", "seatCount": 0},
            catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def bad_email(self):
        with self.client.post("/api/registrations",
            json={"eventId": "any", "name": "X", "email": "nope"},
            catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/registrations",
            data="not json at all",
            headers={"Content-Type": "application/json"},
            catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def dashboard_without_token(self):
        with self.client.get("/api/admin/dashboard/any", catch_response=True) as resp:
            self._expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing
      - Some registrations
      - Occasional door scans
    """
    wait_time = between(1, 3)

    @task(50)
    def browse_events(self):
        resp = self.client.get("/api/events")
        if resp.status_code == 200:
            for event in resp.json().get("data", []):
                if event["eventId"] not in EVENT_IDS:
                    EVENT_IDS.append(event["eventId"])

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/api/events/{random.choice(EVENT_IDS)}", name="/api/events/{id}")

    @task(10)
    def register(self):
        if not EVENT_IDS:
            return
        resp = self.client.post("/api/registrations", json={
            "eventId": random.choice(EVENT_IDS),
            "name": "Browsing User",
            "email": random_email(),
        })
        if resp.status_code == 201:
            registration = resp.json()["registration"]
            BADGES.append((registration["registrationId"], registration["qrPayload"]))

    @task(5)
    def check_in(self):
        if BADGES:
            registration_id, _ = random.choice(BADGES)
            self.client.post("/api/checkins/verify", json={"registrationId": registration_id})

    @task(1)
    def health_check(self):
        self.client.get("/health")
