"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overfilling a capped event
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

The concurrency scenario needs an event manager or super admin to create the
capped event:
  LOCUST_ADMIN_EMAIL=admin@example.com LOCUST_ADMIN_PASSWORD=... locust -f locustfile.py
"""

import json
import os
import random
from locust import HttpUser, task, between, tag, events
from datetime import datetime, timezone, timedelta

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT_ID = None
CONCURRENCY_CAPACITY = int(os.environ.get("LOCUST_CAPACITY", "10"))

PASSWORD = "loadtest123"


def random_email():
    return f"load_{random.randint(100000, 999999)}@test.com"


def signup_and_login(client):
    """Create an ordinary account and return (user_id, headers)."""
    email = random_email()
    resp = client.post("/api/v1/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "first_name": "Load",
        "last_name": "Tester",
        "phone_number": "+255700000000",
    })
    if resp.status_code != 201:
        return None, {}
    user_id = resp.json()["id"]

    resp = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    if resp.status_code != 200:
        return None, {}
    return user_id, {"Authorization": f"Bearer {resp.json()['access_token']}"}


def registration_form(user_id, event_id, method="cash"):
    return {
        "payload": json.dumps({
            "event_id": event_id,
            "user_id": user_id,
            "country": "Tanzania",
            "organization": "Load Org",
            "position": "Tester",
            "payment_method": method,
        })
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: concurrency event capacity = {CONCURRENCY_CAPACITY}")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 spots

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT current_attendees FROM events WHERE id = X;
      SELECT COUNT(*) FROM event_registrations
        WHERE event_id = X AND payment_status <> 'cancelled';
    Both should equal the capacity, and registration_number should have no
    duplicates.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.user_id, self.headers = signup_and_login(self.client)

        admin_email = os.environ.get("LOCUST_ADMIN_EMAIL")
        if CONCURRENCY_EVENT_ID or not admin_email:
            return

        resp = self.client.post("/api/v1/auth/login", json={
            "email": admin_email,
            "password": os.environ.get("LOCUST_ADMIN_PASSWORD", ""),
        })
        if resp.status_code != 200:
            return
        admin_headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}

        start = datetime.now(timezone.utc) + timedelta(days=30)
        resp = self.client.post(
            "/api/v1/admin/events",
            json={
                "title": "Concurrency Test Event",
                "description": f"{CONCURRENCY_CAPACITY} spots only",
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=1)).isoformat(),
                "location": "Test",
                "price": "0.00",
                "max_attendees": CONCURRENCY_CAPACITY,
            },
            headers=admin_headers,
        )
        if resp.status_code == 201:
            globals()["CONCURRENCY_EVENT_ID"] = resp.json()["id"]
            print(f"\nCreated event {CONCURRENCY_EVENT_ID} with {CONCURRENCY_CAPACITY} spots\n")

    @tag("concurrency")
    @task
    def register_for_capped_event(self):
        """All users fight for the same spots."""
        if not CONCURRENCY_EVENT_ID or not self.headers:
            return

        with self.client.post(
            "/api/v1/events/register",
            data=registration_form(self.user_id, CONCURRENCY_EVENT_ID),
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: full or already registered
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the API, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(
            f"/api/v1/events?page={page}&page_size=20",
            name="/api/v1/events [cached]",
        )
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    The API must answer with 4xx, never 5xx.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.user_id, self.headers = signup_and_login(self.client)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post(
            "/api/v1/events/register",
            data=registration_form(self.user_id, 999999),
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def missing_evidence(self):
        """Bank payments without evidence are rejected before anything is written."""
        event_id = random.choice(EVENT_IDS) if EVENT_IDS else 1
        with self.client.post(
            "/api/v1/events/register",
            data=registration_form(self.user_id, event_id, method="bank"),
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 404, 409))

    @tag("edge")
    @task
    def unknown_payment_method(self):
        with self.client.post(
            "/api/v1/events/register",
            data=registration_form(self.user_id, 1, method="bitcoin"),
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 404, 409))

    @tag("edge")
    @task
    def malformed_payload(self):
        with self.client.post(
            "/api/v1/events/register",
            data={"payload": "not json at all"},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def registering_someone_else(self):
        with self.client.post(
            "/api/v1/events/register",
            data=registration_form((self.user_id or 0) + 1, 1),
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (403,))

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post(
            "/api/v1/events/register",
            data=registration_form(1, 1),
            catch_response=True,
        ) as resp:
            self._expect(resp, (401,))


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly browsing, some registrations and the occasional cancellation.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.user_id, self.headers = signup_and_login(self.client)
        self.registrations = []

    @task(50)
    def browse_events(self):
        resp = self.client.get("/api/v1/events?page=1&page_size=20")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @task(10)
    def register(self):
        if not EVENT_IDS or not self.headers:
            return
        with self.client.post(
            "/api/v1/events/register",
            data=registration_form(self.user_id, random.choice(EVENT_IDS)),
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                self.registrations.append(resp.json()["id"])
                resp.success()
            elif resp.status_code == 409:
                resp.success()

    @task(2)
    def cancel(self):
        if not self.registrations:
            return
        registration_id = self.registrations.pop()
        self.client.patch(
            f"/api/v1/users/{self.user_id}/registrations/{registration_id}/cancel",
            headers=self.headers,
            name="/api/v1/users/{id}/registrations/{id}/cancel",
        )
