"""
Locust Load Test Suite

The target screening must already be seeded. Point the users at it with:
  FILM_ID=<film id> SESSION_ID=<screening id> ROWS=5 SEATS=10

Run scenarios:
  locust -f locustfile.py --tags contention   # Many orders, few seats
  locust -f locustfile.py --tags throughput   # Schedule reads (cache)
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
from collections import Counter

from locust import HttpUser, between, events, tag, task

FILM_ID = os.environ.get("FILM_ID", "d290f1ee-6c54-4b01-90e6-d701748f0851")
SESSION_ID = os.environ.get("SESSION_ID", "95ab4a20-9555-4a06-bfac-184b8c53fe70")
ROWS = int(os.environ.get("ROWS", "5"))
SEATS = int(os.environ.get("SEATS", "10"))

ORDER_URL = "/api/afisha/order"
SCHEDULE_URL = f"/api/afisha/films/{FILM_ID}/schedule"

# seat-key -> number of 201 responses that included it
SOLD = Counter()


def order_body(seats):
    return {
        "email": f"load_{random.randint(10000, 99999)}@mail.ru",
        "phone": "+7 (999) 999-99-99",
        "tickets": [
            {"film": FILM_ID, "session": SESSION_ID, "row": row, "seat": seat, "price": 350}
            for row, seat in seats
        ],
    }


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Every seat may appear in at most one confirmed order."""
    oversold = {key: n for key, n in SOLD.items() if n > 1}
    print("\n" + "=" * 60)
    print(f"Seats sold: {len(SOLD)} of {ROWS * SEATS}")
    if oversold:
        print(f"FAIL: seats sold more than once: {oversold}")
    else:
        print("PASS: no seat sold twice")
    print("=" * 60)


class ContentionUser(HttpUser):
    """
    TEST 1: Contention - every user fights over the same seat map

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s
    """
    wait_time = between(0, 0.1)

    @tag("contention")
    @task
    def order_random_seats(self):
        row = random.randint(1, ROWS)
        seats = [(row, seat) for seat in random.sample(range(1, SEATS + 1), k=random.randint(1, 3))]

        with self.client.post(ORDER_URL, json=order_body(seats), catch_response=True) as resp:
            if resp.status_code == 201:
                for item in resp.json()["items"]:
                    SOLD[f"{item['row']}:{item['seat']}"] += 1
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: someone else got the seat
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - schedule reads

    Run with and without REDIS_ENABLED and compare latency percentiles.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def read_schedule(self):
        self.client.get(SCHEDULE_URL, name="/api/afisha/films/{id}/schedule")

    @tag("throughput", "read")
    @task(2)
    def list_films(self):
        self.client.get("/api/afisha/films/")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - bad input must map to 4xx, never 5xx
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, body, codes, name):
        with self.client.post(ORDER_URL, json=body, name=name, catch_response=True) as resp:
            if resp.status_code in codes:
                resp.success()
            else:
                resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def seat_out_of_range(self):
        self._expect(order_body([(ROWS + 1, 1)]), [400], "order [out of range]")

    @tag("edge")
    @task
    def non_integer_seat(self):
        body = order_body([(1, 1)])
        body["tickets"][0]["seat"] = "1"
        self._expect(body, [400], "order [non-integer seat]")

    @tag("edge")
    @task
    def unknown_session(self):
        body = order_body([(1, 1)])
        body["tickets"][0]["session"] = "no-such-session"
        self._expect(body, [404], "order [unknown session]")

    @tag("edge")
    @task
    def missing_film(self):
        body = order_body([(1, 1)])
        del body["tickets"][0]["film"]
        self._expect(body, [400], "order [missing film]")

    @tag("edge")
    @task
    def no_tickets(self):
        self._expect(order_body([]), [400], "order [no tickets]")

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(ORDER_URL, data="not json at all", catch_response=True) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")
