#!/usr/bin/env python3
"""
Stress test for the Cinema Booking API.
Fires many simultaneous orders at one seat and checks it is sold once.

The screening must already be seeded; set FILM_ID / SESSION_ID to target it.
"""

import asyncio
import os
import time

import aiohttp

API_URL = os.environ.get("API_URL", "http://localhost:8000")
FILM_ID = os.environ.get("FILM_ID", "d290f1ee-6c54-4b01-90e6-d701748f0851")
SESSION_ID = os.environ.get("SESSION_ID", "95ab4a20-9555-4a06-bfac-184b8c53fe70")
CONCURRENT_ORDERS = int(os.environ.get("CONCURRENT_ORDERS", "50"))
ROW = int(os.environ.get("ROW", "1"))
SEAT = int(os.environ.get("SEAT", "1"))


class StressTest:
    def __init__(self):
        self.results = {
            "confirmed": 0,
            "conflicts": 0,
            "failed": 0,
            "errors": 0,
            "response_times": [],
        }

    async def place_order(self, session: aiohttp.ClientSession, order_num: int):
        """Order the contested seat."""
        tickets = [
            {"film": FILM_ID, "session": SESSION_ID, "row": ROW, "seat": SEAT, "price": 350},
        ]
        start = time.time()

        try:
            async with session.post(
                f"{API_URL}/api/afisha/order",
                json={"email": f"stress_{order_num}@mail.ru", "phone": "+70000000000", "tickets": tickets},
            ) as resp:
                elapsed = (time.time() - start) * 1000
                self.results["response_times"].append(elapsed)

                if resp.status == 201:
                    self.results["confirmed"] += 1
                    print(f"✓ Order {order_num} confirmed ({elapsed:.0f}ms)")
                elif resp.status == 409:
                    self.results["conflicts"] += 1
                    detail = (await resp.json())["detail"]
                    print(f"✗ Order {order_num} conflict on {detail.get('seats')} ({elapsed:.0f}ms)")
                else:
                    self.results["failed"] += 1
                    print(f"✗ Order {order_num} failed: {resp.status} ({elapsed:.0f}ms)")
        except aiohttp.ClientError as e:
            self.results["errors"] += 1
            print(f"✗ Order {order_num} error: {e}")

    async def run(self):
        print(f"\n{'='*60}")
        print(f"STRESS TEST: {CONCURRENT_ORDERS} orders → seat {ROW}:{SEAT}")
        print(f"{'='*60}\n")

        async with aiohttp.ClientSession() as session:
            start_time = time.time()
            await asyncio.gather(*(self.place_order(session, i) for i in range(CONCURRENT_ORDERS)))
            total_time = time.time() - start_time

            async with session.get(f"{API_URL}/api/afisha/films/{FILM_ID}/schedule") as resp:
                schedule = await resp.json()

        taken = next((s["taken"] for s in schedule["items"] if s["id"] == SESSION_ID), [])

        print("\n" + "="*60)
        print("RESULTS")
        print("="*60)
        print(f"Total time:        {total_time:.2f}s")
        print(f"Confirmed orders:  {self.results['confirmed']}")
        print(f"Conflicts (409):   {self.results['conflicts']}")
        print(f"Failed orders:     {self.results['failed']}")
        print(f"Errors:            {self.results['errors']}")

        if self.results["response_times"]:
            times = sorted(self.results["response_times"])
            print("\nResponse times:")
            print(f"  Avg: {sum(times)/len(times):.0f}ms")
            print(f"  P50: {times[len(times)//2]:.0f}ms")
            print(f"  P95: {times[int(len(times)*0.95)]:.0f}ms")

        print("\n" + "="*60)
        if self.results["confirmed"] <= 1 and f"{ROW}:{SEAT}" in taken:
            print("✓ PASS: seat sold exactly once")
        else:
            print(f"✗ FAIL: {self.results['confirmed']} orders confirmed for one seat")
        print("="*60 + "\n")


if __name__ == "__main__":
    asyncio.run(StressTest().run())
