"""
Assignment Race Simulation

Registers a handful of riders, brings them online, places a batch of
orders and then fires concurrent assignment requests at the API so
several orders compete for each rider. A correct server never lets one
rider hold two orders at once.

Run from project root against a running server:
    python scripts/simulate.py --riders 3 --orders 12
"""

import argparse
import asyncio
import random
import sys
import time
from collections import defaultdict
from datetime import datetime
from typing import Any

import httpx

API_BASE_URL = "http://localhost:3000"

FIRST_NAMES = ["Arjun", "Priya", "Ravi", "Meena", "Karthik", "Divya", "Suresh", "Lakshmi"]
STREETS = ["Anna Salai", "MG Road", "Gandhi Street", "Temple Road", "Lake View Road"]
MENU_ITEMS = [
    {"name": "Veg Thali", "price": 120},
    {"name": "Masala Dosa", "price": 70},
    {"name": "Curd Rice", "price": 60},
    {"name": "Filter Coffee", "price": 25},
    {"name": "Paneer Butter Masala", "price": 150},
]


def random_phone() -> str:
    return "9" + "".join(str(random.randint(0, 9)) for _ in range(9))


def generate_order_payload() -> dict[str, Any]:
    items = []
    for item in random.sample(MENU_ITEMS, random.randint(1, 3)):
        items.append({**item, "qty": random.randint(1, 3)})

    return {
        "items": items,
        "customer": {
            "name": random.choice(FIRST_NAMES),
            "phone": random_phone(),
            "address": f"{random.randint(1, 200)} {random.choice(STREETS)}",
        },
        "totalAmount": sum(i["price"] * i["qty"] for i in items),
        "paymentMethod": random.choice(["Cash", "UPI"]),
    }


# =============================================================================
# SETUP
# =============================================================================

async def register_rider(client: httpx.AsyncClient, num: int) -> str:
    response = await client.post(
        f"{API_BASE_URL}/api/rider/auth/register",
        json={
            "name": f"Sim Rider {num}",
            "phone": random_phone(),
            "password": "simulate123",
            "vehicleType": "Bike",
            "vehicleNumber": f"TN-{random.randint(10, 99)}-{random.randint(1000, 9999)}",
        },
    )
    response.raise_for_status()
    rider_id = response.json()["data"]["rider"]["id"]

    response = await client.patch(
        f"{API_BASE_URL}/api/riders/{rider_id}/status",
        json={"status": "available"},
    )
    response.raise_for_status()
    return rider_id


async def place_order(client: httpx.AsyncClient) -> str:
    response = await client.post(f"{API_BASE_URL}/api/orders", json=generate_order_payload())
    response.raise_for_status()
    return response.json()["data"]["id"]


# =============================================================================
# RACE
# =============================================================================

async def try_assign(
    client: httpx.AsyncClient,
    order_id: str,
    rider_id: str,
) -> dict[str, Any]:
    start_time = time.time()
    try:
        response = await client.patch(
            f"{API_BASE_URL}/api/orders/{order_id}/assign",
            json={"riderId": rider_id},
            timeout=30.0,
        )
    except httpx.HTTPError as e:
        return {"order_id": order_id, "rider_id": rider_id, "status": None, "error": str(e)[:100]}

    return {
        "order_id": order_id,
        "rider_id": rider_id,
        "status": response.status_code,
        "message": response.json().get("message"),
        "time": round(time.time() - start_time, 3),
    }


async def run_simulation(num_riders: int, num_orders: int) -> dict[str, Any]:
    print("=" * 70)
    print("ASSIGNMENT RACE SIMULATION")
    print("=" * 70)
    print(f"Riders: {num_riders}  Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        rider_ids = await asyncio.gather(*(register_rider(client, i + 1) for i in range(num_riders)))
        order_ids = await asyncio.gather(*(place_order(client) for _ in range(num_orders)))
        print(f"\nRegistered {len(rider_ids)} riders, placed {len(order_ids)} orders")

        # Every order races for a random rider
        attempts = [try_assign(client, order_id, random.choice(rider_ids)) for order_id in order_ids]
        results = await asyncio.gather(*attempts)

    won = defaultdict(list)
    for r in results:
        if r["status"] == 200:
            won[r["rider_id"]].append(r["order_id"])

    conflicts = [r for r in results if r["status"] == 409]
    errors = [r for r in results if r["status"] not in (200, 409)]
    double_booked = {rider: orders for rider, orders in won.items() if len(orders) > 1}

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    print(f"Assigned:      {sum(len(o) for o in won.values())}")
    print(f"Conflicts:     {len(conflicts)}")
    print(f"Other errors:  {len(errors)}")
    print(f"Double-booked: {len(double_booked)}")

    for rider, orders in double_booked.items():
        print(f"   {rider} -> {', '.join(orders)}")
    for e in errors[:5]:
        print(f"   {e['order_id']}: {e.get('status')} {e.get('message') or e.get('error')}")

    print("=" * 70)
    return {
        "assigned": won,
        "conflicts": len(conflicts),
        "errors": len(errors),
        "double_booked": double_booked,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Assignment Race Simulation")
    parser.add_argument("--riders", type=int, default=3, help="Number of riders")
    parser.add_argument("--orders", type=int, default=12, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url
    summary = asyncio.run(run_simulation(args.riders, args.orders))
    sys.exit(1 if summary["double_booked"] else 0)
