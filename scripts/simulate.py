"""
Rush Hour Simulation Script

Fires a burst of concurrent orders at a running API, pays for them with a
random mix of methods, walks every order through the kitchen and delivery
workflow, and prints the notification statistics at the end.

Run from project root (server on port 8000):
    uvicorn ordering.main:app --port 8000
    python scripts/simulate.py --orders 50
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime, timedelta
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8000"
TOTAL_ORDERS = 50
WORKFLOW = ["Preparing", "Ready", "Delivered", "Completed"]

# Sample data
FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis"]
MENU_ITEMS = [
    {"name": "Pizza Margherita", "price": 14.99, "category": "Mains"},
    {"name": "Pepperoni Pizza", "price": 16.99, "category": "Mains"},
    {"name": "Pasta Carbonara", "price": 13.99, "category": "Mains"},
    {"name": "Caesar Salad", "price": 8.99, "category": "Starters"},
    {"name": "Garlic Bread", "price": 5.99, "category": "Starters"},
    {"name": "Tiramisu", "price": 7.99, "category": "Desserts"},
    {"name": "Sparkling Water", "price": 3.49, "category": "Drinks"},
]
CUSTOMIZATIONS = [
    {"name": "Extra cheese", "additional_cost": 1.50},
    {"name": "Gluten free", "additional_cost": 2.00},
    {"name": "No onions", "additional_cost": 0.0},
]


# =============================================================================
# SEEDING
# =============================================================================

async def seed(client: httpx.AsyncClient, num_customers: int = 10) -> tuple[list[int], list[int]]:
    """Create the menu and a pool of customers. Returns (customer_ids, item_ids)."""
    item_ids = []
    for item in MENU_ITEMS:
        response = await client.post(f"{API_BASE_URL}/api/items", json=item)
        response.raise_for_status()
        item_ids.append(response.json()["id"])

    customer_ids = []
    for _ in range(num_customers):
        first, last = random.choice(FIRST_NAMES), random.choice(LAST_NAMES)
        response = await client.post(
            f"{API_BASE_URL}/api/customers",
            json={"name": f"{first} {last}", "email": f"{first}.{last}@example.com".lower()},
        )
        response.raise_for_status()
        customer_ids.append(response.json()["id"])

    return customer_ids, item_ids


def generate_order_payload(customer_ids: list[int], item_ids: list[int]) -> dict[str, Any]:
    """Random order, sometimes paid up front, sometimes with a declined card."""
    payload: dict[str, Any] = {
        "customer_id": random.choice(customer_ids),
        "items": [
            {"item_id": random.choice(item_ids), "quantity": random.randint(1, 3)}
            for _ in range(random.randint(1, 4))
        ],
    }
    if random.random() < 0.3:
        payload["items"][0]["customizations"] = [random.choice(CUSTOMIZATIONS)]

    method = random.choice([None, "cash", "credit", "credit", "check"])
    if method == "cash":
        payload["payment_method"] = "cash"
        payload["payment_details"] = {"amount_tendered": 200.0}
    elif method == "credit":
        expired = random.random() < 0.2
        expiry = datetime.now() + timedelta(days=-1 if expired else 365)
        payload["payment_method"] = "credit"
        payload["payment_details"] = {
            "card_number": "4242 4242 4242 4242",
            "card_holder_name": "Test Diner",
            "expiry_date": expiry.isoformat(),
            "cvv": "123",
        }
    elif method == "check":
        payload["payment_method"] = "check"
        payload["payment_details"] = {"cheque_number": "100200", "bank_name": "Main Street Bank"}

    return payload


# =============================================================================
# ORDER FLOW
# =============================================================================

async def place_and_fulfil(
    client: httpx.AsyncClient,
    order_num: int,
    customer_ids: list[int],
    item_ids: list[int],
) -> dict[str, Any]:
    """Place one order and push it through the workflow."""
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=generate_order_payload(customer_ids, item_ids),
            timeout=30.0,
        )
        if response.status_code != 201:
            return {
                "order_num": order_num,
                "success": False,
                "error": response.text[:100],
                "time": round(time.time() - start_time, 3),
            }

        data = response.json()
        order_id = data["order"]["id"]
        payment = data.get("payment") or {}

        # Occasionally the customer changes their mind
        steps = WORKFLOW if random.random() > 0.1 else ["Preparing", "Cancelled"]
        for status in steps:
            await asyncio.sleep(random.uniform(0, 0.05))
            await client.post(
                f"{API_BASE_URL}/api/orders/{order_id}/status",
                json={"status": status},
                timeout=30.0,
            )

        final = (await client.get(f"{API_BASE_URL}/api/orders/{order_id}")).json()
        return {
            "order_num": order_num,
            "success": True,
            "order_id": order_id,
            "total": data["order"]["total_amount"],
            "paid": payment.get("success", False),
            "declined": bool(payment) and not payment.get("success"),
            "final_status": final["status"],
            "time": round(time.time() - start_time, 3),
        }

    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    print("=" * 70)
    print("RUSH HOUR SIMULATION")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        health = await client.get(f"{API_BASE_URL}/health")
        if health.status_code != 200:
            print(f"Health check failed: {health.text}")
            sys.exit(1)

        customer_ids, item_ids = await seed(client)
        print(f"\nSeeded {len(item_ids)} menu items and {len(customer_ids)} customers")

        tasks = [
            place_and_fulfil(client, i + 1, customer_ids, item_ids)
            for i in range(num_orders)
        ]
        results = await asyncio.gather(*tasks)

        stats = (await client.get(f"{API_BASE_URL}/api/notifications/stats")).json()

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nPlaced Orders: {len(successful)}/{num_orders}")
    print(f"Failed Requests: {len(failed)}/{num_orders}")
    print(f"Total Time: {total_time}s")

    if successful:
        by_status: dict[str, int] = {}
        for r in successful:
            by_status[r["final_status"]] = by_status.get(r["final_status"], 0) + 1
        revenue = sum(r["total"] for r in successful if r["paid"])

        print("\nFinal Statuses:")
        for status, count in sorted(by_status.items()):
            print(f"   {status}: {count}")
        print(f"\nPaid up front: {sum(r['paid'] for r in successful)}")
        print(f"Declined payments: {sum(r['declined'] for r in successful)}")
        print(f"Revenue collected: ${revenue:.2f}")

    print("\nNotifications:")
    for key, value in stats.items():
        print(f"   {key}: {value}")

    if failed:
        print("\nFailed Request Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "notifications": stats,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush Hour Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url
    asyncio.run(run_simulation(args.orders))
