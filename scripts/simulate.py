"""
Concurrent Order Simulation

Fires many orders at a running API at once and checks that every returned
total matches the menu prices.
Run from project root: python scripts/simulate.py

The menu must already contain available items.
"""

import asyncio
import sys
import random
import time
import argparse
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:5000"
TOTAL_ORDERS = 50

STREETS = ["Main St", "Broadway", "5th Avenue", "Park Ave", "Madison Ave", "Lexington Ave"]
NOTES = [None, "Extra napkins", "Ring doorbell", "Leave at door", "Call on arrival"]


def generate_cart(menu: list[dict]) -> list[dict]:
    """Pick 1-4 distinct menu items with random quantities."""
    picks = random.sample(menu, k=min(len(menu), random.randint(1, 4)))
    return [
        {"menu_item_id": item["id"], "quantity": random.randint(1, 3)}
        for item in picks
    ]


def expected_total(cart: list[dict], prices: dict[int, Decimal]) -> Decimal:
    total = sum(
        (prices[line["menu_item_id"]] * line["quantity"] for line in cart),
        Decimal("0"),
    )
    return total.quantize(Decimal("0.01"))


def generate_order_payload(menu: list[dict]) -> dict[str, Any]:
    """Generate payload for the /api/orders endpoint."""
    return {
        "items": generate_cart(menu),
        "delivery_address": f"{random.randint(1, 999)} {random.choice(STREETS)}",
        "phone": f"555-{random.randint(100, 999)}-{random.randint(1000, 9999)}",
        "notes": random.choice(NOTES),
    }


# =============================================================================
# API HELPERS
# =============================================================================

async def register_user(client: httpx.AsyncClient) -> dict[str, str]:
    """Create a throwaway account and return its auth headers."""
    response = await client.post(
        f"{API_BASE_URL}/api/auth/register",
        json={
            "name": "Load Tester",
            "email": f"load-{uuid.uuid4().hex[:12]}@example.com",
            "password": "simulate123",
        },
    )
    response.raise_for_status()
    return {"Authorization": f"Bearer {response.json()['token']}"}


async def fetch_menu(client: httpx.AsyncClient) -> list[dict]:
    response = await client.get(f"{API_BASE_URL}/api/menu")
    response.raise_for_status()
    return response.json()["menu_items"]


async def send_order(
    client: httpx.AsyncClient,
    headers: dict[str, str],
    menu: list[dict],
    prices: dict[int, Decimal],
    order_num: int,
) -> dict[str, Any]:
    """Place one order and compare its total to the menu prices."""
    payload = generate_order_payload(menu)
    expected = expected_total(payload["items"], prices)
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=payload,
            headers=headers,
            timeout=30.0,
        )
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }

    elapsed = round(time.time() - start_time, 3)

    if response.status_code != 201:
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }

    order = response.json()["order"]
    total = Decimal(str(order["total_amount"])).quantize(Decimal("0.01"))
    return {
        "order_num": order_num,
        "success": True,
        "order_id": order["id"],
        "total": total,
        "expected": expected,
        "total_ok": total == expected,
        "time": elapsed,
    }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the concurrent order simulation.

    Args:
        num_orders: Number of orders to fire at once
    """
    print("=" * 70)
    print("🔥 CONCURRENT ORDER SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        headers = await register_user(client)
        menu = await fetch_menu(client)
        if not menu:
            print("\n❌ The menu has no available items. Add some before simulating.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        prices = {item["id"]: Decimal(str(item["price"])) for item in menu}

        print(f"\n🚀 Firing {num_orders} orders over {len(menu)} menu items...\n")
        start_time = time.time()
        results = await asyncio.gather(*[
            send_order(client, headers, menu, prices, i + 1)
            for i in range(num_orders)
        ])
        total_time = round(time.time() - start_time, 2)

        listing = await client.get(
            f"{API_BASE_URL}/api/orders", headers=headers, params={"limit": 1}
        )
        stored = listing.json().get("total") if listing.status_code == 200 else None

    # Analyze results
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    mismatched = [r for r in successful if not r["total_ok"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"🧮 Totals matching menu prices: {len(successful) - len(mismatched)}/{len(successful)}")
    print(f"🗄️  Orders stored for this user: {stored}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        min_time = min(r["time"] for r in successful)
        max_time = max(r["time"] for r in successful)
        total_revenue = sum((r["total"] for r in successful), Decimal("0"))

        print("\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min_time}s")
        print(f"   Slowest: {max_time}s")
        print(f"   💰 Total Revenue: ${total_revenue:.2f}")

    if mismatched:
        print("\n⚠️  Total mismatches (showing first 5):")
        for r in mismatched[:5]:
            print(f"   Order #{r['order_id']}: got {r['total']}, expected {r['expected']}")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "mismatched": len(mismatched),
        "stored": stored,
        "total_time": total_time,
        "results": results,
    }


async def preflight_checks() -> bool:
    """Check the API is up before the simulation."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT CHECKS")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Health Check...")
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"   ❌ API unreachable: {e}")
            return False

        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False

        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Database: {data.get('database')}")
        print(f"   Redis: {data.get('redis')}")

        print("\n2️⃣ Menu...")
        menu = await fetch_menu(client)
        if not menu:
            print("   ❌ No available menu items")
            return False
        print(f"   ✅ {len(menu)} available item(s)")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent Order Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--skip-checks", action="store_true", help="Skip pre-flight checks")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not args.skip_checks:
        if not asyncio.run(preflight_checks()):
            print("\n❌ Pre-flight checks failed. Fix issues before running simulation.")
            sys.exit(1)
        print("\n✅ Pre-flight checks passed!")

    summary = asyncio.run(run_simulation(num_orders=args.orders))
    sys.exit(0 if summary["failed"] == 0 and summary.get("mismatched", 0) == 0 else 1)
