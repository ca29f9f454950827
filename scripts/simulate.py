"""
Storefront Traffic Simulation

Fires concurrent customer and guest sessions at a running API to check
cart atomicity and checkout totals under load.
Run from project root: python scripts/simulate.py

Each simulated customer signs up, clicks "add" on random menu items
concurrently (so several increments race on the same cart row), checks
out, and compares the order total with the total computed locally from
the menu. Each simulated guest fills a guest cart and confirms that
checkout is refused without losing the cart.

The menu must already contain available food items.
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

API_BASE_URL = "http://localhost:8001"
TOTAL_CUSTOMERS = 20
TOTAL_GUESTS = 10

FIRST_NAMES = ["Ayesha", "Rahim", "Nusrat", "Tanvir", "Farhana", "Imran", "Sadia", "Arif", "Mitu", "Sabbir"]
AREAS = ["Dhanmondi", "Mirpur 10", "Uttara Sector 7", "Mohammadpur", "Banani", "Bashundhara R/A"]


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def random_delivery() -> dict[str, str]:
    return {
        "delivery_address": f"House {random.randint(1, 99)}, Road {random.randint(1, 30)}, {random.choice(AREAS)}",
        "phone": f"01{random.randint(3, 9)}{random.randint(10000000, 99999999)}",
        "notes": random.choice([None, "Less spicy", "Call on arrival", "Extra raita"]),
    }


def random_clicks(menu: list[dict]) -> list[int]:
    """Food item ids to add, one entry per click (repeats are intended)."""
    picks = random.sample(menu, k=min(len(menu), random.randint(1, 3)))
    clicks = []
    for item in picks:
        clicks.extend([item["id"]] * random.randint(1, 3))
    random.shuffle(clicks)
    return clicks


async def fetch_menu(client: httpx.AsyncClient) -> list[dict]:
    response = await client.get(f"{API_BASE_URL}/api/catalog/food-items")
    response.raise_for_status()
    return [item for item in response.json() if item["available"]]


# =============================================================================
# CUSTOMER FLOW
# =============================================================================

async def run_customer(
    client: httpx.AsyncClient,
    menu: list[dict],
    num: int,
) -> dict[str, Any]:
    """Sign up, add concurrently, check out, compare totals."""
    start_time = time.time()
    prices = {item["id"]: Decimal(item["price"]) for item in menu}
    clicks = random_clicks(menu)
    expected = sum((prices[food_id] for food_id in clicks), Decimal("0")).quantize(Decimal("0.01"))

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/auth/signup",
            json={
                "email": f"sim-{uuid.uuid4().hex[:10]}@sarminkitchen.com",
                "password": "simulate123",
                "full_name": random.choice(FIRST_NAMES),
            },
        )
        response.raise_for_status()
        headers = auth(response.json()["token"])

        adds = await asyncio.gather(*[
            client.post(f"{API_BASE_URL}/api/cart/items", json={"food_item_id": food_id}, headers=headers)
            for food_id in clicks
        ])
        failed_adds = [r for r in adds if r.status_code != 201]
        if failed_adds:
            raise RuntimeError(f"add failed: {failed_adds[0].text[:80]}")

        cart = (await client.get(f"{API_BASE_URL}/api/cart", headers=headers)).json()
        quantities = {line["food_item_id"]: line["quantity"] for line in cart["items"]}
        lost_clicks = quantities != dict(Counter(clicks))

        response = await client.post(
            f"{API_BASE_URL}/api/orders/checkout",
            json=random_delivery(),
            headers=headers,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code != 201:
            return {"num": num, "success": False, "error": response.text[:100], "time": elapsed, "mode": "customer"}

        total = Decimal(response.json()["total_amount"])
        return {
            "num": num,
            "success": True,
            "order_id": response.json()["id"],
            "total": total,
            "total_matches": total == expected,
            "lost_clicks": lost_clicks,
            "time": elapsed,
            "mode": "customer",
        }
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        return {"num": num, "success": False, "error": str(e)[:100], "time": elapsed, "mode": "customer"}


# =============================================================================
# GUEST FLOW
# =============================================================================

async def run_guest(
    client: httpx.AsyncClient,
    menu: list[dict],
    num: int,
) -> dict[str, Any]:
    """Fill a guest cart; checkout must be refused and the cart kept."""
    start_time = time.time()
    clicks = random_clicks(menu)

    try:
        response = await client.post(f"{API_BASE_URL}/api/sessions/guest")
        response.raise_for_status()
        headers = auth(response.json()["token"])

        for food_id in clicks:
            await client.post(f"{API_BASE_URL}/api/cart/items", json={"food_item_id": food_id}, headers=headers)

        refused = await client.post(
            f"{API_BASE_URL}/api/orders/checkout",
            json=random_delivery(),
            headers=headers,
        )
        cart = (await client.get(f"{API_BASE_URL}/api/cart", headers=headers)).json()
        await client.delete(f"{API_BASE_URL}/api/sessions/current", headers=headers)
        elapsed = round(time.time() - start_time, 3)

        ok = refused.status_code == 401 and cart["total_quantity"] == len(clicks)
        return {
            "num": num,
            "success": ok,
            "error": None if ok else f"checkout {refused.status_code}, cart {cart['total_quantity']}/{len(clicks)}",
            "time": elapsed,
            "mode": "guest",
        }
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        return {"num": num, "success": False, "error": str(e)[:100], "time": elapsed, "mode": "guest"}


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_customers: int = TOTAL_CUSTOMERS,
    num_guests: int = TOTAL_GUESTS,
) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 STOREFRONT SIMULATION - CONCURRENT SESSIONS")
    print("=" * 70)
    print(f"📋 Customers: {num_customers}   Guests: {num_guests}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient(timeout=30.0) as client:
        menu = await fetch_menu(client)
        if not menu:
            print("\n❌ No available food items. Add some in the admin console first.")
            return {"total": 0, "successful": 0, "failed": 0, "results": []}

        tasks = [run_customer(client, menu, i + 1) for i in range(num_customers)]
        tasks += [run_guest(client, menu, i + 1) for i in range(num_guests)]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    orders = [r for r in successful if r["mode"] == "customer"]
    mismatched = [r for r in orders if not r["total_matches"]]
    lost = [r for r in orders if r["lost_clicks"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful flows: {len(successful)}/{len(results)}")
    print(f"❌ Failed flows: {len(failed)}/{len(results)}")
    print(f"⏱️  Total Time: {total_time}s")

    print(f"\n🧾 Orders placed: {len(orders)}")
    print(f"   Totals matching menu prices: {len(orders) - len(mismatched)}/{len(orders)}")
    print(f"   Carts with lost clicks: {len(lost)}")

    if orders:
        avg_time = round(sum(r["time"] for r in orders) / len(orders), 3)
        revenue = sum((r["total"] for r in orders), Decimal("0"))
        print(f"\n📈 Customer flow average: {avg_time}s")
        print(f"   💰 Total Revenue: ৳{revenue:.2f}")

    if failed:
        print("\n⚠️  Failed flow details (showing first 5):")
        for f in failed[:5]:
            print(f"   #{f['num']} [{f['mode']}]: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 NEXT: python scripts/verify.py")
    print("=" * 70)

    return {
        "total": len(results),
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def preflight() -> bool:
    """Health check before firing traffic."""
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"❌ Health check failed: {response.text}")
            return False
        data = response.json()
        print(f"✅ Status: {data.get('status')}")
        print(f"   Database: {data.get('database')}")
        print(f"   Guest storage: {data.get('guest_storage')}")
        print(f"   Assistant: {data.get('assistant_service')}")
        return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Storefront Traffic Simulation")
    parser.add_argument("--customers", type=int, default=TOTAL_CUSTOMERS, help="Signed-in customer flows")
    parser.add_argument("--guests", type=int, default=TOTAL_GUESTS, help="Guest flows")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--skip-checks", action="store_true", help="Skip the health check")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not args.skip_checks and not asyncio.run(preflight()):
        sys.exit(1)

    asyncio.run(run_simulation(num_customers=args.customers, num_guests=args.guests))
