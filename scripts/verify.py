"""
Order Integrity Verification Script

Audits the orders table against its line items:
    - stored total == Σ(item price × quantity)
    - every order has at least one item
Run from project root: python scripts/verify.py
"""

import asyncio
import os
import sys
from collections import Counter
from datetime import datetime
from decimal import Decimal

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from storefront.core.config import get_settings
from storefront.database import async_session_maker, engine
from storefront.models import Order


async def verify_orders() -> bool:
    """Verify order totals and items; True when no problems were found."""
    settings = get_settings()

    print("=" * 60)
    print("🔍 ORDER INTEGRITY REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"🗄️  Database: {settings.database_url.split('@')[-1]}")
    print("=" * 60)

    async with async_session_maker() as db:
        result = await db.execute(select(Order).order_by(Order.id))
        orders = list(result.scalars().all())

    await engine.dispose()

    if not orders:
        print("\n⚠️ No orders found. Run the simulation first: python scripts/simulate.py")
        return True

    mismatched = []
    empty = []
    for order in orders:
        if not order.items:
            empty.append(order)
            continue
        expected = sum(
            (Decimal(item.price) * item.quantity for item in order.items),
            Decimal("0"),
        ).quantize(Decimal("0.01"))
        if Decimal(order.total_amount) != expected:
            mismatched.append((order, expected))

    statuses = Counter(order.status.value for order in orders)
    revenue = sum((Decimal(o.total_amount) for o in orders), Decimal("0"))

    print(f"\n📊 STATISTICS:")
    print(f"   Total Orders: {len(orders)}")
    for status, count in sorted(statuses.items()):
        print(f"   {status:<10} {count}")
    print(f"\n💰 REVENUE: {settings.currency_symbol}{revenue:.2f}")

    if mismatched:
        print(f"\n⚠️ {len(mismatched)} orders whose total differs from their items:")
        for order, expected in mismatched[:10]:
            print(f"   Order #{order.id}: stored {order.total_amount}, items {expected}")
    else:
        print(f"\n✅ Every order total matches its items")

    if empty:
        print(f"\n⚠️ {len(empty)} orders without items: {[o.id for o in empty[:10]]}")
    else:
        print(f"✅ No orders without items")

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE")
    print("=" * 60)

    return not mismatched and not empty


if __name__ == "__main__":
    ok = asyncio.run(verify_orders())
    sys.exit(0 if ok else 1)
