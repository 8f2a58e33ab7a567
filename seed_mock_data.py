"""
Seed Mock Data for the Asset Custody API
========================================
Follows the natural flow of the checkpoint:

1. HOLDERS - staff are registered with their unit
2. ASSETS - company laptops are registered and bound, personal laptops are
   registered with their owner (and checked in on registration)
3. CUSTODY - a few days of check-ins and check-outs, including one company
   laptop that never came back, so the alert list is not empty

Everything goes through the same operations the API uses, so the seeded data
satisfies the assignment and alternation rules.

Run: python seed_mock_data.py
"""
import asyncio
from datetime import timedelta

from core.clock import utcnow
from core.errors import CustodyError
from db import AsyncSessionLocal
from db_models.asset import AssetCategory
from db_models.custody_event import CustodyAction
from api.assets import db_manager as assets_db
from api.custody import db_manager as custody_db
from api.holders import db_manager as holders_db


HOLDERS = [
    {"holder_code": "EMP1001", "name": "Grace Wanjiru", "unit": "Finance - 3rd Floor"},
    {"holder_code": "EMP1002", "name": "Brian Otieno", "unit": "IT - 5th Floor"},
    {"holder_code": "EMP1003", "name": "Amina Hassan", "unit": "Claims - 2nd Floor"},
    {"holder_code": "EMP1004", "name": "Peter Kamau", "unit": "Legal - 4th Floor"},
]

ASSETS = [
    {"serial": "LAP-ORG-101", "category": AssetCategory.ORGANIZATION_OWNED, "make": "Dell", "model": "Latitude 5440", "color": "Black", "holder_code": "EMP1001"},
    {"serial": "LAP-ORG-102", "category": AssetCategory.ORGANIZATION_OWNED, "make": "HP", "model": "EliteBook 840", "color": "Silver", "holder_code": "EMP1002"},
    {"serial": "LAP-ORG-103", "category": AssetCategory.ORGANIZATION_OWNED, "make": "Lenovo", "model": "ThinkPad T14", "color": "Black", "holder_code": "EMP1003"},
    {"serial": "LAP-ORG-104", "category": AssetCategory.ORGANIZATION_OWNED, "make": "Dell", "model": "Latitude 7440", "color": "Grey", "holder_code": None},
    {"serial": "LAP-BYO-201", "category": AssetCategory.PERSONALLY_OWNED, "make": "Apple", "model": "MacBook Air", "color": "Gold", "holder_code": "EMP1002"},
    {"serial": "LAP-BYO-202", "category": AssetCategory.PERSONALLY_OWNED, "make": "Asus", "model": "ZenBook 14", "color": "Blue", "holder_code": "EMP1004"},
]

# (serial, action, hours ago)
CUSTODY = [
    ("LAP-ORG-101", CustodyAction.CHECK_OUT, 72),
    ("LAP-ORG-101", CustodyAction.CHECK_IN, 60),
    ("LAP-ORG-102", CustodyAction.CHECK_OUT, 50),   # still out
    ("LAP-ORG-103", CustodyAction.CHECK_OUT, 20),
    ("LAP-ORG-103", CustodyAction.CHECK_IN, 8),
    ("LAP-BYO-201", CustodyAction.CHECK_OUT, 10),
    ("LAP-ORG-101", CustodyAction.CHECK_OUT, 2),    # still out
]


async def seed_database():
    now = utcnow()
    async with AsyncSessionLocal() as db:
        print("Seeding holders...")
        for data in HOLDERS:
            try:
                await holders_db.create_holder(db, data["holder_code"], data["name"], unit=data["unit"])
                print(f"  [OK] {data['holder_code']} {data['name']}")
            except CustodyError as exc:
                print(f"  [SKIP] {data['holder_code']}: {exc.message}")

        print("Seeding assets...")
        for data in ASSETS:
            try:
                await assets_db.register_asset(
                    db,
                    data["serial"],
                    data["category"],
                    data["make"],
                    data["model"],
                    data["color"],
                    holder_code=data["holder_code"],
                )
                print(f"  [OK] {data['serial']} -> {data['holder_code'] or 'unassigned'}")
            except CustodyError as exc:
                print(f"  [SKIP] {data['serial']}: {exc.message}")

        print("Seeding custody history...")
        for serial, action, hours_ago in CUSTODY:
            try:
                event = await custody_db.apply_action(
                    db, serial, action, now=now - timedelta(hours=hours_ago)
                )
                print(f"  [OK] {serial} {action.value} at {event.occurred_at:%Y-%m-%d %H:%M}")
            except CustodyError as exc:
                print(f"  [SKIP] {serial} {action.value}: {exc.message}")

    print("\nSeed complete.")


if __name__ == "__main__":
    asyncio.run(seed_database())
