# api/dashboard/db_manager.py
"""
Business logic for dashboard statistics.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import start_of_facility_day, utcnow
from db_models.asset import AssetCategory, CustodyStatus
from api.alerts import db_manager as alerts_db
from api.assets import queries as asset_queries
from api.custody import queries as custody_queries
from api.holders import queries as holder_queries


async def get_overview_stats(db: AsyncSession) -> dict:
    """
    Holder and asset counts, custody split, today's activity and the number
    of compliance alerts at this moment.
    """
    now = utcnow()

    result = await db.execute(holder_queries.count_holders())
    total_holders = result.scalar() or 0

    result = await db.execute(asset_queries.count_assets_by_category(AssetCategory.ORGANIZATION_OWNED.value))
    organization_owned = result.scalar() or 0

    result = await db.execute(asset_queries.count_assets_by_category(AssetCategory.PERSONALLY_OWNED.value))
    personally_owned = result.scalar() or 0

    result = await db.execute(asset_queries.count_assets_by_status(CustodyStatus.OUT.value))
    checked_out = result.scalar() or 0

    result = await db.execute(custody_queries.count_events_since(start_of_facility_day(now)))
    events_today = result.scalar() or 0

    _, alerts = await alerts_db.detect_alerts(db, now=now)

    total_assets = organization_owned + personally_owned
    return {
        "generated_at": now,
        "total_holders": total_holders,
        "total_assets": total_assets,
        "categories": {
            "organization_owned": organization_owned,
            "personally_owned": personally_owned,
        },
        "custody": {
            "inside": total_assets - checked_out,
            "checked_out": checked_out,
        },
        "events_today": events_today,
        "active_alerts": len(alerts),
    }
