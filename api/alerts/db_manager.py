# api/alerts/db_manager.py
"""
Store access for the compliance alert detector. Read-only.
"""
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from core.clock import as_utc, facility_tz, utcnow
from db_models.asset import AssetCategory
from api.assets import queries as asset_queries
from api.custody import ledger
from .models import Alert
from . import detector

logger = structlog.get_logger(__name__)


async def latest_events_for_category(db: AsyncSession, category: AssetCategory) -> list:
    """The most recent custody event of every asset in `category` that has one."""
    result = await db.execute(asset_queries.select_assets_by_category(category.value))
    latest = []
    for asset in result.scalars().all():
        event = await ledger.latest_event(db, asset.serial)
        if event is not None:
            latest.append(event)
    return latest


async def detect_alerts(db: AsyncSession, now: datetime | None = None) -> tuple[datetime, list[Alert]]:
    """Evaluate every organization-owned asset at `now` (default: the current time)."""
    now = as_utc(now) if now else utcnow()
    events = await latest_events_for_category(db, AssetCategory.ORGANIZATION_OWNED)

    alerts = detector.detect(
        events,
        now,
        tz=facility_tz(),
        weekday_max_hours=settings.ALERT_WEEKDAY_MAX_HOURS,
        friday_max_hours=settings.ALERT_FRIDAY_MAX_HOURS,
    )
    logger.info("alerts_detected", evaluated_at=now.isoformat(), count=len(alerts))
    return now, alerts
