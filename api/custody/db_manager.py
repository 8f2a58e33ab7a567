# api/custody/db_manager.py
"""
Checkpoint scan protocol.

A scanned credential only identifies the asset. Holder, category and custody
status are always re-read from the store before a transition is decided, and
the read-decide-append runs as one transaction guarded by a compare-and-set on
the asset's custody_version.
"""
import csv
import io
from datetime import date, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from core.clock import as_utc, facility_day_bounds, facility_tz, start_of_facility_day, utcnow
from core.errors import PolicyViolation, RedundantAction, StoreUnavailable
from db_models.asset import AssetCategory
from db_models.custody_event import CustodyAction, CustodyEvent
from api.assets import db_manager as assets_db
from api.assets.models import CredentialPayload
from api.holders import db_manager as holders_db
from .models import LiveHolder, ScanReview
from . import ledger, queries

logger = structlog.get_logger(__name__)

EXPORT_HEADERS = ["Timestamp", "Action", "Holder Code", "Holder Name", "Serial"]


async def reconcile_scan(db: AsyncSession, payload: CredentialPayload) -> ScanReview:
    """
    Reconcile a decoded credential against live state.

    Raises:
        NotFound: The credential's serial is not registered
    """
    asset = await assets_db.get_asset_or_raise(db, payload.serial)

    holder = None
    if asset.holder_code:
        holder = await holders_db.find_holder(db, asset.holder_code)

    latest = await ledger.latest_event(db, asset.serial)
    status = ledger.derive_status(latest)

    return ScanReview(
        serial=asset.serial,
        category=AssetCategory(asset.category),
        make=payload.make or asset.make,
        model=payload.model or asset.model,
        color=payload.color or asset.color,
        holder=LiveHolder.model_validate(holder) if holder else None,
        current_status=status,
        last_event_at=as_utc(latest.occurred_at) if latest else None,
        next_action=ledger.next_action(status),
        stale_credential=(payload.holder_code or None) != asset.holder_code,
    )


async def apply_action(
    db: AsyncSession,
    serial: str,
    action: CustodyAction,
    *,
    now: datetime | None = None,
) -> CustodyEvent:
    """
    Record a CHECK_IN or CHECK_OUT for an asset.

    The event carries the live holder snapshot and the acceptance time. When
    a concurrent scan advances the same asset between our read and our write,
    the decision is re-run against the new state, which normally ends in
    RedundantAction.

    Raises:
        NotFound: Unknown asset
        RedundantAction: The asset is already in the requested state
        PolicyViolation: CHECK_OUT of an asset without a holder
        StoreUnavailable: The compare-and-set kept losing
    """
    attempts = settings.CUSTODY_CAS_RETRIES + 1

    for attempt in range(1, attempts + 1):
        asset = await assets_db.get_asset_or_raise(db, serial, for_update=True)
        latest = await ledger.latest_event(db, serial)
        status = ledger.derive_status(latest)

        if ledger.is_redundant(action, status):
            logger.warning(
                "custody_action_rejected",
                serial=serial,
                action=action.value,
                current_status=status.value,
            )
            raise RedundantAction(
                f"Asset {serial} is already checked {status.value}; "
                f"a second {action.value} is not allowed",
                status.value,
            )

        holder = None
        if asset.holder_code:
            holder = await holders_db.find_holder(db, asset.holder_code)
        if action is CustodyAction.CHECK_OUT and holder is None:
            raise PolicyViolation(f"Asset {serial} has no holder; assign it before checking it out")

        occurred_at = as_utc(now) if now else utcnow()
        if latest is not None and as_utc(latest.occurred_at) > occurred_at:
            # Keep the ledger ordered even if the clock stepped back
            occurred_at = as_utc(latest.occurred_at)

        if not await ledger.advance(db, serial, asset.custody_version, action.resulting_status):
            await db.rollback()
            logger.info("custody_cas_conflict", serial=serial, attempt=attempt)
            continue

        event = ledger.new_event(serial, action, holder, occurred_at)
        db.add(event)
        await db.commit()
        await db.refresh(event)

        logger.info(
            "custody_event_recorded",
            serial=serial,
            action=action.value,
            holder_code=event.holder_code,
            event_id=event.id,
        )
        return event

    raise StoreUnavailable(
        f"Custody state of {serial} kept changing during {attempts} attempts; "
        "re-scan before retrying"
    )


async def get_history(
    db: AsyncSession,
    serial: str,
    limit: int | None = None,
) -> list[CustodyEvent]:
    """Ledger for one serial, newest first. Works for retired assets too."""
    return await ledger.history(db, serial, limit=limit)


async def list_events_since(
    db: AsyncSession,
    since: datetime | None = None,
    text: str | None = None,
    limit: int | None = None,
) -> tuple[datetime, list[CustodyEvent]]:
    """Checkpoint activity feed. Defaults to the start of the facility day."""
    since = as_utc(since) if since else start_of_facility_day()
    stmt = queries.select_events_since(since, text=text, limit=limit or settings.FEED_LIMIT)
    result = await db.execute(stmt)
    return since, list(result.scalars().all())


async def export_events(db: AsyncSession, start: date, end: date) -> list[CustodyEvent]:
    """
    Every event from `start` 00:00:00 through `end` 23:59:59 facility time,
    newest first.

    Raises:
        ValueError: If start is after end
    """
    if start > end:
        raise ValueError(f"Start date {start} is after end date {end}")

    lower, upper = facility_day_bounds(start, end)
    result = await db.execute(queries.select_events_between(lower, upper))
    return list(result.scalars().all())


def render_csv(events: list[CustodyEvent]) -> str:
    """Flatten events to CSV with facility-local timestamps."""
    tz = facility_tz()
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(EXPORT_HEADERS)
    for event in events:
        writer.writerow([
            as_utc(event.occurred_at).astimezone(tz).strftime("%Y-%m-%d %H:%M:%S"),
            event.action,
            event.holder_code or "",
            event.holder_name or "",
            event.serial,
        ])
    return buffer.getvalue()
