# api/custody/queries.py
"""
SQLAlchemy query builders for the custody ledger.
"""
from datetime import datetime

from sqlalchemy import select, update, or_, func

from db_models.asset import Asset
from db_models.custody_event import CustodyEvent


def select_events_for_serial(serial: str, limit: int | None = None):
    """
    Custody events for one serial, newest first. Ties on the timestamp are
    broken by insertion order.
    """
    stmt = (
        select(CustodyEvent)
        .where(CustodyEvent.serial == serial)
        .order_by(CustodyEvent.occurred_at.desc(), CustodyEvent.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


def advance_custody_stmt(serial: str, expected_version: int, new_status: str):
    """
    Conditional write used as the compare-and-set for a custody transition.
    Matches zero rows when another transaction advanced the asset first.
    """
    return (
        update(Asset)
        .where(
            Asset.serial == serial,
            Asset.custody_version == expected_version,
        )
        .values(
            custody_status=new_status,
            custody_version=expected_version + 1,
        )
        .execution_options(synchronize_session=False)
    )


def select_events_between(start: datetime, end: datetime):
    """Events with start <= occurred_at <= end, newest first."""
    return (
        select(CustodyEvent)
        .where(
            CustodyEvent.occurred_at >= start,
            CustodyEvent.occurred_at <= end,
        )
        .order_by(CustodyEvent.occurred_at.desc(), CustodyEvent.id.desc())
    )


def select_events_since(start: datetime, text: str | None = None, limit: int = 50):
    """Activity feed: events since `start`, optionally matching holder name or code."""
    stmt = select(CustodyEvent).where(CustodyEvent.occurred_at >= start)
    if text:
        pattern = f"%{text.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(CustodyEvent.holder_name).like(pattern),
                func.lower(CustodyEvent.holder_code).like(pattern),
            )
        )
    return stmt.order_by(CustodyEvent.occurred_at.desc(), CustodyEvent.id.desc()).limit(limit)


def count_events_since(start: datetime):
    return select(func.count(CustodyEvent.id)).where(CustodyEvent.occurred_at >= start)
