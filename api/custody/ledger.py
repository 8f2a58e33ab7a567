# api/custody/ledger.py
"""
Custody state machine.

An asset is either IN or OUT. Its status is the action of its latest custody
event, IN when it has none. The ledger only ever grows, and for a given serial
the actions strictly alternate. The denormalized Asset.custody_status column
follows the ledger through advance(), which must run in the same transaction
as the event append.
"""
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import utcnow
from db_models.asset import CustodyStatus
from db_models.custody_event import CustodyAction, CustodyEvent
from db_models.holder import Holder
from . import queries


def derive_status(latest: CustodyEvent | None) -> CustodyStatus:
    if latest is None:
        return CustodyStatus.IN
    return CustodyAction(latest.action).resulting_status


def is_redundant(action: CustodyAction, status: CustodyStatus) -> bool:
    """CHECK_IN while IN or CHECK_OUT while OUT."""
    return action.resulting_status is status


def next_action(status: CustodyStatus) -> CustodyAction:
    return CustodyAction.CHECK_OUT if status is CustodyStatus.IN else CustodyAction.CHECK_IN


def is_alternating(events: Iterable[CustodyEvent]) -> bool:
    """True when no two consecutive events share an action."""
    previous = None
    for event in events:
        if event.action == previous:
            return False
        previous = event.action
    return True


async def latest_event(db: AsyncSession, serial: str) -> CustodyEvent | None:
    result = await db.execute(queries.select_events_for_serial(serial, limit=1))
    return result.scalar_one_or_none()


async def current_status(db: AsyncSession, serial: str) -> CustodyStatus:
    return derive_status(await latest_event(db, serial))


async def history(db: AsyncSession, serial: str, limit: int | None = None) -> list[CustodyEvent]:
    result = await db.execute(queries.select_events_for_serial(serial, limit=limit))
    return list(result.scalars().all())


def new_event(
    serial: str,
    action: CustodyAction,
    holder: Holder | None,
    occurred_at: datetime | None = None,
) -> CustodyEvent:
    """Build (not persist) an event carrying a snapshot of the live holder."""
    return CustodyEvent(
        serial=serial,
        holder_code=holder.holder_code if holder else None,
        holder_name=holder.name if holder else None,
        action=action.value,
        occurred_at=occurred_at or utcnow(),
    )


async def advance(
    db: AsyncSession,
    serial: str,
    expected_version: int,
    status: CustodyStatus,
) -> bool:
    """
    Compare-and-set the asset's custody status.

    Returns False when the asset's custody_version no longer equals
    `expected_version`; the caller must roll back and decide again.
    """
    result = await db.execute(queries.advance_custody_stmt(serial, expected_version, status.value))
    return result.rowcount == 1
