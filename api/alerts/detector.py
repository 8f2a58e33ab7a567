# api/alerts/detector.py
"""
Calendar-aware classification of organization-owned assets that are out.

Rules, first match wins:

1. the evaluation moment falls on a Saturday or Sunday  -> WEEKEND_STAY
2. out for more than 38 hours                           -> OVERTIME_WEEKDAY
3. checked out on a Friday and out for more than 66 h   -> WEEKEND_STAY

Weekdays are taken in the facility time zone. Rule 3 can only match when
rule 2 does not, so with the default thresholds it never fires; it is kept so
the order stays meaningful if the thresholds are tuned.

Everything here is a pure function of its arguments.
"""
import math
from collections.abc import Iterable
from datetime import datetime, tzinfo

from core.clock import as_utc
from db_models.custody_event import CustodyAction, CustodyEvent
from .models import Alert, AlertReason

WEEKDAY_MAX_HOURS = 38
FRIDAY_MAX_HOURS = 66

FRIDAY = 4
WEEKEND = (5, 6)


def elapsed_hours(since: datetime, now: datetime) -> float:
    return (as_utc(now) - as_utc(since)).total_seconds() / 3600


def round_hours(hours: float) -> int:
    """Round half up, so 37.5 reads as 38."""
    return int(math.floor(hours + 0.5))


def classify(
    checked_out_at: datetime,
    now: datetime,
    *,
    tz: tzinfo,
    weekday_max_hours: float = WEEKDAY_MAX_HOURS,
    friday_max_hours: float = FRIDAY_MAX_HOURS,
) -> AlertReason | None:
    hours = elapsed_hours(checked_out_at, now)

    if as_utc(now).astimezone(tz).weekday() in WEEKEND:
        return AlertReason.WEEKEND_STAY
    if hours > weekday_max_hours:
        return AlertReason.OVERTIME_WEEKDAY
    if as_utc(checked_out_at).astimezone(tz).weekday() == FRIDAY and hours > friday_max_hours:
        return AlertReason.WEEKEND_STAY
    return None


def detect(
    latest_events: Iterable[CustodyEvent],
    now: datetime,
    *,
    tz: tzinfo,
    weekday_max_hours: float = WEEKDAY_MAX_HOURS,
    friday_max_hours: float = FRIDAY_MAX_HOURS,
) -> list[Alert]:
    """
    Build alerts from the latest event of each organization-owned asset.

    Events that are check-ins are skipped. The result is ordered by serial.
    """
    alerts = []
    for event in latest_events:
        if event.action != CustodyAction.CHECK_OUT.value:
            continue

        checked_out_at = as_utc(event.occurred_at)
        reason = classify(
            checked_out_at,
            now,
            tz=tz,
            weekday_max_hours=weekday_max_hours,
            friday_max_hours=friday_max_hours,
        )
        if reason is None:
            continue

        alerts.append(
            Alert(
                serial=event.serial,
                holder_code=event.holder_code,
                holder_name=event.holder_name,
                checked_out_at=checked_out_at,
                elapsed_hours=round_hours(elapsed_hours(checked_out_at, now)),
                reason=reason,
            )
        )

    return sorted(alerts, key=lambda a: a.serial)
