# core/clock.py
"""
Time helpers.

Timestamps are stored as UTC. SQLite hands DateTime(timezone=True) columns back
as naive values, so everything read from the store goes through as_utc().
Calendar decisions (weekday, start of day) use the facility time zone.
"""
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def facility_tz() -> ZoneInfo:
    return ZoneInfo(settings.FACILITY_TIMEZONE)


def start_of_facility_day(moment: datetime | None = None) -> datetime:
    """Midnight of the facility day containing `moment`, as UTC."""
    tz = facility_tz()
    local = as_utc(moment or utcnow()).astimezone(tz)
    return datetime.combine(local.date(), time.min, tzinfo=tz).astimezone(timezone.utc)


def facility_day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """UTC bounds covering `start` 00:00:00 through `end` 23:59:59 facility time."""
    tz = facility_tz()
    lower = datetime.combine(start, time.min, tzinfo=tz)
    upper = datetime.combine(end, time(23, 59, 59), tzinfo=tz)
    return lower.astimezone(timezone.utc), upper.astimezone(timezone.utc)
