from datetime import datetime, timedelta, timezone

from api.alerts import detector
from api.alerts.models import AlertReason
from db_models.custody_event import CustodyAction, CustodyEvent

UTC = timezone.utc

# Calendar used below: 2026-10-14 is a Wednesday, 10-16 a Friday,
# 10-17 a Saturday and 10-19 a Monday.
WEDNESDAY = datetime(2026, 10, 14, 9, 0, tzinfo=UTC)
FRIDAY_EVENING = datetime(2026, 10, 16, 18, 0, tzinfo=UTC)
SATURDAY_NOON = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)
MONDAY_MORNING = datetime(2026, 10, 19, 8, 0, tzinfo=UTC)


def _event(serial, action, occurred_at, holder_code="EMP1", holder_name="Ada"):
    return CustodyEvent(
        serial=serial,
        holder_code=holder_code,
        holder_name=holder_name,
        action=action.value,
        occurred_at=occurred_at,
    )


def test_weekend_evaluation_is_weekend_stay():
    reason = detector.classify(WEDNESDAY, SATURDAY_NOON, tz=UTC)
    assert reason is AlertReason.WEEKEND_STAY


def test_weekend_wins_even_for_short_stays():
    friday_late = datetime(2026, 10, 16, 23, 0, tzinfo=UTC)
    saturday_early = datetime(2026, 10, 17, 1, 0, tzinfo=UTC)

    alerts = detector.detect(
        [_event("LAP-1", CustodyAction.CHECK_OUT, friday_late)],
        saturday_early,
        tz=UTC,
    )

    assert len(alerts) == 1
    assert alerts[0].reason is AlertReason.WEEKEND_STAY
    assert alerts[0].elapsed_hours == 2


def test_friday_to_monday_is_overtime():
    # 62 hours: the weekday limit matches before the Friday rule is reached
    alerts = detector.detect(
        [_event("LAP-1", CustodyAction.CHECK_OUT, FRIDAY_EVENING)],
        MONDAY_MORNING,
        tz=UTC,
    )

    assert len(alerts) == 1
    assert alerts[0].reason is AlertReason.OVERTIME_WEEKDAY
    assert alerts[0].elapsed_hours == 62


def test_monday_afternoon_reports_elapsed_hours():
    monday_afternoon = datetime(2026, 10, 19, 14, 0, tzinfo=UTC)
    alerts = detector.detect(
        [_event("LAP-1", CustodyAction.CHECK_OUT, FRIDAY_EVENING)],
        monday_afternoon,
        tz=UTC,
    )
    assert alerts[0].reason is AlertReason.OVERTIME_WEEKDAY
    assert alerts[0].elapsed_hours == 68


def test_weekday_limits():
    assert detector.classify(WEDNESDAY, WEDNESDAY + timedelta(hours=24), tz=UTC) is None
    # Strictly greater than the limit
    assert detector.classify(WEDNESDAY, WEDNESDAY + timedelta(hours=38), tz=UTC) is None
    assert (
        detector.classify(WEDNESDAY, WEDNESDAY + timedelta(hours=38, minutes=1), tz=UTC)
        is AlertReason.OVERTIME_WEEKDAY
    )


def test_friday_rule_applies_when_weekday_limit_is_raised():
    friday_morning = datetime(2026, 10, 16, 8, 0, tzinfo=UTC)

    reason = detector.classify(
        friday_morning,
        MONDAY_MORNING,
        tz=UTC,
        weekday_max_hours=100,
    )
    assert reason is AlertReason.WEEKEND_STAY

    # A Tuesday to Friday checkout of the same length is not a weekend stay
    assert detector.classify(
        datetime(2026, 10, 13, 8, 0, tzinfo=UTC),
        friday_morning,
        tz=UTC,
        weekday_max_hours=100,
    ) is None


def test_weekday_is_taken_in_facility_time_zone():
    plus_three = timezone(timedelta(hours=3))
    checked_out = datetime(2026, 10, 16, 22, 0, tzinfo=UTC)
    now = datetime(2026, 10, 16, 23, 30, tzinfo=UTC)

    # Still Friday in UTC, already Saturday at UTC+3
    assert detector.classify(checked_out, now, tz=UTC) is None
    assert detector.classify(checked_out, now, tz=plus_three) is AlertReason.WEEKEND_STAY


def test_naive_timestamps_are_read_as_utc():
    naive = datetime(2026, 10, 14, 9, 0)
    assert detector.elapsed_hours(naive, WEDNESDAY + timedelta(hours=2)) == 2


def test_round_hours_half_up():
    assert detector.round_hours(37.5) == 38
    assert detector.round_hours(37.49) == 37
    assert detector.round_hours(0.0) == 0


def test_detect_skips_check_ins_and_sorts_by_serial():
    events = [
        _event("LAP-C", CustodyAction.CHECK_OUT, WEDNESDAY),
        _event("LAP-A", CustodyAction.CHECK_OUT, WEDNESDAY),
        _event("LAP-B", CustodyAction.CHECK_IN, WEDNESDAY),
    ]

    alerts = detector.detect(events, SATURDAY_NOON, tz=UTC)

    assert [a.serial for a in alerts] == ["LAP-A", "LAP-C"]
    assert all(a.reason is AlertReason.WEEKEND_STAY for a in alerts)
    assert alerts[0].holder_code == "EMP1"
    assert alerts[0].holder_name == "Ada"
    assert alerts[0].checked_out_at == WEDNESDAY


def test_detect_is_deterministic():
    events = [
        _event("LAP-2", CustodyAction.CHECK_OUT, FRIDAY_EVENING),
        _event("LAP-1", CustodyAction.CHECK_OUT, WEDNESDAY),
    ]

    first = detector.detect(events, MONDAY_MORNING, tz=UTC)
    second = detector.detect(list(reversed(events)), MONDAY_MORNING, tz=UTC)

    assert first == second


def test_no_events_no_alerts():
    assert detector.detect([], MONDAY_MORNING, tz=UTC) == []
