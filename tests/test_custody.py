from datetime import date, datetime, timedelta, timezone

import pytest

from core.clock import as_utc
from core.errors import NotFound, PolicyViolation, RedundantAction, StoreUnavailable
from db_models.asset import AssetCategory, CustodyStatus
from db_models.custody_event import CustodyAction
from api.assets import db_manager as assets_db
from api.assets.models import CredentialPayload
from api.custody import db_manager as custody_db
from api.custody import ledger, queries
from api.holders import db_manager as holders_db

UTC = timezone.utc
ORG = AssetCategory.ORGANIZATION_OWNED
BYO = AssetCategory.PERSONALLY_OWNED

CHECK_IN = CustodyAction.CHECK_IN
CHECK_OUT = CustodyAction.CHECK_OUT


@pytest.fixture
async def custody(db_session):
    db = db_session
    await holders_db.create_holder(db, "EMP1001", "Ada Lovelace", unit="R&D")
    await holders_db.create_holder(db, "EMP1002", "Alan Turing", unit="Ops")
    await assets_db.register_asset(db, "A1", ORG, "Dell", "Latitude", holder_code="EMP1001")
    await assets_db.register_asset(db, "A2", ORG, "HP", "EliteBook", holder_code="EMP1002")
    return db


@pytest.mark.anyio
async def test_check_out_then_in(custody):
    db = custody

    event = await custody_db.apply_action(db, "A1", CHECK_OUT)
    assert event.action == CHECK_OUT.value
    assert event.holder_code == "EMP1001"
    assert event.holder_name == "Ada Lovelace"
    assert await ledger.current_status(db, "A1") is CustodyStatus.OUT

    await custody_db.apply_action(db, "A1", CHECK_IN)
    assert await ledger.current_status(db, "A1") is CustodyStatus.IN

    asset = await assets_db.get_asset_or_raise(db, "A1")
    assert asset.custody_status == CustodyStatus.IN.value
    assert asset.custody_version == 2


@pytest.mark.anyio
async def test_second_check_out_is_rejected(custody):
    db = custody
    await custody_db.apply_action(db, "A1", CHECK_OUT)

    with pytest.raises(RedundantAction) as excinfo:
        await custody_db.apply_action(db, "A1", CHECK_OUT)

    assert excinfo.value.current_status == "OUT"
    assert len(await ledger.history(db, "A1")) == 1


@pytest.mark.anyio
async def test_check_in_without_history_is_redundant(custody):
    with pytest.raises(RedundantAction) as excinfo:
        await custody_db.apply_action(custody, "A1", CHECK_IN)
    assert excinfo.value.current_status == "IN"


@pytest.mark.anyio
async def test_ledger_alternates(custody):
    db = custody
    start = datetime(2026, 10, 12, 8, 0, tzinfo=UTC)
    for i, action in enumerate([CHECK_OUT, CHECK_IN, CHECK_OUT, CHECK_IN]):
        await custody_db.apply_action(db, "A1", action, now=start + timedelta(hours=i))
        with pytest.raises(RedundantAction):
            await custody_db.apply_action(db, "A1", action, now=start + timedelta(hours=i, minutes=1))

    events = await custody_db.get_history(db, "A1")
    assert len(events) == 4
    assert ledger.is_alternating(events)
    assert events[0].action == CHECK_IN.value


@pytest.mark.anyio
async def test_check_out_requires_holder(custody):
    db = custody
    await assets_db.register_asset(db, "A3", ORG, "Lenovo", "ThinkPad")

    with pytest.raises(PolicyViolation):
        await custody_db.apply_action(db, "A3", CHECK_OUT)
    assert await ledger.history(db, "A3") == []


@pytest.mark.anyio
async def test_unknown_asset(custody):
    with pytest.raises(NotFound):
        await custody_db.apply_action(custody, "NOPE", CHECK_OUT)


@pytest.mark.anyio
async def test_event_keeps_holder_snapshot(custody):
    db = custody
    await custody_db.apply_action(db, "A1", CHECK_OUT)
    await holders_db.update_holder(db, "EMP1001", name="Ada King")
    await custody_db.apply_action(db, "A1", CHECK_IN)

    newest, oldest = await ledger.history(db, "A1")
    assert oldest.holder_name == "Ada Lovelace"
    assert newest.holder_name == "Ada King"


@pytest.mark.anyio
async def test_timestamps_never_go_backwards(custody):
    db = custody
    moment = datetime(2026, 10, 14, 12, 0, tzinfo=UTC)
    await custody_db.apply_action(db, "A1", CHECK_OUT, now=moment)

    event = await custody_db.apply_action(db, "A1", CHECK_IN, now=moment - timedelta(hours=1))

    assert as_utc(event.occurred_at) == moment
    assert (await ledger.latest_event(db, "A1")).action == CHECK_IN.value


@pytest.mark.anyio
async def test_advance_with_stale_version(custody):
    db = custody
    assert await ledger.advance(db, "A1", 5, CustodyStatus.OUT) is False
    assert await ledger.advance(db, "A1", 0, CustodyStatus.OUT) is True
    await db.commit()

    asset = await assets_db.get_asset_or_raise(db, "A1")
    assert asset.custody_version == 1
    assert asset.custody_status == CustodyStatus.OUT.value


@pytest.mark.anyio
async def test_concurrent_scan_converges(custody, monkeypatch):
    """Two checkpoints scan the same asset; the slower one sees the new state."""
    db = custody
    real_advance = ledger.advance
    calls = {"n": 0}

    async def racing_advance(session, serial, expected_version, status):
        calls["n"] += 1
        if calls["n"] == 1:
            # Another checkpoint commits its CHECK_OUT first
            holder = await holders_db.find_holder(session, "EMP1001")
            session.add(ledger.new_event(serial, CHECK_OUT, holder))
            await session.execute(queries.advance_custody_stmt(serial, expected_version, CustodyStatus.OUT.value))
            await session.commit()
        return await real_advance(session, serial, expected_version, status)

    monkeypatch.setattr(ledger, "advance", racing_advance)

    with pytest.raises(RedundantAction):
        await custody_db.apply_action(db, "A1", CHECK_OUT)

    assert calls["n"] == 1
    events = await ledger.history(db, "A1")
    assert len(events) == 1
    assert ledger.is_alternating(events)


@pytest.mark.anyio
async def test_cas_gives_up_after_retries(custody, monkeypatch):
    db = custody

    async def always_stale(*args, **kwargs):
        return False

    monkeypatch.setattr(ledger, "advance", always_stale)

    with pytest.raises(StoreUnavailable):
        await custody_db.apply_action(db, "A1", CHECK_OUT)
    assert await ledger.history(db, "A1") == []


@pytest.mark.anyio
async def test_scan_reads_live_state(custody):
    db = custody
    stale = CredentialPayload(serial="A1", holder_code="EMP1002", holder_name="Alan Turing", make="Dell")

    review = await custody_db.reconcile_scan(db, stale)
    assert review.holder.holder_code == "EMP1001"
    assert review.holder.name == "Ada Lovelace"
    assert review.stale_credential is True
    assert review.current_status is CustodyStatus.IN
    assert review.next_action is CHECK_OUT
    assert review.last_event_at is None

    await custody_db.apply_action(db, "A1", CHECK_OUT)
    review = await custody_db.reconcile_scan(db, CredentialPayload(serial="A1", holder_code="EMP1001"))
    assert review.stale_credential is False
    assert review.current_status is CustodyStatus.OUT
    assert review.next_action is CHECK_IN
    assert review.last_event_at is not None

    with pytest.raises(NotFound):
        await custody_db.reconcile_scan(db, CredentialPayload(serial="NOPE"))


@pytest.mark.anyio
async def test_history_survives_retirement(custody):
    db = custody
    await custody_db.apply_action(db, "A1", CHECK_OUT)

    with pytest.raises(PolicyViolation):
        await assets_db.retire_asset(db, "A1")

    await custody_db.apply_action(db, "A1", CHECK_IN)
    await assets_db.retire_asset(db, "A1")

    assert await assets_db.find_asset(db, "A1") is None
    events = await custody_db.get_history(db, "A1")
    assert [e.action for e in events] == [CHECK_IN.value, CHECK_OUT.value]


@pytest.mark.anyio
async def test_personal_asset_reregistered_after_retirement(custody):
    db = custody
    await assets_db.register_asset(db, "P1", BYO, "Apple", "MacBook", holder_code="EMP1001")
    await custody_db.apply_action(db, "P1", CHECK_OUT)
    await custody_db.apply_action(db, "P1", CHECK_IN)
    await assets_db.retire_asset(db, "P1")

    asset = await assets_db.register_asset(db, "P1", BYO, "Apple", "MacBook", holder_code="EMP1002")

    events = await custody_db.get_history(db, "P1")
    assert [e.action for e in events] == [CHECK_IN.value, CHECK_OUT.value, CHECK_IN.value]
    assert ledger.is_alternating(events)
    assert asset.custody_status == CustodyStatus.IN.value

    # The continued ledger still drives the next transition
    event = await custody_db.apply_action(db, "P1", CHECK_OUT)
    assert event.holder_code == "EMP1002"
    assert ledger.is_alternating(await custody_db.get_history(db, "P1"))


@pytest.mark.anyio
async def test_organization_asset_reregistered_after_retirement(custody):
    db = custody
    await custody_db.apply_action(db, "A1", CHECK_OUT)
    await custody_db.apply_action(db, "A1", CHECK_IN)
    await assets_db.retire_asset(db, "A1")

    asset = await assets_db.register_asset(db, "A1", ORG, "Dell", "Latitude", holder_code="EMP1001")

    events = await custody_db.get_history(db, "A1")
    assert [e.action for e in events] == [CHECK_IN.value, CHECK_OUT.value]
    assert asset.custody_status == CustodyStatus.IN.value

    with pytest.raises(RedundantAction):
        await custody_db.apply_action(db, "A1", CHECK_IN)
    await custody_db.apply_action(db, "A1", CHECK_OUT)
    assert ledger.is_alternating(await custody_db.get_history(db, "A1"))


@pytest.mark.anyio
async def test_activity_feed(custody):
    db = custody
    day = datetime(2026, 10, 16, 0, 0, tzinfo=UTC)
    await custody_db.apply_action(db, "A1", CHECK_OUT, now=day - timedelta(hours=2))
    await custody_db.apply_action(db, "A1", CHECK_IN, now=day + timedelta(hours=8))
    await custody_db.apply_action(db, "A2", CHECK_OUT, now=day + timedelta(hours=9))

    since, events = await custody_db.list_events_since(db, since=day)
    assert since == day
    assert [(e.serial, e.action) for e in events] == [("A2", CHECK_OUT.value), ("A1", CHECK_IN.value)]

    _, events = await custody_db.list_events_since(db, since=day, text="turing")
    assert [e.serial for e in events] == ["A2"]

    _, events = await custody_db.list_events_since(db, since=day, limit=1)
    assert len(events) == 1


@pytest.mark.anyio
async def test_export_range_and_csv(custody):
    db = custody
    await custody_db.apply_action(db, "A1", CHECK_OUT, now=datetime(2026, 10, 15, 10, 0, tzinfo=UTC))
    await custody_db.apply_action(db, "A1", CHECK_IN, now=datetime(2026, 10, 16, 0, 0, tzinfo=UTC))
    await custody_db.apply_action(db, "A1", CHECK_OUT, now=datetime(2026, 10, 16, 23, 59, 59, tzinfo=UTC))
    await custody_db.apply_action(db, "A1", CHECK_IN, now=datetime(2026, 10, 17, 0, 0, tzinfo=UTC))

    events = await custody_db.export_events(db, date(2026, 10, 16), date(2026, 10, 16))
    assert [e.action for e in events] == [CHECK_OUT.value, CHECK_IN.value]

    lines = custody_db.render_csv(events).splitlines()
    assert lines[0] == '"Timestamp","Action","Holder Code","Holder Name","Serial"'
    assert lines[1] == '"2026-10-16 23:59:59","CHECK_OUT","EMP1001","Ada Lovelace","A1"'
    assert lines[2] == '"2026-10-16 00:00:00","CHECK_IN","EMP1001","Ada Lovelace","A1"'

    everything = await custody_db.export_events(db, date(2026, 10, 15), date(2026, 10, 17))
    assert len(everything) == 4

    with pytest.raises(ValueError):
        await custody_db.export_events(db, date(2026, 10, 17), date(2026, 10, 16))


@pytest.mark.anyio
async def test_personal_asset_custody(custody):
    db = custody
    await assets_db.register_asset(db, "P1", BYO, "Apple", "MacBook", holder_code="EMP1001")

    with pytest.raises(RedundantAction):
        await custody_db.apply_action(db, "P1", CHECK_IN)

    event = await custody_db.apply_action(db, "P1", CHECK_OUT)
    assert event.holder_code == "EMP1001"
    assert ledger.is_alternating(await ledger.history(db, "P1"))
