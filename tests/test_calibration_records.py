"""Tests for calibration record derivation and the calibration store."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from goal_edge.calibration.buckets import default_table, recalculate_table
from goal_edge.calibration.models import CalibrationRecord, TimePhase
from goal_edge.calibration.recorder import (
    CalibrationStore,
    build_calibration_record,
    extract_league,
    time_phase,
)
from goal_edge.common.kvstore import dump_collection
from goal_edge.signals.models import SignalStatus


def _hit(factory, now, signal_id="sig-1", minute=70, goal=77, **kwargs):
    return factory(
        signal_id,
        trigger_minute=minute,
        status=SignalStatus.HIT,
        settled_at=now,
        goal_minute=goal,
        settlement_note="Goal",
        **kwargs,
    )


def _miss(factory, now, signal_id="sig-2", minute=70, **kwargs):
    return factory(
        signal_id,
        trigger_minute=minute,
        status=SignalStatus.MISS,
        settled_at=now,
        settlement_note="No goal",
        **kwargs,
    )


class TestTimePhase:
    @pytest.mark.parametrize("minute,phase", [
        (0, TimePhase.MID),
        (74, TimePhase.MID),
        (75, TimePhase.LATE),
        (84, TimePhase.LATE),
        (85, TimePhase.EXTRA_LATE),
        (93, TimePhase.EXTRA_LATE),
    ])
    def test_boundaries(self, minute, phase):
        assert time_phase(minute) is phase


class TestExtractLeague:
    def test_fixture_label_has_no_league(self):
        assert extract_league("Arsenal vs Chelsea") is None

    def test_single_name_is_used(self):
        assert extract_league("Premier League") == "Premier League"

    def test_blank_is_none(self):
        assert extract_league("   ") is None


class TestBuildCalibrationRecord:
    def test_hit(self, signal_factory, now):
        record = build_calibration_record(_hit(signal_factory, now, minute=86, goal=88))

        assert record.id == "cal-sig-1"
        assert record.is_hit is True
        assert record.goal_minute == 88
        assert record.signal_strength == 72.0
        assert record.settled_at == now
        assert record.context.minute == 86
        assert record.context.time_phase is TimePhase.EXTRA_LATE
        assert record.context.league is None

    def test_miss_has_no_goal_minute(self, signal_factory, now):
        record = build_calibration_record(_miss(signal_factory, now, match_name="Serie A"))

        assert record.is_hit is False
        assert record.goal_minute is None
        assert record.context.league == "Serie A"

    def test_pending_rejected(self, signal_factory):
        with pytest.raises(ValueError):
            build_calibration_record(signal_factory())

    def test_expired_rejected(self, signal_factory):
        with pytest.raises(ValueError):
            build_calibration_record(signal_factory(status=SignalStatus.EXPIRED))


@pytest.mark.asyncio
async def test_record_settlement_once(calibration_store, signal_factory, now):
    signal = _hit(signal_factory, now)

    first = await calibration_store.record_settlement(signal)
    second = await calibration_store.record_settlement(signal)

    assert first is not None
    assert second is None
    records = await calibration_store.load()
    assert [r.id for r in records] == ["cal-sig-1"]


@pytest.mark.asyncio
async def test_log_is_append_ordered(calibration_store, signal_factory, now):
    await calibration_store.record_settlement(_hit(signal_factory, now, "a"))
    await calibration_store.record_settlement(_miss(signal_factory, now, "b"))
    assert [r.id for r in await calibration_store.load()] == ["cal-a", "cal-b"]


@pytest.mark.asyncio
async def test_log_cap_drops_oldest(kv_store, signal_factory, now):
    store = CalibrationStore(store=kv_store, store_name="c", table_name="t", max_records=3)
    for i in range(5):
        await store.record_settlement(_miss(signal_factory, now, f"s{i}"))
    assert [r.id for r in await store.load()] == ["cal-s2", "cal-s3", "cal-s4"]


@pytest.mark.asyncio
async def test_corrupt_log_loads_empty(calibration_store, kv_store):
    await kv_store.write("calibration_test", dump_collection([{"bogus": True}]))
    assert await calibration_store.load() == []


@pytest.mark.asyncio
async def test_non_string_settled_at_loads_empty(calibration_store, kv_store, signal_factory, now):
    raw = build_calibration_record(_hit(signal_factory, now)).to_dict()
    raw["settled_at"] = 12345
    await kv_store.write("calibration_test", dump_collection([raw]))
    assert await calibration_store.load() == []


@pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
def test_non_bool_is_hit_rejected(signal_factory, now, value):
    raw = build_calibration_record(_miss(signal_factory, now)).to_dict()
    raw["is_hit"] = value
    with pytest.raises(ValueError):
        CalibrationRecord.from_dict(raw)


@pytest.mark.asyncio
async def test_zero_cap_keeps_nothing(kv_store, signal_factory, now):
    store = CalibrationStore(store=kv_store, store_name="c", table_name="t", max_records=0)
    await store.record_settlement(_miss(signal_factory, now))
    assert await store.load() == []


@pytest.mark.asyncio
async def test_table_roundtrip(calibration_store, signal_factory, now):
    assert await calibration_store.load_table() is None

    await calibration_store.record_settlement(_hit(signal_factory, now))
    table = recalculate_table(await calibration_store.load(), now=now)
    await calibration_store.save_table(table)

    loaded = await calibration_store.load_table()
    assert loaded == table


@pytest.mark.asyncio
async def test_export_import_reset(calibration_store, kv_store, signal_factory, now):
    await calibration_store.record_settlement(_hit(signal_factory, now, "a"))
    await calibration_store.save_table(default_table(now))
    exported = await calibration_store.export_json()

    data = json.loads(exported)
    assert data["calibration_table"]["version"] == "v1.0-default"
    assert [r["id"] for r in data["records"]] == ["cal-a"]

    await calibration_store.reset()
    assert await calibration_store.load() == []
    assert await calibration_store.load_table() is None

    other = CalibrationStore(store=kv_store, store_name="other", table_name="other_table")
    assert await other.import_json(exported) is True
    assert [r.id for r in await other.load()] == ["cal-a"]
    assert (await other.load_table()).version == "v1.0-default"


@pytest.mark.asyncio
async def test_import_rejects_garbage(calibration_store):
    assert await calibration_store.import_json("nope") is False
    assert await calibration_store.import_json('{"records": [{"id": 1}]}') is False
    assert await calibration_store.load() == []


def test_settled_at_falls_back_to_signal(signal_factory, now):
    signal = _miss(signal_factory, now - timedelta(minutes=3))
    record = build_calibration_record(signal)
    assert record.settled_at == now - timedelta(minutes=3)
