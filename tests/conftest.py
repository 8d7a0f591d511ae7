"""Shared test fixtures."""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from goal_edge.calibration.recorder import CalibrationStore
from goal_edge.common.kvstore import KeyValueStore
from goal_edge.signals.models import SignalRecord, SignalStatus, SignalTier
from goal_edge.signals.tracker import SignalTracker

NOW = datetime(2026, 3, 14, 20, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def tmp_db():
    """Create a temporary database file for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test_signals.db"


@pytest.fixture
def kv_store(tmp_db):
    return KeyValueStore(db_path=tmp_db, database_url="")


@pytest.fixture
def tracker(kv_store, now):
    """Signal tracker on a temporary database with a fixed clock."""
    return SignalTracker(
        store=kv_store, store_name="signals_test", retention_days=7, clock=lambda: now,
    )


@pytest.fixture
def calibration_store(kv_store):
    return CalibrationStore(
        store=kv_store,
        store_name="calibration_test",
        table_name="calibration_table_test",
        max_records=5000,
    )


def make_signal(
    signal_id: str = "sig-1",
    fixture_id: int = 1001,
    match_name: str = "Arsenal vs Chelsea",
    trigger_minute: int = 70,
    signal_strength: float = 72.0,
    tier: SignalTier = SignalTier.HIGH,
    triggered_at: datetime | None = None,
    status: SignalStatus = SignalStatus.PENDING,
    **kwargs,
) -> SignalRecord:
    return SignalRecord(
        id=signal_id,
        fixture_id=fixture_id,
        match_name=match_name,
        triggered_at=triggered_at or NOW - timedelta(minutes=5),
        trigger_minute=trigger_minute,
        signal_strength=signal_strength,
        tier=tier,
        reasons=["Pressure surge", "Corners 4 in 10'", "Trailing favourite"],
        odds_at_trigger=1.85,
        line_at_trigger="O 2.5",
        status=status,
        **kwargs,
    )


@pytest.fixture
def signal_factory():
    return make_signal
