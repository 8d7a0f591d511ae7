"""Tests for hit-rate statistics."""

from __future__ import annotations

from datetime import timedelta

from goal_edge.signals.models import SignalStatus, SignalTier
from goal_edge.signals.stats import HitRateStats, calculate_hit_rate, hit_rate_by_tier


def _signals(factory, hits=0, misses=0, pending=0, **kwargs):
    out = []
    for status, count in ((SignalStatus.HIT, hits), (SignalStatus.MISS, misses), (SignalStatus.PENDING, pending)):
        for i in range(count):
            out.append(factory(f"{status.value}-{i}", status=status, **kwargs))
    return out


def test_scenario_six_hits_four_misses_three_pending(signal_factory):
    stats = calculate_hit_rate(_signals(signal_factory, hits=6, misses=4, pending=3))
    assert stats == HitRateStats(total=13, hits=6, misses=4, pending=3, hit_rate=60)


def test_empty_is_zero():
    stats = calculate_hit_rate([])
    assert stats.total == 0
    assert stats.hit_rate == 0


def test_only_pending_is_zero(signal_factory):
    stats = calculate_hit_rate(_signals(signal_factory, pending=4))
    assert stats.pending == 4
    assert stats.hit_rate == 0


def test_pending_does_not_affect_hit_rate(signal_factory):
    base = _signals(signal_factory, hits=2, misses=1)
    with_pending = base + _signals(signal_factory, pending=50)
    assert calculate_hit_rate(base).hit_rate == calculate_hit_rate(with_pending).hit_rate == 67


def test_expired_counts_only_toward_total(signal_factory):
    signals = _signals(signal_factory, hits=1, misses=1)
    signals.append(signal_factory("exp", status=SignalStatus.EXPIRED))
    stats = calculate_hit_rate(signals)
    assert stats.total == 3
    assert stats.settled == 2
    assert stats.hit_rate == 50


def test_half_rounds_up(signal_factory):
    # 5 / 8 = 62.5%
    stats = calculate_hit_rate(_signals(signal_factory, hits=5, misses=3))
    assert stats.hit_rate == 63


def test_since_filters_by_trigger_time(signal_factory, now):
    today = now.replace(hour=0, minute=0)
    old = _signals(signal_factory, hits=3, triggered_at=today - timedelta(hours=2))
    new = _signals(signal_factory, misses=1, pending=1, triggered_at=today + timedelta(hours=1))

    stats = calculate_hit_rate(old + new, since=today)
    assert stats.total == 2
    assert stats.hits == 0
    assert stats.misses == 1
    assert stats.hit_rate == 0


def test_since_is_inclusive(signal_factory, now):
    signals = [signal_factory(status=SignalStatus.HIT, triggered_at=now)]
    assert calculate_hit_rate(signals, since=now).hits == 1


def test_by_tier(signal_factory):
    signals = (
        _signals(signal_factory, hits=3, misses=1, tier=SignalTier.HIGH)
        + _signals(signal_factory, misses=2, tier=SignalTier.LOW)
    )
    by_tier = hit_rate_by_tier(signals)

    assert set(by_tier) == set(SignalTier)
    assert by_tier[SignalTier.HIGH].hit_rate == 75
    assert by_tier[SignalTier.LOW].hit_rate == 0
    assert by_tier[SignalTier.WATCH].total == 0
