"""Hit-rate statistics over signal records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from goal_edge.signals.models import SignalRecord, SignalStatus, SignalTier


@dataclass(frozen=True)
class HitRateStats:
    """Counts by status plus the hit rate over settled signals.

    hit_rate is round(hits / (hits + misses) * 100), or 0 when nothing is
    settled. Pending and expired signals count toward total only.
    """

    total: int
    hits: int
    misses: int
    pending: int
    hit_rate: int

    @property
    def settled(self) -> int:
        return self.hits + self.misses


def calculate_hit_rate(
    signals: list[SignalRecord], since: datetime | None = None,
) -> HitRateStats:
    """Aggregate signals, optionally only those triggered at or after ``since``."""
    if since is not None:
        signals = [s for s in signals if s.triggered_at >= since]

    hits = sum(1 for s in signals if s.status is SignalStatus.HIT)
    misses = sum(1 for s in signals if s.status is SignalStatus.MISS)
    pending = sum(1 for s in signals if s.status is SignalStatus.PENDING)
    settled = hits + misses

    return HitRateStats(
        total=len(signals),
        hits=hits,
        misses=misses,
        pending=pending,
        hit_rate=_round_half_up(hits / settled * 100) if settled > 0 else 0,
    )


def hit_rate_by_tier(signals: list[SignalRecord]) -> dict[SignalTier, HitRateStats]:
    """Hit-rate statistics for each tier (every tier is present)."""
    return {
        tier: calculate_hit_rate([s for s in signals if s.tier is tier])
        for tier in SignalTier
    }


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; 62.5 must become 63
    return int(value + 0.5)
