"""Settlement sweeps and the query surface over stored signals."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping

from goal_edge.calibration.recorder import CalibrationStore
from goal_edge.common.types import FixtureId, start_of_day, utcnow
from goal_edge.config import get_settings
from goal_edge.notifications.telegram import TelegramNotifier
from goal_edge.signals.factory import create_signal_record
from goal_edge.signals.models import MatchUpdate, SignalRecord, SignalTier
from goal_edge.signals.settlement import SettlementResult, settle_signals
from goal_edge.signals.stats import HitRateStats, calculate_hit_rate
from goal_edge.signals.tracker import SignalTracker

logger = logging.getLogger(__name__)


async def run_settlement_sweep(
    updates: Mapping[FixtureId, MatchUpdate],
    tracker: SignalTracker | None = None,
    calibration: CalibrationStore | None = None,
    notifier: TelegramNotifier | None = None,
    window_minutes: int | None = None,
    now: datetime | None = None,
) -> SettlementResult:
    """Settle stored signals against a batch of match updates.

    Holds the tracker lock for the whole load-settle-save cycle. The store is
    written only when something settled, and only after every newly settled
    signal has been recorded for calibration. A storage failure propagates
    and leaves the stored signals as they were.
    """
    tracker = tracker or SignalTracker()
    calibration = calibration or CalibrationStore()

    async with tracker.lock:
        signals = await tracker.load()
        if not any(s.is_pending for s in signals):
            logger.debug("No pending signals to settle")
            return SettlementResult(updated=signals)

        result = settle_signals(signals, updates, window_minutes=window_minutes, now=now)
        if not result.changed:
            return result

        # Signals are saved only after their calibration records are stored
        for signal in result.newly_settled:
            await calibration.record_settlement(signal)
        await tracker.save(result.updated)

    if notifier is None and get_settings().telegram_enabled:
        notifier = TelegramNotifier()
    if notifier is not None:
        try:
            await notifier.notify_settlement(result, calculate_hit_rate(result.updated))
        finally:
            await notifier.close()

    return result


async def track_signal(
    fixture_id: FixtureId,
    match_name: str,
    minute: int,
    signal_strength: float,
    tier: SignalTier | str,
    reasons: list[str],
    odds: float | None = None,
    line: str = "",
    tracker: SignalTracker | None = None,
) -> SignalRecord:
    """Create a pending signal and add it to the store."""
    tracker = tracker or SignalTracker()
    signal = create_signal_record(
        fixture_id=fixture_id,
        match_name=match_name,
        minute=minute,
        signal_strength=signal_strength,
        tier=tier,
        reasons=reasons,
        odds=odds,
        line=line,
    )
    await tracker.append(signal)
    logger.info(
        "Tracking signal %s for %s at %d' (strength %.0f)",
        signal.id, match_name, minute, signal_strength,
    )
    return signal


async def get_hit_rate_stats(
    tracker: SignalTracker | None = None, since: datetime | None = None,
) -> HitRateStats:
    """Hit-rate statistics over stored signals, optionally since a trigger time."""
    tracker = tracker or SignalTracker()
    return calculate_hit_rate(await tracker.load(), since=since)


async def get_recent_signals(
    limit: int = 20, tracker: SignalTracker | None = None,
) -> list[SignalRecord]:
    tracker = tracker or SignalTracker()
    return await tracker.recent(limit)


def today_start(now: datetime | None = None) -> datetime:
    """Start of the current local day, as an aware datetime."""
    return start_of_day((now or utcnow()).astimezone())
