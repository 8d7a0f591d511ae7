"""Signal record creation."""

from __future__ import annotations

import uuid
from datetime import datetime

from goal_edge.common.types import FixtureId, utcnow
from goal_edge.signals.models import SignalRecord, SignalStatus, SignalTier

_MAX_REASONS = 3


def new_signal_id(fixture_id: FixtureId, now: datetime) -> str:
    """Build a unique signal id: fixture, trigger epoch millis, random suffix."""
    millis = int(now.timestamp() * 1000)
    return f"{fixture_id}-{millis}-{uuid.uuid4().hex[:8]}"


def create_signal_record(
    fixture_id: FixtureId,
    match_name: str,
    minute: int,
    signal_strength: float,
    tier: SignalTier | str,
    reasons: list[str],
    odds: float | None = None,
    line: str = "",
    now: datetime | None = None,
) -> SignalRecord:
    """Create a new pending signal.

    Ranges are not checked here: callers supply a non-negative minute and a
    strength on the 0-100 scale. Only the first three reasons are kept.
    """
    now = now or utcnow()
    return SignalRecord(
        id=new_signal_id(fixture_id, now),
        fixture_id=fixture_id,
        match_name=match_name,
        triggered_at=now,
        trigger_minute=minute,
        signal_strength=signal_strength,
        tier=SignalTier(tier),
        reasons=list(reasons[:_MAX_REASONS]),
        odds_at_trigger=odds,
        line_at_trigger=line,
        status=SignalStatus.PENDING,
    )
