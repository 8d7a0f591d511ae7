"""Signal settlement: per-signal evaluator and batch coordinator.

A pending signal is settled against the match's state:

1. a goal with ``trigger < minute <= trigger + window`` settles it as a HIT
   (the earliest such goal wins),
2. otherwise, a current minute past the window end settles it as a MISS,
3. otherwise, a finished match settles it as a MISS,
4. otherwise it stays PENDING.

Settled signals are never touched again, so re-running a sweep is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Mapping

from goal_edge.common.types import FixtureId, utcnow
from goal_edge.config import get_settings
from goal_edge.signals.models import (
    GoalEvent,
    MatchStatus,
    MatchUpdate,
    SignalRecord,
    SignalStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    """Outcome of one sweep over the tracked signals."""

    updated: list[SignalRecord]
    new_hits: list[SignalRecord] = field(default_factory=list)
    new_misses: list[SignalRecord] = field(default_factory=list)

    @property
    def newly_settled(self) -> list[SignalRecord]:
        return self.new_hits + self.new_misses

    @property
    def changed(self) -> bool:
        return bool(self.new_hits or self.new_misses)


def first_goal_in_window(
    goals: Iterable[GoalEvent], trigger_minute: int, window_end: int,
) -> GoalEvent | None:
    """Earliest goal with trigger_minute < minute <= window_end, if any."""
    qualifying = [g for g in goals if trigger_minute < g.minute <= window_end]
    if not qualifying:
        return None
    return min(qualifying, key=lambda g: g.minute)


def settle_signal(
    signal: SignalRecord,
    update: MatchUpdate,
    window_minutes: int | None = None,
    now: datetime | None = None,
) -> SignalRecord:
    """Evaluate one signal against a match update.

    Returns the signal itself when nothing changes, otherwise a new settled
    record. Inputs are not validated.
    """
    if not signal.is_pending:
        return signal

    if window_minutes is None:
        window_minutes = get_settings().window_minutes

    window_end = signal.trigger_minute + window_minutes
    goal = first_goal_in_window(update.goals, signal.trigger_minute, window_end)

    if goal is not None:
        return replace(
            signal,
            status=SignalStatus.HIT,
            settled_at=now or utcnow(),
            goal_minute=goal.minute,
            settlement_note=(
                f"Goal at {goal.minute}', "
                f"{goal.minute - signal.trigger_minute} min after trigger"
            ),
        )

    if update.minute > window_end:
        return replace(
            signal,
            status=SignalStatus.MISS,
            settled_at=now or utcnow(),
            settlement_note=f"No goal within {window_minutes} minutes",
        )

    if update.status is MatchStatus.FINISHED:
        return replace(
            signal,
            status=SignalStatus.MISS,
            settled_at=now or utcnow(),
            settlement_note="Match finished without a goal",
        )

    return signal


def settle_signals(
    signals: list[SignalRecord],
    updates: Mapping[FixtureId, MatchUpdate],
    window_minutes: int | None = None,
    now: datetime | None = None,
) -> SettlementResult:
    """Re-evaluate every signal whose fixture has an update.

    Signals without an update pass through unchanged. All signals of one
    fixture are evaluated against the same update object, and one settlement
    timestamp is used for the whole sweep.
    """
    if window_minutes is None:
        window_minutes = get_settings().window_minutes
    now = now or utcnow()

    result = SettlementResult(updated=[])
    for signal in signals:
        update = updates.get(signal.fixture_id)
        if update is None or not signal.is_pending:
            result.updated.append(signal)
            continue

        settled = settle_signal(signal, update, window_minutes, now)
        result.updated.append(settled)
        if settled.status is SignalStatus.HIT:
            result.new_hits.append(settled)
        elif settled.status is SignalStatus.MISS:
            result.new_misses.append(settled)

    if result.changed:
        logger.info(
            "Settled %d signal(s): %d hit, %d miss",
            len(result.newly_settled), len(result.new_hits), len(result.new_misses),
        )
    return result
