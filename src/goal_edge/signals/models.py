"""Signal data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from goal_edge.common.types import FixtureId, JsonDict, parse_iso


class SignalStatus(Enum):
    """Settlement state of a signal.

    EXPIRED is reserved for external invalidation (e.g. abandoned matches);
    the settlement evaluator never assigns it.
    """

    PENDING = "pending"
    HIT = "hit"
    MISS = "miss"
    EXPIRED = "expired"


class SignalTier(Enum):
    """Strength bucket assigned by the signal engine."""

    HIGH = "high"
    WATCH = "watch"
    LOW = "low"


class MatchStatus(Enum):
    """Match lifecycle as seen by settlement."""

    LIVE = "live"
    FINISHED = "finished"
    POSTPONED = "postponed"


@dataclass(frozen=True)
class GoalEvent:
    """A goal observed in a live match."""

    minute: int
    team: str  # "home" or "away"


@dataclass(frozen=True)
class MatchUpdate:
    """Snapshot of one match handed to a settlement sweep."""

    minute: int
    goals: tuple[GoalEvent, ...] = ()
    status: MatchStatus = MatchStatus.LIVE


@dataclass
class SignalRecord:
    """A goal-imminent prediction and its settlement outcome.

    Attributes:
        id: Unique identifier, generated at creation
        fixture_id: Upstream match identifier
        match_name: Human-readable label, e.g. "Arsenal vs Chelsea"
        triggered_at: Wall-clock trigger time (drives retention)
        trigger_minute: Match minute of the trigger, never mutated
        signal_strength: Predicted strength score (0-100)
        tier: Strength tier
        reasons: Up to three textual reasons, strongest first
        odds_at_trigger: Market odds snapshot, None if unavailable
        line_at_trigger: Market line descriptor, e.g. "O 2.5"
        status: Settlement state
        settled_at: Set once status leaves PENDING
        goal_minute: Minute of the qualifying goal (HIT only)
        settlement_note: Free-text explanation of the verdict
    """

    id: str
    fixture_id: FixtureId
    match_name: str
    triggered_at: datetime
    trigger_minute: int
    signal_strength: float
    tier: SignalTier
    reasons: list[str] = field(default_factory=list)
    odds_at_trigger: float | None = None
    line_at_trigger: str = ""
    status: SignalStatus = SignalStatus.PENDING
    settled_at: datetime | None = None
    goal_minute: int | None = None
    settlement_note: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is SignalStatus.PENDING

    def to_dict(self) -> JsonDict:
        return {
            "id": self.id,
            "fixture_id": self.fixture_id,
            "match_name": self.match_name,
            "triggered_at": self.triggered_at.isoformat(),
            "trigger_minute": self.trigger_minute,
            "signal_strength": self.signal_strength,
            "tier": self.tier.value,
            "reasons": list(self.reasons),
            "odds_at_trigger": self.odds_at_trigger,
            "line_at_trigger": self.line_at_trigger,
            "status": self.status.value,
            "settled_at": self.settled_at.isoformat() if self.settled_at else None,
            "goal_minute": self.goal_minute,
            "settlement_note": self.settlement_note,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> SignalRecord:
        """Rebuild a record from its stored form.

        Raises KeyError/ValueError/TypeError on malformed input.
        """
        triggered_at = parse_iso(raw["triggered_at"])
        if triggered_at is None:
            raise ValueError(f"invalid triggered_at: {raw['triggered_at']!r}")
        settled_at = parse_iso(raw.get("settled_at"))
        if settled_at is None and raw.get("settled_at") is not None:
            raise ValueError(f"invalid settled_at: {raw['settled_at']!r}")
        odds = raw.get("odds_at_trigger")
        goal_minute = raw.get("goal_minute")
        return cls(
            id=str(raw["id"]),
            fixture_id=int(raw["fixture_id"]),
            match_name=str(raw.get("match_name", "")),
            triggered_at=triggered_at,
            trigger_minute=int(raw["trigger_minute"]),
            signal_strength=float(raw["signal_strength"]),
            tier=SignalTier(raw["tier"]),
            reasons=[str(r) for r in raw.get("reasons", [])],
            odds_at_trigger=float(odds) if odds is not None else None,
            line_at_trigger=str(raw.get("line_at_trigger", "")),
            status=SignalStatus(raw.get("status", SignalStatus.PENDING.value)),
            settled_at=settled_at,
            goal_minute=int(goal_minute) if goal_minute is not None else None,
            settlement_note=raw.get("settlement_note"),
        )
