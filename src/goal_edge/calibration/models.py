"""Calibration data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from goal_edge.common.types import JsonDict, parse_iso


class TimePhase(Enum):
    """Coarse match phase of the trigger minute."""

    MID = "mid"  # before 75'
    LATE = "late"  # 75' to 84'
    EXTRA_LATE = "extraLate"  # 85' onwards


@dataclass(frozen=True)
class CalibrationContext:
    """Context captured alongside a calibration observation."""

    minute: int
    time_phase: TimePhase
    league: str | None = None


@dataclass(frozen=True)
class CalibrationRecord:
    """One (predicted strength, realized outcome) observation.

    The id is derived from the originating signal id, so a signal yields at
    most one record.
    """

    id: str
    signal_strength: float
    trigger_minute: int
    is_hit: bool
    settled_at: datetime
    context: CalibrationContext
    goal_minute: int | None = None

    def to_dict(self) -> JsonDict:
        return {
            "id": self.id,
            "signal_strength": self.signal_strength,
            "trigger_minute": self.trigger_minute,
            "is_hit": self.is_hit,
            "goal_minute": self.goal_minute,
            "settled_at": self.settled_at.isoformat(),
            "context": {
                "minute": self.context.minute,
                "time_phase": self.context.time_phase.value,
                "league": self.context.league,
            },
        }

    @classmethod
    def from_dict(cls, raw: dict) -> CalibrationRecord:
        settled_at = parse_iso(raw["settled_at"])
        if settled_at is None:
            raise ValueError(f"invalid settled_at: {raw['settled_at']!r}")
        if not isinstance(raw["is_hit"], bool):
            raise ValueError(f"invalid is_hit: {raw['is_hit']!r}")
        ctx = raw["context"]
        goal_minute = raw.get("goal_minute")
        return cls(
            id=str(raw["id"]),
            signal_strength=float(raw["signal_strength"]),
            trigger_minute=int(raw["trigger_minute"]),
            is_hit=raw["is_hit"],
            goal_minute=int(goal_minute) if goal_minute is not None else None,
            settled_at=settled_at,
            context=CalibrationContext(
                minute=int(ctx["minute"]),
                time_phase=TimePhase(ctx["time_phase"]),
                league=ctx.get("league"),
            ),
        )


@dataclass
class CalibrationBucket:
    """Observed goal rate for one signal-strength interval [signal_min, signal_max)."""

    signal_min: int
    signal_max: int
    sample_size: int = 0
    hit_count: int = 0
    actual_goal_rate: float = 0.0
    confidence: float = 0.0
    last_updated: datetime | None = None

    def to_dict(self) -> JsonDict:
        return {
            "signal_min": self.signal_min,
            "signal_max": self.signal_max,
            "sample_size": self.sample_size,
            "hit_count": self.hit_count,
            "actual_goal_rate": self.actual_goal_rate,
            "confidence": self.confidence,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> CalibrationBucket:
        return cls(
            signal_min=int(raw["signal_min"]),
            signal_max=int(raw["signal_max"]),
            sample_size=int(raw.get("sample_size", 0)),
            hit_count=int(raw.get("hit_count", 0)),
            actual_goal_rate=float(raw.get("actual_goal_rate", 0.0)),
            confidence=float(raw.get("confidence", 0.0)),
            last_updated=parse_iso(raw.get("last_updated")),
        )


@dataclass
class CalibrationTable:
    """Bucketed strength-to-goal-rate table."""

    version: str
    created_at: datetime
    total_samples: int
    buckets: list[CalibrationBucket] = field(default_factory=list)

    def to_dict(self) -> JsonDict:
        return {
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "total_samples": self.total_samples,
            "buckets": [b.to_dict() for b in self.buckets],
        }

    @classmethod
    def from_dict(cls, raw: dict) -> CalibrationTable:
        created_at = parse_iso(raw["created_at"])
        if created_at is None:
            raise ValueError(f"invalid created_at: {raw['created_at']!r}")
        return cls(
            version=str(raw["version"]),
            created_at=created_at,
            total_samples=int(raw.get("total_samples", 0)),
            buckets=[CalibrationBucket.from_dict(b) for b in raw["buckets"]],
        )
