"""Goal detection from score snapshots and match-update parsing."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from goal_edge.common.types import FixtureId
from goal_edge.signals.models import GoalEvent, MatchStatus, MatchUpdate

logger = logging.getLogger(__name__)

# Provider short status codes
_FINISHED_CODES = {"FT", "AET", "PEN", "AWD", "WO"}
_POSTPONED_CODES = {"PST", "CANC", "ABD"}


def match_status_from_code(code: str) -> MatchStatus:
    """Map a provider status code (or a lifecycle name) to MatchStatus."""
    normalized = code.strip()
    if normalized.lower() in {s.value for s in MatchStatus}:
        return MatchStatus(normalized.lower())
    upper = normalized.upper()
    if upper in _FINISHED_CODES:
        return MatchStatus.FINISHED
    if upper in _POSTPONED_CODES:
        return MatchStatus.POSTPONED
    return MatchStatus.LIVE


@dataclass(frozen=True)
class MatchSnapshot:
    """Score and clock of one match at a refresh."""

    fixture_id: FixtureId
    home_score: int
    away_score: int
    minute: int
    status: str


@dataclass(frozen=True)
class DetectedGoal:
    fixture_id: FixtureId
    minute: int
    team: str
    home_score: int
    away_score: int


class GoalDetector:
    """Turns successive score snapshots into goal events.

    A score increase between two refreshes yields one goal per added goal,
    stamped with the newer snapshot's minute. Matches seen for the first
    time only set the baseline.
    """

    def __init__(self) -> None:
        self._previous: dict[FixtureId, MatchSnapshot] = {}
        self._goals: dict[FixtureId, list[GoalEvent]] = defaultdict(list)

    def prime(self, snapshots: list[MatchSnapshot]) -> None:
        """Set the baseline without emitting goals."""
        self._previous = {s.fixture_id: s for s in snapshots}

    def detect(self, snapshots: list[MatchSnapshot]) -> list[DetectedGoal]:
        detected: list[DetectedGoal] = []
        current: dict[FixtureId, MatchSnapshot] = {}

        for snap in snapshots:
            current[snap.fixture_id] = snap
            prev = self._previous.get(snap.fixture_id)
            if prev is None:
                continue

            for team, added in (
                ("home", snap.home_score - prev.home_score),
                ("away", snap.away_score - prev.away_score),
            ):
                for _ in range(max(0, added)):
                    self._goals[snap.fixture_id].append(GoalEvent(minute=snap.minute, team=team))
                    detected.append(DetectedGoal(
                        fixture_id=snap.fixture_id,
                        minute=snap.minute,
                        team=team,
                        home_score=snap.home_score,
                        away_score=snap.away_score,
                    ))

        self._previous = current
        if detected:
            logger.info("Detected %d goal(s)", len(detected))
        return detected

    def goals_for(self, fixture_id: FixtureId) -> list[GoalEvent]:
        return list(self._goals.get(fixture_id, []))

    def updates(self, snapshots: list[MatchSnapshot]) -> dict[FixtureId, MatchUpdate]:
        """Settlement input for the given snapshots, with accumulated goals."""
        return {
            s.fixture_id: MatchUpdate(
                minute=s.minute,
                goals=tuple(self._goals.get(s.fixture_id, [])),
                status=match_status_from_code(s.status),
            )
            for s in snapshots
        }

    def cleanup(self, active_ids: set[FixtureId]) -> None:
        """Forget accumulated goals for matches no longer tracked."""
        for fixture_id in list(self._goals):
            if fixture_id not in active_ids:
                del self._goals[fixture_id]


def parse_match_updates(raw: dict) -> dict[FixtureId, MatchUpdate]:
    """Parse ``{fixture_id: {minute, goals: [{minute, team}], status}}``.

    Raises KeyError/ValueError/TypeError on malformed input.
    """
    updates: dict[FixtureId, MatchUpdate] = {}
    for fixture_id, entry in raw.items():
        updates[int(fixture_id)] = MatchUpdate(
            minute=int(entry["minute"]),
            goals=tuple(
                GoalEvent(minute=int(g["minute"]), team=str(g.get("team", "home")))
                for g in entry.get("goals", [])
            ),
            status=match_status_from_code(str(entry.get("status", "live"))),
        )
    return updates
