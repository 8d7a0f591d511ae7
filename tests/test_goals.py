"""Tests for goal detection and match-update parsing."""

from __future__ import annotations

import pytest

from goal_edge.signals.goals import (
    GoalDetector,
    MatchSnapshot,
    match_status_from_code,
    parse_match_updates,
)
from goal_edge.signals.models import GoalEvent, MatchStatus


def _snap(fixture_id=1, home=0, away=0, minute=60, status="2H"):
    return MatchSnapshot(fixture_id=fixture_id, home_score=home, away_score=away, minute=minute, status=status)


class TestMatchStatusFromCode:
    @pytest.mark.parametrize("code", ["FT", "AET", "PEN", "ft", "finished"])
    def test_finished(self, code):
        assert match_status_from_code(code) is MatchStatus.FINISHED

    @pytest.mark.parametrize("code", ["PST", "CANC", "ABD", "postponed"])
    def test_postponed(self, code):
        assert match_status_from_code(code) is MatchStatus.POSTPONED

    @pytest.mark.parametrize("code", ["1H", "HT", "2H", "ET", "live", "whatever"])
    def test_live(self, code):
        assert match_status_from_code(code) is MatchStatus.LIVE


class TestGoalDetector:
    def test_first_sighting_only_sets_baseline(self):
        detector = GoalDetector()
        assert detector.detect([_snap(home=2)]) == []
        assert detector.goals_for(1) == []

    def test_score_increase_is_goal(self):
        detector = GoalDetector()
        detector.prime([_snap(minute=70)])
        goals = detector.detect([_snap(home=1, minute=74)])

        assert len(goals) == 1
        assert goals[0].team == "home"
        assert goals[0].minute == 74
        assert detector.goals_for(1) == [GoalEvent(minute=74, team="home")]

    def test_multiple_goals_between_refreshes(self):
        detector = GoalDetector()
        detector.prime([_snap()])
        goals = detector.detect([_snap(home=1, away=2, minute=66)])

        assert [g.team for g in goals] == ["home", "away", "away"]
        assert len(detector.goals_for(1)) == 3

    def test_goals_accumulate_across_refreshes(self):
        detector = GoalDetector()
        detector.prime([_snap()])
        detector.detect([_snap(home=1, minute=62)])
        detector.detect([_snap(home=1, away=1, minute=71)])

        assert detector.goals_for(1) == [GoalEvent(62, "home"), GoalEvent(71, "away")]

    def test_score_decrease_ignored(self):
        detector = GoalDetector()
        detector.prime([_snap(home=1)])
        assert detector.detect([_snap(home=0)]) == []

    def test_updates_carry_goals_and_status(self):
        detector = GoalDetector()
        detector.prime([_snap(fixture_id=1), _snap(fixture_id=2)])
        snaps = [_snap(fixture_id=1, home=1, minute=78), _snap(fixture_id=2, minute=90, status="FT")]
        detector.detect(snaps)

        updates = detector.updates(snaps)
        assert updates[1].goals == (GoalEvent(78, "home"),)
        assert updates[1].status is MatchStatus.LIVE
        assert updates[2].goals == ()
        assert updates[2].status is MatchStatus.FINISHED

    def test_cleanup_drops_inactive(self):
        detector = GoalDetector()
        detector.prime([_snap(fixture_id=1), _snap(fixture_id=2)])
        detector.detect([_snap(fixture_id=1, home=1), _snap(fixture_id=2, away=1)])

        detector.cleanup({2})
        assert detector.goals_for(1) == []
        assert len(detector.goals_for(2)) == 1


class TestParseMatchUpdates:
    def test_parse(self):
        updates = parse_match_updates({
            "1001": {"minute": 78, "goals": [{"minute": 77, "team": "home"}], "status": "live"},
            "1002": {"minute": 90, "status": "FT"},
        })

        assert updates[1001].minute == 78
        assert updates[1001].goals == (GoalEvent(77, "home"),)
        assert updates[1002].goals == ()
        assert updates[1002].status is MatchStatus.FINISHED

    def test_missing_minute_raises(self):
        with pytest.raises(KeyError):
            parse_match_updates({"1": {"goals": []}})
