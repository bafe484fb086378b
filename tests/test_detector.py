"""
Unit tests for DartConnect match completion detection
Tests: stable score confirmation, resets, match format thresholds, single emission
"""

import pytest
from scraper.detector import MatchCompletionDetector
from scraper.models import PlayerScore, ScoreboardSnapshot


def _snapshot(p1_legs, p2_legs, match_format="", p1_sets=0, p2_sets=0):
    return ScoreboardSnapshot(
        watch_code="WC1",
        player1=PlayerScore(name="Alice Smith", legs=p1_legs, sets=p1_sets, average=78.4, one_eighties=2),
        player2=PlayerScore(name="Bob Jones", legs=p2_legs, sets=p2_sets),
        match_format=match_format,
    )


def _observe_all(detector, snapshots):
    return [detector.observe(s) for s in snapshots]


class TestCompletion:
    """Test completion after repeated final scores"""

    def test_three_identical_final_polls_complete(self):
        detector = MatchCompletionDetector("WC1", tournament_id="t1")

        results = _observe_all(detector, [_snapshot(3, 1)] * 3)

        assert results[:2] == [None, None]
        result = results[2]
        assert result is not None
        assert detector.completed
        assert result.player1_legs == 3
        assert result.player2_legs == 1
        assert result.winner_name == "Alice Smith"
        assert result.tournament_id == "t1"
        assert result.total_legs_played == 4
        assert result.player1_average == 78.4
        assert result.player2_average is None
        assert result.player1_180s == 2

    def test_two_polls_are_not_enough(self):
        detector = MatchCompletionDetector("WC1")

        assert _observe_all(detector, [_snapshot(3, 1)] * 2) == [None, None]
        assert not detector.completed
        assert detector.consecutive_checks == 2

    def test_emits_only_once(self):
        detector = MatchCompletionDetector("WC1")

        results = _observe_all(detector, [_snapshot(2, 0)] * 6)

        assert sum(r is not None for r in results) == 1
        assert detector.observe(_snapshot(2, 1)) is None

    def test_custom_stable_polls(self):
        detector = MatchCompletionDetector("WC1", stable_polls=1)
        assert detector.observe(_snapshot(2, 1)) is not None

    def test_invalid_stable_polls(self):
        with pytest.raises(ValueError):
            MatchCompletionDetector("WC1", stable_polls=0)


class TestResets:
    """Test counter resets"""

    def test_score_change_restarts_count(self):
        detector = MatchCompletionDetector("WC1")

        results = _observe_all(detector, [
            _snapshot(2, 1), _snapshot(2, 1),
            _snapshot(3, 1),
            _snapshot(3, 1), _snapshot(3, 1),
        ])

        assert results[:4] == [None] * 4
        assert results[4].player1_legs == 3

    def test_drop_below_threshold_resets(self):
        detector = MatchCompletionDetector("WC1")

        results = _observe_all(detector, [
            _snapshot(2, 0), _snapshot(2, 0),
            _snapshot(0, 0),
            _snapshot(2, 0), _snapshot(2, 0),
        ])

        assert all(r is None for r in results)
        assert detector.consecutive_checks == 2

    def test_in_progress_scores_never_complete(self):
        detector = MatchCompletionDetector("WC1")

        assert all(r is None for r in _observe_all(detector, [_snapshot(1, 1)] * 10))
        assert detector.consecutive_checks == 0


class TestThresholds:
    """Test legs-to-win resolution"""

    def test_default_is_two_legs(self):
        detector = MatchCompletionDetector("WC1")
        assert detector.threshold_for(_snapshot(0, 0)) == 2

    def test_match_format_overrides_default(self):
        detector = MatchCompletionDetector("WC1")

        results = _observe_all(detector, [_snapshot(2, 1, "Best of 5")] * 3)

        assert all(r is None for r in results)
        assert detector.threshold_for(_snapshot(0, 0, "Best of 5")) == 3

    def test_explicit_legs_to_win(self):
        detector = MatchCompletionDetector("WC1", legs_to_win=4)
        assert detector.threshold_for(_snapshot(0, 0, "First to 2")) == 4


class TestResultShape:
    """Test pending result fields"""

    def test_sets_only_when_played(self):
        detector = MatchCompletionDetector("WC1", stable_polls=1)
        result = detector.observe(_snapshot(2, 1))

        assert result.player1_sets is None
        assert result.player2_sets is None

    def test_sets_kept_when_present(self):
        detector = MatchCompletionDetector("WC1", stable_polls=1)
        result = detector.observe(_snapshot(2, 1, p1_sets=1, p2_sets=0))

        assert (result.player1_sets, result.player2_sets) == (1, 0)

    def test_raw_data_and_status(self):
        detector = MatchCompletionDetector("WC1", stable_polls=1, scraper_session_id="s1")
        result = detector.observe(_snapshot(0, 2))

        assert result.status == "pending"
        assert result.is_pending
        assert result.winner_name == "Bob Jones"
        assert result.scraper_session_id == "s1"
        assert result.raw_scraper_data["player1"]["name"] == "Alice Smith"
