"""
Unit tests for match scoring
Tests: winner decision, completion state, rejected scores
"""

import pytest
from datetime import datetime
from tournament.models import Match, MatchStatus
from tournament.scoring import decide_winner, score_match


@pytest.fixture
def group_match():
    return Match(id="m1", group_id="gA", player1_id="amy", player2_id="bob")


@pytest.fixture
def knockout_match():
    return Match(id="k1", group_id=None, player1_id="amy", player2_id="bob", round_number=1, match_number=1)


class TestDecideWinner:
    """Test winner decision"""

    def test_legs(self, group_match):
        assert decide_winner(group_match, 2, 1) == "amy"
        assert decide_winner(group_match, 0, 2) == "bob"

    def test_tie(self, group_match):
        assert decide_winner(group_match, 1, 1) is None

    def test_sets_take_priority(self, group_match):
        assert decide_winner(group_match, 5, 7, 2, 1) == "amy"

    def test_equal_sets_fall_back_to_legs(self, group_match):
        assert decide_winner(group_match, 3, 2, 1, 1) == "amy"


class TestScoreMatch:
    """Test scored match rows"""

    def test_completes_match(self, group_match):
        scored = score_match(group_match, 2, 0)

        assert scored.status == MatchStatus.COMPLETED
        assert scored.is_completed
        assert scored.winner_id == "amy"
        assert scored.completed_at is not None
        assert group_match.status == MatchStatus.SCHEDULED

    def test_keeps_given_completion_time(self, group_match):
        when = datetime(2024, 5, 1, 20, 30)
        assert score_match(group_match, 2, 1, completed_at=when).completed_at == when

    def test_group_draw_allowed(self, group_match):
        scored = score_match(group_match, 1, 1)
        assert scored.winner_id is None
        assert scored.is_completed

    def test_knockout_draw_rejected(self, knockout_match):
        with pytest.raises(ValueError):
            score_match(knockout_match, 2, 2)

    def test_negative_legs_rejected(self, group_match):
        with pytest.raises(ValueError):
            score_match(group_match, -1, 2)

    def test_negative_sets_rejected(self, group_match):
        with pytest.raises(ValueError):
            score_match(group_match, 2, 1, -1, 0)

    def test_tbd_player_rejected(self):
        tbd = Match(id="k2", player1_id="amy")
        with pytest.raises(ValueError):
            score_match(tbd, 3, 0)


class TestMatchModel:
    """Test match helpers"""

    def test_knockout_flag(self, group_match, knockout_match):
        assert not group_match.is_knockout
        assert knockout_match.is_knockout

    def test_opponent_of(self, group_match):
        assert group_match.opponent_of("amy") == "bob"
        assert group_match.opponent_of("bob") == "amy"
        assert group_match.opponent_of("cat") is None
        assert group_match.involves("bob")
