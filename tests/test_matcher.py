"""
Unit tests for matching scraped results to scheduled matches
Tests: name normalization, similarity, swapped players, ambiguity, thresholds
"""

import pytest
from results.matcher import ResultMatcher, name_similarity, normalize_name
from tournament.models import Match, Player


@pytest.fixture
def players_by_id():
    players = [
        Player(id="p1", name="Alice Smith"),
        Player(id="p2", name="Bob Jones"),
        Player(id="p3", name="Carl Müller"),
        Player(id="p4", name="Dana White"),
    ]
    return {p.id: p for p in players}


@pytest.fixture
def open_matches():
    return [
        Match(id="m1", group_id="gA", player1_id="p1", player2_id="p2"),
        Match(id="m2", group_id="gA", player1_id="p3", player2_id="p4"),
    ]


class TestNames:
    """Test name normalization and similarity"""

    def test_normalize(self):
        assert normalize_name("  Carl   MÜLLER ") == "carl muller"
        assert normalize_name("O'Brien, Pat") == "o brien pat"
        assert normalize_name(None) == ""

    def test_identical_after_normalization(self):
        assert name_similarity("Carl Muller", "carl müller") == 1.0

    def test_reversed_token_order(self):
        assert name_similarity("Smith Alice", "Alice Smith") == 1.0

    def test_unrelated_names_score_low(self):
        assert name_similarity("Alice Smith", "Dana White") < 0.5

    def test_empty_names(self):
        assert name_similarity("", "Alice") == 0.0


class TestResolve:
    """Test choosing a scheduled match"""

    def test_exact_match(self, open_matches, players_by_id):
        resolution = ResultMatcher().resolve("Alice Smith", "Bob Jones", open_matches, players_by_id)

        assert resolution.match_found
        assert resolution.match_id == "m1"
        assert resolution.confidence_score == 1.0
        assert not resolution.players_swapped

    def test_swapped_players(self, open_matches, players_by_id):
        resolution = ResultMatcher().resolve("Dana White", "Carl Muller", open_matches, players_by_id)

        assert resolution.match_found
        assert resolution.match_id == "m2"
        assert resolution.players_swapped

    def test_small_typos_still_match(self, open_matches, players_by_id):
        resolution = ResultMatcher().resolve("Alice Smyth", "Bob Jone", open_matches, players_by_id)

        assert resolution.match_found
        assert resolution.match_id == "m1"
        assert 0.6 <= resolution.confidence_score < 1.0

    def test_no_match_below_minimum(self, open_matches, players_by_id):
        resolution = ResultMatcher().resolve("Zoe Quinn", "Xavier Young", open_matches, players_by_id)

        assert not resolution.match_found
        assert resolution.confidence_score == 0.0
        assert resolution.match_id is None

    def test_completed_matches_are_skipped(self, open_matches, players_by_id):
        done = open_matches[0].model_copy(update={"status": "completed", "winner_id": "p1"})

        resolution = ResultMatcher().resolve("Alice Smith", "Bob Jones", [done], players_by_id)

        assert not resolution.match_found

    def test_tbd_matches_are_skipped(self, players_by_id):
        tbd = Match(id="k1", player1_id="p1", player2_id=None)

        assert ResultMatcher().candidates("Alice Smith", "Bob Jones", [tbd], players_by_id) == []

    def test_ambiguous_candidates(self, players_by_id):
        """Two open matches between the same players cannot be told apart"""
        matches = [
            Match(id="m1", group_id="gA", player1_id="p1", player2_id="p2"),
            Match(id="m9", group_id="gA", player1_id="p2", player2_id="p1", round_number=2),
        ]

        resolution = ResultMatcher().resolve("Alice Smith", "Bob Jones", matches, players_by_id)

        assert not resolution.match_found
        assert resolution.confidence_score == 0.0
        assert "m1" in resolution.notes and "m9" in resolution.notes

    def test_custom_thresholds(self, open_matches, players_by_id):
        strict = ResultMatcher(min_confidence=0.99)

        resolution = strict.resolve("Alice Smyth", "Bob Jones", open_matches, players_by_id)

        assert not resolution.match_found

    def test_candidates_sorted_by_confidence(self, open_matches, players_by_id):
        ranked = ResultMatcher().candidates("Alice Smith", "Bob Jones", open_matches, players_by_id)

        assert [c.match.id for c in ranked] == ["m1", "m2"]
        assert ranked[0].confidence > ranked[1].confidence
