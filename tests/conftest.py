"""
Pytest configuration and fixtures for Dart Tournament Tracker tests
"""

import itertools
import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tournament.models import Group, Match, Player, Tournament
from tournament.round_robin import generate_round_robin
from tournament.scoring import score_match
from tournament.session import TournamentSession


GROUP_PLAYER_NAMES = {
    "A": ["Alice", "Aaron", "Abby", "Adam"],
    "B": ["Bella", "Ben", "Bianca", "Boris"],
    "C": ["Clara", "Carl", "Chloe", "Cody"],
    "D": ["Dana", "Dave", "Diana", "Dylan"],
}


@pytest.fixture(scope="function")
def make_match():
    """Factory for group/knockout match rows (scored when legs are given)"""
    counter = itertools.count(1)

    def factory(
        player1_id,
        player2_id,
        player1_legs=None,
        player2_legs=None,
        group_id="gA",
        round_number=1,
        match_id=None,
        match_number=None,
    ):
        match = Match(
            id=match_id or f"m{next(counter)}",
            tournament_id="t1",
            group_id=group_id,
            player1_id=player1_id,
            player2_id=player2_id,
            round_number=round_number,
            match_number=match_number,
        )
        if player1_legs is None:
            return match
        return score_match(match, player1_legs, player2_legs)

    return factory


@pytest.fixture(scope="function")
def sample_tournament():
    """Tournament with the group stage finished, top 2 of each group advancing"""
    return Tournament(
        id="t1",
        name="Friday Night Darts",
        status="group-stage",
        group_stage_completed=True,
        players_advancing_per_group=2,
    )


@pytest.fixture(scope="function")
def sample_players():
    """16 players, 4 per group (listed in expected finishing order)"""
    players = []
    for letter, names in GROUP_PLAYER_NAMES.items():
        for index, name in enumerate(names):
            players.append(Player(
                id=f"{letter.lower()}{index + 1}",
                name=name,
                tournament_id="t1",
                group_id=f"g{letter}",
            ))
    return players


@pytest.fixture(scope="function")
def sample_groups(sample_players):
    """Groups A-D in creation order"""
    return [
        Group(
            id=f"g{letter}",
            name=f"Group {letter}",
            tournament_id="t1",
            player_ids=[p.id for p in sample_players if p.group_id == f"g{letter}"],
        )
        for letter in GROUP_PLAYER_NAMES
    ]


@pytest.fixture(scope="function")
def sample_group_matches(sample_groups):
    """
    Completed round robin for every group

    The player listed earlier always wins: 2-1 against the next player, 2-0 otherwise.
    """
    matches = []
    for group in sample_groups:
        order = group.player_ids
        for index, scheduled in enumerate(generate_round_robin(order), start=1):
            p1, p2 = scheduled.player1_id, scheduled.player2_id
            gap = abs(order.index(p1) - order.index(p2))
            loser_legs = 1 if gap == 1 else 0
            if order.index(p1) < order.index(p2):
                legs = (2, loser_legs)
            else:
                legs = (loser_legs, 2)
            match = Match(
                id=f"{group.id}-m{index}",
                tournament_id="t1",
                group_id=group.id,
                player1_id=p1,
                player2_id=p2,
                round_number=scheduled.round_number,
                board_number=scheduled.board_number,
            )
            matches.append(score_match(match, *legs))
    return matches


@pytest.fixture(scope="function")
def sample_session(sample_tournament, sample_groups, sample_players, sample_group_matches):
    """Tournament snapshot with a finished group stage and no knockout yet"""
    return TournamentSession(sample_tournament, sample_groups, sample_players, sample_group_matches)
