"""
다트 토너먼트 데이터 모델 및 진행 관리
"""
from .models import Tournament, TournamentStatus, Player, Group, Match, MatchStatus
from .scoring import score_match

__all__ = [
    "Tournament",
    "TournamentStatus",
    "Player",
    "Group",
    "Match",
    "MatchStatus",
    "score_match",
]
