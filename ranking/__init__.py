"""
다트 토너먼트 조별 순위 계산
"""
from .calculator import (
    StandingsCalculator,
    StandingRow,
    MatchRecord,
    compute_standings,
    POINTS_PER_WIN,
)

__all__ = [
    "StandingsCalculator",
    "StandingRow",
    "MatchRecord",
    "compute_standings",
    "POINTS_PER_WIN",
]
