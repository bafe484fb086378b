"""
조별 리그 순위 계산 모듈

정렬 기준 (우선순위 순)
- 승점 (승 2점, 패/무 0점)
- 승자승 (두 선수의 맞대결 승자가 상위)
- 레그 득실차
- 레그 득점
- 선수명 (대소문자 구분 사전순)
"""
from dataclasses import dataclass, field, asdict
from functools import cmp_to_key
from typing import Dict, List, Optional, Sequence
from loguru import logger

from tournament.models import Match, MatchStatus, Player


# =====================================================
# 상수 정의
# =====================================================

POINTS_PER_WIN = 2
POINTS_PER_TIE = 0
POINTS_PER_LOSS = 0


# =====================================================
# 데이터 클래스
# =====================================================

@dataclass
class MatchRecord:
    """선수별 경기 기록 한 줄"""
    match_id: str
    opponent_id: Optional[str]
    round_number: int
    legs_for: int
    legs_against: int
    result: str  # "W", "L", "T"


@dataclass
class StandingRow:
    """조별 순위 한 줄 (파생 데이터, 저장하지 않음)"""
    player: Player
    played: int = 0
    won: int = 0
    lost: int = 0
    tied: int = 0
    legs_won: int = 0
    legs_lost: int = 0
    points: int = 0
    rank: int = 0
    is_advancing: bool = False
    history: List[MatchRecord] = field(default_factory=list)

    @property
    def player_id(self) -> str:
        return self.player.id

    @property
    def leg_difference(self) -> int:
        return self.legs_won - self.legs_lost

    def to_dict(self) -> Dict:
        return {
            "player_id": self.player.id,
            "player_name": self.player.name,
            "played": self.played,
            "won": self.won,
            "lost": self.lost,
            "tied": self.tied,
            "legs_won": self.legs_won,
            "legs_lost": self.legs_lost,
            "leg_difference": self.leg_difference,
            "points": self.points,
            "rank": self.rank,
            "is_advancing": self.is_advancing,
            "history": [asdict(h) for h in self.history],
        }


# =====================================================
# 순위 계산
# =====================================================

def _head_to_head_winner(a: str, b: str, matches: Sequence[Match]) -> Optional[str]:
    """두 선수 맞대결 승자 (완료된 맞대결이 없거나 무승부면 None)"""
    for match in matches:
        if not match.is_completed:
            continue
        if {match.player1_id, match.player2_id} != {a, b}:
            continue
        if match.winner_id in (a, b):
            return match.winner_id
    return None


def _accumulate(rows: Dict[str, StandingRow], matches: Sequence[Match]) -> None:
    """완료된 경기만 집계"""
    for match in matches:
        if match.status != MatchStatus.COMPLETED:
            continue

        sides = (
            (match.player1_id, match.player1_legs, match.player2_id, match.player2_legs),
            (match.player2_id, match.player2_legs, match.player1_id, match.player1_legs),
        )

        if match.winner_id is not None and match.winner_id not in (match.player1_id, match.player2_id):
            logger.warning(
                f"데이터 무결성 경고: 경기 {match.id}의 승자 {match.winner_id}가 참가 선수가 아님, 경기 제외"
            )
            continue

        for player_id, legs_for, opponent_id, legs_against in sides:
            row = rows.get(player_id) if player_id else None
            if row is None:
                logger.warning(
                    f"데이터 무결성 경고: 경기 {match.id}의 선수 {player_id}를 찾을 수 없음, 해당 선수 집계 제외"
                )
                continue

            row.played += 1
            row.legs_won += legs_for
            row.legs_lost += legs_against

            if match.winner_id is None:
                row.tied += 1
                row.points += POINTS_PER_TIE
                result = "T"
            elif match.winner_id == player_id:
                row.won += 1
                row.points += POINTS_PER_WIN
                result = "W"
            else:
                row.lost += 1
                row.points += POINTS_PER_LOSS
                result = "L"

            row.history.append(MatchRecord(
                match_id=match.id,
                opponent_id=opponent_id,
                round_number=match.round_number,
                legs_for=legs_for,
                legs_against=legs_against,
                result=result,
            ))


def compute_standings(
    players: Sequence[Player],
    matches: Sequence[Match],
    advancing_count: int,
    group_stage_completed: bool = False,
) -> List[StandingRow]:
    """
    한 조의 순위표 계산 (순수 함수)

    Args:
        players: 조 소속 선수
        matches: 조 경기 (완료된 경기만 집계)
        advancing_count: 상위 진출 인원
        group_stage_completed: 조별 리그 종료 여부 (False면 진출 표시 안 함)

    Returns:
        1위부터 정렬된 StandingRow 목록
    """
    rows: Dict[str, StandingRow] = {p.id: StandingRow(player=p) for p in players}
    _accumulate(rows, matches)

    def compare(x: StandingRow, y: StandingRow) -> int:
        if x.points != y.points:
            return y.points - x.points

        h2h = _head_to_head_winner(x.player_id, y.player_id, matches)
        if h2h == x.player_id:
            return -1
        if h2h == y.player_id:
            return 1

        if x.leg_difference != y.leg_difference:
            return y.leg_difference - x.leg_difference
        if x.legs_won != y.legs_won:
            return y.legs_won - x.legs_won
        if x.player.name != y.player.name:
            return -1 if x.player.name < y.player.name else 1
        return 0

    # 입력 순서와 무관하게 동일한 결과가 나오도록 이름/ID로 먼저 정렬
    ordered = sorted(rows.values(), key=lambda r: (r.player.name, r.player.id))
    ordered.sort(key=cmp_to_key(compare))

    for index, row in enumerate(ordered):
        row.rank = index + 1
        row.is_advancing = group_stage_completed and index < advancing_count
        row.history.sort(key=lambda h: (h.round_number, h.match_id))

    return ordered


class StandingsCalculator:
    """여러 조의 순위를 한 번에 계산"""

    def __init__(self, group_stage_completed: bool = False):
        self.group_stage_completed = group_stage_completed

    def calculate(
        self,
        players: Sequence[Player],
        matches: Sequence[Match],
        advancing_count: int,
    ) -> List[StandingRow]:
        return compute_standings(players, matches, advancing_count, self.group_stage_completed)

    def calculate_groups(
        self,
        group_players: Dict[str, List[Player]],
        group_matches: Dict[str, List[Match]],
        advancing_counts: Dict[str, int],
    ) -> Dict[str, List[StandingRow]]:
        """조 ID → 순위표"""
        standings = {}
        for group_id, players in group_players.items():
            standings[group_id] = self.calculate(
                players,
                group_matches.get(group_id, []),
                advancing_counts.get(group_id, 0),
            )
        return standings
