"""
경기 점수 기록

수동 입력과 DartConnect 결과 승인이 동일한 경로로 점수를 반영한다.
"""
from datetime import datetime
from typing import Optional
from loguru import logger

from .models import Match, MatchStatus


def decide_winner(
    match: Match,
    player1_legs: int,
    player2_legs: int,
    player1_sets: Optional[int] = None,
    player2_sets: Optional[int] = None,
) -> Optional[str]:
    """승자 ID 결정 (세트가 있으면 세트 우선, 동점이면 None)"""
    if player1_sets is not None and player2_sets is not None and player1_sets != player2_sets:
        return match.player1_id if player1_sets > player2_sets else match.player2_id

    if player1_legs > player2_legs:
        return match.player1_id
    if player2_legs > player1_legs:
        return match.player2_id
    return None


def score_match(
    match: Match,
    player1_legs: int,
    player2_legs: int,
    player1_sets: Optional[int] = None,
    player2_sets: Optional[int] = None,
    completed_at: Optional[datetime] = None,
) -> Match:
    """
    경기 점수 기록 → 완료 상태의 새 Match 반환

    Raises:
        ValueError: 음수 점수, 선수 미정 경기, 토너먼트 경기 무승부
    """
    if min(player1_legs, player2_legs) < 0:
        raise ValueError(f"레그 수는 음수일 수 없습니다: {player1_legs}-{player2_legs}")
    if any(s is not None and s < 0 for s in (player1_sets, player2_sets)):
        raise ValueError(f"세트 수는 음수일 수 없습니다: {player1_sets}-{player2_sets}")
    if not match.player1_id or not match.player2_id:
        raise ValueError(f"선수가 확정되지 않은 경기입니다: {match.id}")

    winner_id = decide_winner(match, player1_legs, player2_legs, player1_sets, player2_sets)

    if winner_id is None and match.is_knockout:
        raise ValueError(f"토너먼트 경기는 무승부가 될 수 없습니다: {match.id}")

    logger.debug(
        f"경기 점수 기록: {match.id} {player1_legs}-{player2_legs}"
        f" (승자: {winner_id or '무승부'})"
    )

    return match.model_copy(update={
        "player1_legs": player1_legs,
        "player2_legs": player2_legs,
        "player1_sets": player1_sets,
        "player2_sets": player2_sets,
        "status": MatchStatus.COMPLETED.value,
        "winner_id": winner_id,
        "completed_at": completed_at or datetime.now(),
    })
