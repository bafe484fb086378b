"""
토너먼트 승자 진출

다음 경기 = (라운드 + 1, ceil(경기 번호 / 2)), 홀수 경기 승자 → player1, 짝수 → player2
결승 승자 = 우승자
"""
from typing import Optional
from loguru import logger

from .bracket import Bracket, BracketError, BracketMatch, match_key, next_slot


def advance_winner(
    bracket: Bracket,
    completed_match: BracketMatch,
    winner_id: str,
    player1_score: Optional[int] = None,
    player2_score: Optional[int] = None,
) -> Bracket:
    """
    경기 결과 반영 및 승자 진출 → 새 Bracket 반환 (입력은 변경하지 않음)

    이미 완료된 경기는 다시 반영하지 않음

    Raises:
        BracketError: 대진표에 없는 경기, 선수 미정 경기, 경기 참가자가 아닌 승자, 동점
    """
    key = match_key(completed_match.round_number, completed_match.match_number)
    current = bracket.matches.get(key)
    if current is None:
        raise BracketError(f"대진표에 없는 경기입니다: {key}")

    if current.completed:
        logger.debug(f"이미 완료된 경기, 진출 생략: {key}")
        return bracket

    if current.player1 is None or current.player2 is None:
        raise BracketError(f"선수가 확정되지 않은 경기입니다: {key}")

    if winner_id == current.player1.player_id:
        winner, winner_is_player1 = current.player1, True
    elif winner_id == current.player2.player_id:
        winner, winner_is_player1 = current.player2, False
    else:
        raise BracketError(f"승자 {winner_id}는 경기 {key}의 참가 선수가 아닙니다")

    if player1_score is not None and player2_score is not None:
        if player1_score == player2_score:
            raise BracketError(f"토너먼트 경기는 무승부가 될 수 없습니다: {key}")
        if (player1_score > player2_score) != winner_is_player1:
            raise BracketError(f"점수와 승자가 일치하지 않습니다: {key} {player1_score}-{player2_score}")

    updated = bracket.copy()
    node = updated.matches[key]
    node.completed = True
    node.winner = winner
    node.player1_score = player1_score
    node.player2_score = player2_score

    if node.round_number >= updated.total_rounds:
        updated.champion = winner
        logger.info(f"🏆 우승: {winner.name} (시드 {winner.overall_seed})")
        return updated

    next_round, next_number, slot = next_slot(node.round_number, node.match_number)
    target = updated.get(next_round, next_number)
    if target is None:
        raise BracketError(f"다음 경기를 찾을 수 없습니다: {match_key(next_round, next_number)}")

    setattr(target, slot, winner)
    logger.info(f"진출: {winner.name} → {target.round_name} {target.id} ({slot})")
    return updated
