"""
스크랩 결과 → 예정 경기 매칭

스코어보드 선수명(자유 입력)을 토너먼트 선수명과 비교해 가장 그럴듯한 미완료 경기를 찾는다.
- 이름 유사도: difflib 비율 (원문 / 단어 정렬 중 높은 값)
- 경기 신뢰도: 두 선수 유사도 중 낮은 값 (정방향/역방향 중 높은 쪽)
- 최소 신뢰도 미만 또는 2위 후보와 차이가 작으면 매칭 실패 (신뢰도 0)
"""
import re
import unicodedata
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Dict, List, Optional, Sequence
from loguru import logger

from scraper.config import result_config
from tournament.models import Match, Player


@dataclass
class MatchCandidate:
    """매칭 후보 경기"""
    match: Match
    confidence: float
    swapped: bool


@dataclass
class MatchResolution:
    """매칭 결과"""
    match_found: bool
    confidence_score: float
    match_id: Optional[str] = None
    players_swapped: bool = False
    notes: str = ""


def normalize_name(name: Optional[str]) -> str:
    """비교용 이름 정규화 (소문자, 악센트/구두점 제거, 공백 정리)"""
    if not name:
        return ""
    text = unicodedata.normalize("NFKD", name)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return " ".join(text.split())


def name_similarity(a: Optional[str], b: Optional[str]) -> float:
    """두 이름 유사도 (0~1)"""
    na, nb = normalize_name(a), normalize_name(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 1.0

    direct = SequenceMatcher(None, na, nb).ratio()
    sorted_a = " ".join(sorted(na.split()))
    sorted_b = " ".join(sorted(nb.split()))
    token_sorted = SequenceMatcher(None, sorted_a, sorted_b).ratio()
    return max(direct, token_sorted)


class ResultMatcher:
    """스크랩 결과 매칭기"""

    def __init__(
        self,
        min_confidence: Optional[float] = None,
        ambiguity_margin: Optional[float] = None,
    ):
        self.min_confidence = result_config.min_match_confidence if min_confidence is None else min_confidence
        self.ambiguity_margin = result_config.ambiguity_margin if ambiguity_margin is None else ambiguity_margin

    def candidates(
        self,
        player1_name: str,
        player2_name: str,
        matches: Sequence[Match],
        players_by_id: Dict[str, Player],
    ) -> List[MatchCandidate]:
        """미완료 경기별 신뢰도 (높은 순)"""
        result = []
        for match in matches:
            if match.is_completed or not match.player1_id or not match.player2_id:
                continue

            a = players_by_id.get(match.player1_id)
            b = players_by_id.get(match.player2_id)
            if a is None or b is None:
                logger.warning(f"데이터 무결성 경고: 경기 {match.id}의 선수 정보 없음, 매칭 제외")
                continue

            straight = min(name_similarity(player1_name, a.name), name_similarity(player2_name, b.name))
            swapped = min(name_similarity(player1_name, b.name), name_similarity(player2_name, a.name))

            if swapped > straight:
                result.append(MatchCandidate(match=match, confidence=swapped, swapped=True))
            else:
                result.append(MatchCandidate(match=match, confidence=straight, swapped=False))

        result.sort(key=lambda c: (-c.confidence, c.match.id))
        return result

    def resolve(
        self,
        player1_name: str,
        player2_name: str,
        matches: Sequence[Match],
        players_by_id: Dict[str, Player],
    ) -> MatchResolution:
        """스코어보드 선수명 → 예정 경기"""
        ranked = self.candidates(player1_name, player2_name, matches, players_by_id)

        if not ranked:
            return MatchResolution(match_found=False, confidence_score=0.0, notes="미완료 경기 없음")

        best = ranked[0]
        if best.confidence < self.min_confidence:
            notes = f"일치하는 경기 없음 (최고 {best.confidence:.2f}, 경기 {best.match.id})"
            logger.info(f"매칭 실패: {player1_name} vs {player2_name} - {notes}")
            return MatchResolution(match_found=False, confidence_score=0.0, notes=notes)

        if len(ranked) > 1 and best.confidence - ranked[1].confidence < self.ambiguity_margin:
            notes = (
                f"모호한 매칭: {best.match.id} ({best.confidence:.2f}) /"
                f" {ranked[1].match.id} ({ranked[1].confidence:.2f})"
            )
            logger.info(f"매칭 실패: {player1_name} vs {player2_name} - {notes}")
            return MatchResolution(match_found=False, confidence_score=0.0, notes=notes)

        confidence = round(best.confidence, 3)
        logger.info(
            f"매칭 성공: {player1_name} vs {player2_name} → 경기 {best.match.id}"
            f" (신뢰도 {confidence:.2f}{', 선수 순서 반대' if best.swapped else ''})"
        )
        return MatchResolution(
            match_found=True,
            confidence_score=confidence,
            match_id=best.match.id,
            players_swapped=best.swapped,
            notes=f"신뢰도 {confidence:.2f}",
        )
