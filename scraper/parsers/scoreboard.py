"""
DartConnect 라이브 스코어보드 파서
"""
import re
from typing import Optional, List
from bs4 import BeautifulSoup
from loguru import logger

from ..models import PlayerScore, ScoreboardSnapshot


# 선택자 후보 (앞쪽 우선), {n} = 선수 번호
PLAYER_SELECTORS = {
    "name": [
        "#p{n}_name",
        ".player-{n}-name",
        ".player{n}-name",
        ".player{n} .name",
        '[data-player="{n}"] .name',
    ],
    "score": [
        "#p{n}_score",
        ".player-{n}-score",
        ".player{n} .score",
        '[data-player="{n}"] .score',
    ],
    "legs": [
        "#p{n}_legs",
        ".player-{n}-legs",
        ".player{n}-legs",
        ".player{n} .legs",
        '[data-player="{n}"] .legs',
        ".legs-{n}",
    ],
    "sets": [
        "#p{n}_sets",
        ".player-{n}-sets",
        ".player{n}-sets",
        ".player{n} .sets",
        '[data-player="{n}"] .sets',
    ],
    "average": [
        "#p{n}_avg",
        ".player-{n}-average",
        ".player{n}-average",
        ".player{n} .average",
        '[data-player="{n}"] .avg',
    ],
    "180s": [
        "#p{n}_180s",
        ".player{n}-180s",
        ".player{n} .one-eighties",
    ],
}

ACTIVE_SELECTOR = '.player{n}.active, [data-player="{n}"].active, .p{n}.active'
FORMAT_SELECTOR = ".match-format, .game-format, .format"
CURRENT_LEG_SELECTOR = ".current-leg, .leg-number"

BEST_OF_PATTERN = re.compile(r"best\s*of\s*(\d+)", re.IGNORECASE)
FIRST_TO_PATTERN = re.compile(r"first\s*to\s*(\d+)", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


def parse_match_format(text: Optional[str]) -> Optional[int]:
    """
    경기 방식 → 승리 레그 수

    "Best of 5" → 3, "First to 3" → 3, 해석 불가 → None
    """
    if not text:
        return None

    match = FIRST_TO_PATTERN.search(text)
    if match:
        return int(match.group(1)) or None

    match = BEST_OF_PATTERN.search(text)
    if match:
        total = int(match.group(1))
        return total // 2 + 1 if total > 0 else None

    return None


class ScoreboardParser:
    """스코어보드 HTML 파서"""

    @staticmethod
    def parse_html(html: str, watch_code: str) -> Optional[ScoreboardSnapshot]:
        """
        렌더링된 스코어보드 HTML → ScoreboardSnapshot

        두 선수 이름이 모두 없으면 (페이지 로딩 전) None
        """
        soup = BeautifulSoup(html, "lxml")

        name1 = ScoreboardParser._first_text(soup, PLAYER_SELECTORS["name"], 1)
        name2 = ScoreboardParser._first_text(soup, PLAYER_SELECTORS["name"], 2)
        if not name1 and not name2:
            logger.debug(f"[{watch_code}] 스코어보드 선수 정보 없음")
            return None

        current_leg = ScoreboardParser._safe_int(soup_text(soup, CURRENT_LEG_SELECTOR))

        return ScoreboardSnapshot(
            watch_code=watch_code,
            player1=ScoreboardParser._parse_player(soup, 1, name1),
            player2=ScoreboardParser._parse_player(soup, 2, name2),
            match_format=soup_text(soup, FORMAT_SELECTOR) or "",
            current_leg=current_leg,
        )

    @staticmethod
    def _parse_player(soup: BeautifulSoup, n: int, name: Optional[str]) -> PlayerScore:
        """선수 한 명 파싱"""
        legs = ScoreboardParser._safe_int(ScoreboardParser._first_text(soup, PLAYER_SELECTORS["legs"], n))
        sets = ScoreboardParser._safe_int(ScoreboardParser._first_text(soup, PLAYER_SELECTORS["sets"], n))
        score = ScoreboardParser._safe_int(ScoreboardParser._first_text(soup, PLAYER_SELECTORS["score"], n))
        average = ScoreboardParser._safe_float(ScoreboardParser._first_text(soup, PLAYER_SELECTORS["average"], n))
        tons = ScoreboardParser._safe_int(ScoreboardParser._first_text(soup, PLAYER_SELECTORS["180s"], n))

        return PlayerScore(
            name=name or f"Player {n}",
            legs=legs or 0,
            sets=sets or 0,
            score=score,
            average=average or 0.0,
            one_eighties=tons or 0,
            is_active=soup.select_one(ACTIVE_SELECTOR.format(n=n)) is not None,
        )

    @staticmethod
    def _first_text(soup: BeautifulSoup, selectors: List[str], n: int) -> Optional[str]:
        """후보 선택자 중 처음으로 값이 있는 요소의 텍스트"""
        for selector in selectors:
            text = soup_text(soup, selector.format(n=n))
            if text:
                return text
        return None

    @staticmethod
    def _safe_int(value) -> Optional[int]:
        """안전하게 정수 변환 (숫자 이외 문자 무시)"""
        if value is None:
            return None
        match = NUMBER_PATTERN.search(str(value))
        if not match:
            return None
        try:
            return int(float(match.group(0)))
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _safe_float(value) -> Optional[float]:
        """안전하게 실수 변환"""
        if value is None:
            return None
        match = NUMBER_PATTERN.search(str(value))
        if not match:
            return None
        try:
            return float(match.group(0))
        except (ValueError, TypeError):
            return None


def soup_text(soup: BeautifulSoup, selector: str) -> Optional[str]:
    """선택자 요소의 공백 제거 텍스트 (없으면 None)"""
    element = soup.select_one(selector)
    if element is None:
        return None
    text = element.get_text(strip=True)
    return text or None
