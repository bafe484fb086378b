"""
경기 완료 감지

한 선수가 승리 레그 수에 도달하고, 같은 최종 점수가 N회 연속 조회되면 완료로 판정한다.
완료 판정은 한 번만 하며 이후 관측은 무시한다.
"""
from typing import Optional
from loguru import logger

from .models import PendingMatchResult, ScoreboardSnapshot
from .parsers.scoreboard import parse_match_format


class MatchCompletionDetector:
    """경기 완료 감지 상태 머신"""

    def __init__(
        self,
        watch_code: str,
        stable_polls: int = 3,
        legs_to_win: Optional[int] = None,
        default_legs_to_win: int = 2,
        tournament_id: Optional[str] = None,
        scraper_session_id: Optional[str] = None,
    ):
        """
        Args:
            watch_code: DartConnect 워치 코드
            stable_polls: 완료 판정에 필요한 연속 동일 점수 횟수
            legs_to_win: 승리 레그 수 (None이면 스코어보드 경기 방식에서 추출)
            default_legs_to_win: 경기 방식을 알 수 없을 때 승리 레그 수
        """
        if stable_polls < 1:
            raise ValueError(f"stable_polls는 1 이상이어야 합니다: {stable_polls}")

        self.watch_code = watch_code
        self.stable_polls = stable_polls
        self.legs_to_win = legs_to_win
        self.default_legs_to_win = default_legs_to_win
        self.tournament_id = tournament_id
        self.scraper_session_id = scraper_session_id

        self.consecutive_checks = 0
        self.last_final_score: Optional[tuple] = None
        self.result: Optional[PendingMatchResult] = None

    @property
    def completed(self) -> bool:
        return self.result is not None

    def threshold_for(self, snapshot: ScoreboardSnapshot) -> int:
        """승리 레그 수 결정"""
        if self.legs_to_win:
            return self.legs_to_win
        return parse_match_format(snapshot.match_format) or self.default_legs_to_win

    def observe(self, snapshot: ScoreboardSnapshot) -> Optional[PendingMatchResult]:
        """
        스코어보드 한 번 관측

        Returns:
            이번 관측으로 완료 판정되면 PendingMatchResult, 아니면 None
        """
        if self.completed:
            return None

        p1_legs = snapshot.player1.legs
        p2_legs = snapshot.player2.legs

        if max(p1_legs, p2_legs) < self.threshold_for(snapshot):
            self.consecutive_checks = 0
            self.last_final_score = None
            return None

        if snapshot.score_key == self.last_final_score:
            self.consecutive_checks += 1
        else:
            self.consecutive_checks = 1
            self.last_final_score = snapshot.score_key

        logger.debug(
            f"[{self.watch_code}] 완료 후보 {p1_legs}-{p2_legs}"
            f" ({self.consecutive_checks}/{self.stable_polls})"
        )

        if self.consecutive_checks < self.stable_polls:
            return None

        self.result = self._build_result(snapshot)
        logger.info(
            f"[{self.watch_code}] 🎯 경기 완료: {snapshot.player1.name} {p1_legs}"
            f" - {p2_legs} {snapshot.player2.name}"
        )
        return self.result

    def _build_result(self, snapshot: ScoreboardSnapshot) -> PendingMatchResult:
        p1, p2 = snapshot.player1, snapshot.player2

        if p1.legs > p2.legs:
            winner_name = p1.name
        elif p2.legs > p1.legs:
            winner_name = p2.name
        else:
            winner_name = None

        has_sets = bool(p1.sets or p2.sets)

        return PendingMatchResult(
            tournament_id=self.tournament_id,
            watch_code=self.watch_code,
            scraper_session_id=self.scraper_session_id,
            player1_name=p1.name,
            player2_name=p2.name,
            player1_legs=p1.legs,
            player2_legs=p2.legs,
            player1_sets=p1.sets if has_sets else None,
            player2_sets=p2.sets if has_sets else None,
            player1_average=p1.average or None,
            player2_average=p2.average or None,
            player1_180s=p1.one_eighties,
            player2_180s=p2.one_eighties,
            match_format=snapshot.match_format,
            total_legs_played=p1.legs + p2.legs,
            winner_name=winner_name,
            match_completed_at=snapshot.captured_at,
            raw_scraper_data=snapshot.model_dump(mode="json"),
        )
