"""
스크랩 결과 승인 처리

pending → approved | rejected | auto-accepted (한 번만 전환)
승인된 결과는 수동 점수 입력과 같은 경로(score_match)로 경기에 반영하고 이력을 남긴다.
"""
from datetime import datetime
from typing import Optional, Tuple
from loguru import logger

from scraper.config import result_config
from scraper.models import PendingMatchResult, PendingResultStatus
from tournament.models import Match, Tournament
from tournament.scoring import score_match
from tournament.session import TournamentSession
from .matcher import ResultMatcher


class ResultStateError(RuntimeError):
    """승인 대기 상태가 아닌 결과에 대한 처리 요청"""


class ScoreChangeType:
    """match_score_history.change_type"""
    MANUAL_ENTRY = "manual_entry"
    DARTCONNECT_AUTO = "dartconnect_auto"
    DARTCONNECT_APPROVED = "dartconnect_approved"
    SCORE_UPDATE = "score_update"


AUTO_REVIEWER = "dartconnect"


def should_auto_accept(
    tournament: Tournament,
    pending: PendingMatchResult,
    threshold: float,
) -> bool:
    """자동 승인 조건: 연동 설정 + 경기 매칭 + 신뢰도 기준 이상"""
    return (
        tournament.dartconnect_auto_accept_scores
        and not tournament.dartconnect_require_manual_approval
        and pending.match_found
        and pending.match_id is not None
        and pending.confidence_score >= threshold
    )


def _score_fields(match: Match) -> dict:
    return {
        "player1_legs": match.player1_legs,
        "player2_legs": match.player2_legs,
        "winner_id": match.winner_id,
    }


def _holds_score(
    match: Match,
    legs: Tuple[int, int],
    sets: Tuple[Optional[int], Optional[int]],
) -> bool:
    """완료된 경기에 이미 같은 점수가 저장되어 있는지"""
    return (
        match.is_completed
        and (match.player1_legs, match.player2_legs) == tuple(legs)
        and (match.player1_sets, match.player2_sets) == tuple(sets)
    )


async def apply_score(
    db,
    session: TournamentSession,
    match: Match,
    legs: Tuple[int, int],
    sets: Tuple[Optional[int], Optional[int]] = (None, None),
    change_type: str = ScoreChangeType.MANUAL_ENTRY,
    changed_by: Optional[str] = None,
    pending_result_id: Optional[str] = None,
    completed_at: Optional[datetime] = None,
) -> Match:
    """
    점수 반영 (수동 입력/스크랩 결과 공통)

    경기 저장 → 토너먼트 경기면 다음 경기 선수 배정 → 점수 이력 저장

    Raises:
        ValueError: 잘못된 점수
        PersistenceError: 저장 실패
    """
    scored = score_match(match, legs[0], legs[1], sets[0], sets[1], completed_at=completed_at)

    await db.update_match_score(scored)
    if scored.is_knockout:
        await session.apply_knockout_result(db, scored)
    else:
        session.matches = [scored if m.id == scored.id else m for m in session.matches]
    await db.insert_score_history(
        match.id,
        change_type,
        _score_fields(match),
        _score_fields(scored),
        changed_by=changed_by,
        pending_result_id=pending_result_id,
    )
    return scored


class ResultApprovalService:
    """스크랩 결과 수집/승인/거절"""

    def __init__(
        self,
        db,
        matcher: Optional[ResultMatcher] = None,
        auto_accept_threshold: Optional[float] = None,
    ):
        self.db = db
        self.matcher = matcher or ResultMatcher()
        self.auto_accept_threshold = (
            result_config.auto_accept_threshold if auto_accept_threshold is None else auto_accept_threshold
        )

    async def ingest(self, pending: PendingMatchResult) -> PendingMatchResult:
        """
        감지된 경기 결과 저장 (경기 매칭 → 저장 → 조건 충족 시 자동 승인)

        Raises:
            PersistenceError: 저장 실패
        """
        if not pending.tournament_id:
            raise ValueError("tournament_id가 없는 결과는 저장할 수 없습니다")

        session = await TournamentSession.load(self.db, pending.tournament_id)
        resolution = self.matcher.resolve(
            pending.player1_name,
            pending.player2_name,
            session.matches,
            session.players_by_id,
        )

        pending = pending.model_copy(update={
            "status": PendingResultStatus.PENDING.value,
            "match_found": resolution.match_found,
            "confidence_score": resolution.confidence_score,
            "match_id": resolution.match_id,
            "players_swapped": resolution.players_swapped,
            "matching_notes": resolution.notes,
        })

        pending_id = await self.db.insert_pending_result(pending)
        pending = pending.model_copy(update={"id": pending_id})
        logger.info(
            f"승인 대기 결과 저장: {pending.player1_name} {pending.player1_legs}-{pending.player2_legs}"
            f" {pending.player2_name} (매칭 {'성공' if pending.match_found else '실패'},"
            f" 신뢰도 {pending.confidence_score:.2f})"
        )

        if should_auto_accept(session.tournament, pending, self.auto_accept_threshold):
            return await self._apply(
                pending,
                session,
                PendingResultStatus.AUTO_ACCEPTED,
                ScoreChangeType.DARTCONNECT_AUTO,
                AUTO_REVIEWER,
            )
        return pending

    async def approve(
        self,
        pending_id: str,
        reviewer: Optional[str] = None,
        match_id: Optional[str] = None,
        players_swapped: Optional[bool] = None,
    ) -> PendingMatchResult:
        """
        수동 승인 (매칭 실패 결과는 match_id를 직접 지정)

        Raises:
            ResultStateError: 승인 대기 상태가 아니거나 경기가 지정되지 않은 경우
            PersistenceError: 저장 실패
        """
        pending = await self._load_pending(pending_id)

        updates = {}
        if match_id is not None:
            updates["match_id"] = match_id
        if players_swapped is not None:
            updates["players_swapped"] = players_swapped
        if updates:
            pending = pending.model_copy(update=updates)

        if not pending.match_id:
            raise ResultStateError(f"경기가 지정되지 않은 결과입니다: {pending_id}")

        session = await TournamentSession.load(self.db, pending.tournament_id)
        return await self._apply(
            pending,
            session,
            PendingResultStatus.APPROVED,
            ScoreChangeType.DARTCONNECT_APPROVED,
            reviewer,
        )

    async def enter_score(
        self,
        tournament_id: str,
        match_id: str,
        player1_legs: int,
        player2_legs: int,
        player1_sets: Optional[int] = None,
        player2_sets: Optional[int] = None,
        entered_by: Optional[str] = None,
    ) -> Match:
        """
        수동 점수 입력 (완료된 조별 경기는 점수 수정)

        완료된 토너먼트 경기에 같은 점수를 다시 입력하면 저장이 중단된 승자 진출만 마무리

        Raises:
            ResultStateError: 다른 점수로 완료된 토너먼트 경기
            ValueError: 잘못된 점수
            PersistenceError: 저장 실패
        """
        session = await TournamentSession.load(self.db, tournament_id)
        match = next((m for m in session.matches if m.id == match_id), None)
        if match is None:
            raise LookupError(f"경기를 찾을 수 없습니다: {match_id}")

        legs = (player1_legs, player2_legs)
        sets = (player1_sets, player2_sets)
        if match.is_knockout and match.is_completed:
            if not _holds_score(match, legs, sets):
                raise ResultStateError(f"이미 완료된 토너먼트 경기입니다: {match_id}")
            await session.sync_knockout_players(self.db)
            return match

        change_type = ScoreChangeType.SCORE_UPDATE if match.is_completed else ScoreChangeType.MANUAL_ENTRY
        return await apply_score(
            self.db,
            session,
            match,
            legs,
            sets,
            change_type,
            changed_by=entered_by,
        )

    async def reject(
        self,
        pending_id: str,
        reviewer: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> PendingMatchResult:
        """
        거절 (경기는 변경하지 않음)

        Raises:
            ResultStateError: 승인 대기 상태가 아닌 경우
            PersistenceError: 저장 실패
        """
        pending = await self._load_pending(pending_id)

        reviewed_at = datetime.now()
        notes = pending.matching_notes or ""
        if reason:
            notes = f"{notes} | 거절: {reason}" if notes else f"거절: {reason}"

        await self.db.update_pending_result(pending_id, {
            "status": PendingResultStatus.REJECTED.value,
            "reviewed_at": reviewed_at.isoformat(),
            "reviewed_by": reviewer,
            "matching_notes": notes,
        })
        logger.info(f"스크랩 결과 거절: {pending_id} ({reason or '사유 없음'})")

        return pending.model_copy(update={
            "status": PendingResultStatus.REJECTED.value,
            "reviewed_at": reviewed_at,
            "reviewed_by": reviewer,
            "matching_notes": notes,
        })

    async def _load_pending(self, pending_id: str) -> PendingMatchResult:
        pending = await self.db.get_pending_result(pending_id)
        if pending is None:
            raise LookupError(f"스크랩 결과를 찾을 수 없습니다: {pending_id}")
        if not pending.is_pending:
            raise ResultStateError(f"이미 처리된 결과입니다: {pending_id} ({pending.status})")
        return pending

    async def _apply(
        self,
        pending: PendingMatchResult,
        session: TournamentSession,
        status: PendingResultStatus,
        change_type: str,
        reviewer: Optional[str],
    ) -> PendingMatchResult:
        """결과를 경기에 반영하고 상태 전환"""
        match = next((m for m in session.matches if m.id == pending.match_id), None)
        if match is None:
            raise ResultStateError(f"경기를 찾을 수 없습니다: {pending.match_id}")

        if pending.players_swapped:
            legs = (pending.player2_legs, pending.player1_legs)
            sets = (pending.player2_sets, pending.player1_sets)
        else:
            legs = (pending.player1_legs, pending.player2_legs)
            sets = (pending.player1_sets, pending.player2_sets)

        if _holds_score(match, legs, sets):
            # 이전 처리에서 경기는 저장되고 결과 상태 저장만 실패한 경우
            logger.info(f"이미 반영된 결과, 상태만 전환: 경기 {match.id}")
            if match.is_knockout:
                await session.sync_knockout_players(self.db)
        elif match.is_knockout and match.is_completed:
            raise ResultStateError(f"이미 완료된 토너먼트 경기입니다: {match.id}")
        else:
            await apply_score(
                self.db,
                session,
                match,
                legs,
                sets,
                change_type,
                changed_by=reviewer,
                pending_result_id=pending.id,
                completed_at=pending.match_completed_at,
            )

        reviewed_at = datetime.now()
        await self.db.update_pending_result(pending.id, {
            "status": PendingResultStatus(status).value,
            "match_id": match.id,
            "reviewed_at": reviewed_at.isoformat(),
            "reviewed_by": reviewer,
        })
        logger.info(f"스크랩 결과 반영 ({PendingResultStatus(status).value}): 경기 {match.id}")

        return pending.model_copy(update={
            "status": PendingResultStatus(status).value,
            "match_id": match.id,
            "reviewed_at": reviewed_at,
            "reviewed_by": reviewer,
        })
