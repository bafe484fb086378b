"""
Supabase 데이터베이스 클라이언트

조회 오류는 로그 후 빈 값 반환, 저장 오류는 PersistenceError로 호출자에게 전달
"""
from datetime import datetime
from typing import List, Optional, Dict, Any
from supabase import create_client, Client
from loguru import logger

from scraper.config import supabase_config
from scraper.models import PendingMatchResult, ScraperSessionStatus
from tournament.models import Tournament, Group, Player, Match


class PersistenceError(RuntimeError):
    """DB 저장 실패"""


def _clean(row: Dict[str, Any]) -> Dict[str, Any]:
    """None 값 제거 (모델 기본값 사용)"""
    return {k: v for k, v in row.items() if v is not None}


class SupabaseDB:
    """Supabase 데이터베이스 클라이언트"""

    def __init__(self, client: Optional[Client] = None):
        if client is not None:
            self.client = client
            return

        if not supabase_config.supabase_url or not supabase_config.supabase_key:
            raise ValueError("SUPABASE_URL과 SUPABASE_KEY 환경변수를 설정해주세요")

        self.client: Client = create_client(
            supabase_config.supabase_url,
            supabase_config.supabase_key
        )

    def _write(self, description: str, query) -> List[Dict[str, Any]]:
        """저장 쿼리 실행 (실패 시 PersistenceError)"""
        try:
            result = query.execute()
        except Exception as e:
            logger.error(f"{description} 오류: {e}")
            raise PersistenceError(f"{description} 실패: {e}") from e
        return result.data or []

    # ==================== 토너먼트 관련 ====================

    async def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        """토너먼트 조회"""
        try:
            result = self.client.table("tournaments").select("*").eq(
                "id", tournament_id
            ).execute()

            if result.data:
                return Tournament(**_clean(result.data[0]))
            return None
        except Exception as e:
            logger.error(f"토너먼트 조회 오류: {e}")
            return None

    # ==================== 조/선수 관련 ====================

    async def get_groups(self, tournament_id: str) -> List[Group]:
        """조 목록 (생성 순)"""
        try:
            result = self.client.table("groups").select("*").eq(
                "tournament_id", tournament_id
            ).order("created_at").execute()
            return [Group(**_clean(row)) for row in result.data or []]
        except Exception as e:
            logger.error(f"조 조회 오류: {e}")
            return []

    async def get_players(self, tournament_id: str) -> List[Player]:
        """선수 목록"""
        try:
            result = self.client.table("players").select("*").eq(
                "tournament_id", tournament_id
            ).execute()
            return [Player(**_clean(row)) for row in result.data or []]
        except Exception as e:
            logger.error(f"선수 조회 오류: {e}")
            return []

    # ==================== 경기 관련 ====================

    async def get_matches(self, tournament_id: str) -> List[Match]:
        """경기 목록"""
        try:
            result = self.client.table("matches").select("*").eq(
                "tournament_id", tournament_id
            ).execute()
            return [Match(**_clean(row)) for row in result.data or []]
        except Exception as e:
            logger.error(f"경기 조회 오류: {e}")
            return []

    async def update_match_score(self, match: Match) -> None:
        """경기 점수/승자/상태 저장"""
        data = {
            "player1_legs": match.player1_legs,
            "player2_legs": match.player2_legs,
            "player1_sets": match.player1_sets,
            "player2_sets": match.player2_sets,
            "winner_id": match.winner_id,
            "status": match.status,
            "completed_at": match.completed_at.isoformat() if match.completed_at else None,
        }
        self._write(
            "경기 점수 저장",
            self.client.table("matches").update(data).eq("id", match.id)
        )

    async def update_match_players(
        self,
        match_id: str,
        player1_id: Optional[str],
        player2_id: Optional[str],
    ) -> None:
        """토너먼트 경기 선수 배정 (승자 진출)"""
        self._write(
            "경기 선수 배정",
            self.client.table("matches").update({
                "player1_id": player1_id,
                "player2_id": player2_id,
            }).eq("id", match_id)
        )

    async def save_knockout_matches(self, records: List[Dict[str, Any]]) -> List[Match]:
        """토너먼트 경기 일괄 저장"""
        if not records:
            return []
        rows = self._write("토너먼트 경기 저장", self.client.table("matches").upsert(records))
        return [Match(**_clean(row)) for row in rows]

    async def delete_knockout_matches(self, tournament_id: str) -> None:
        """토너먼트 경기 전체 삭제 (대진표 재생성용)"""
        self._write(
            "토너먼트 경기 삭제",
            self.client.table("matches").delete().eq(
                "tournament_id", tournament_id
            ).is_("group_id", "null")
        )

    async def insert_score_history(
        self,
        match_id: str,
        change_type: str,
        before: Dict[str, Any],
        after: Dict[str, Any],
        changed_by: Optional[str] = None,
        pending_result_id: Optional[str] = None,
    ) -> None:
        """점수 변경 이력 저장"""
        data = {
            "match_id": match_id,
            "change_type": change_type,
            "previous_player1_legs": before.get("player1_legs"),
            "previous_player2_legs": before.get("player2_legs"),
            "new_player1_legs": after.get("player1_legs"),
            "new_player2_legs": after.get("player2_legs"),
            "previous_winner_id": before.get("winner_id"),
            "new_winner_id": after.get("winner_id"),
            "changed_by": changed_by,
            "pending_result_id": pending_result_id,
        }
        self._write("점수 이력 저장", self.client.table("match_score_history").insert(data))

    # ==================== 스크랩 결과 관련 ====================

    async def insert_pending_result(self, pending: PendingMatchResult) -> str:
        """승인 대기 결과 저장 → ID"""
        rows = self._write(
            "승인 대기 결과 저장",
            self.client.table("pending_match_results").insert(pending.to_record())
        )
        if not rows or not rows[0].get("id"):
            raise PersistenceError("승인 대기 결과 저장 실패: ID 없음")
        return rows[0]["id"]

    async def update_pending_result(self, pending_id: str, fields: Dict[str, Any]) -> None:
        """승인 대기 결과 상태 업데이트"""
        self._write(
            "승인 대기 결과 업데이트",
            self.client.table("pending_match_results").update(fields).eq("id", pending_id)
        )

    async def get_pending_result(self, pending_id: str) -> Optional[PendingMatchResult]:
        """승인 대기 결과 한 건 조회"""
        try:
            result = self.client.table("pending_match_results").select("*").eq(
                "id", pending_id
            ).execute()
            if result.data:
                return PendingMatchResult(**_clean(result.data[0]))
            return None
        except Exception as e:
            logger.error(f"승인 대기 결과 조회 오류: {e}")
            return None

    # ==================== 스크래퍼 세션 관련 ====================

    async def create_scraper_session(self, tournament_id: Optional[str], watch_code: str) -> Optional[str]:
        """스크래퍼 세션 기록 생성"""
        data = {
            "tournament_id": tournament_id,
            "watch_code": watch_code,
            "status": ScraperSessionStatus.RUNNING.value,
            "started_at": datetime.now().isoformat(),
        }
        rows = self._write("스크래퍼 세션 생성", self.client.table("scraper_sessions").insert(data))
        return rows[0].get("id") if rows else None

    async def update_scraper_session(
        self,
        session_id: str,
        status: ScraperSessionStatus,
        error_message: Optional[str] = None,
    ) -> None:
        """스크래퍼 세션 상태 업데이트"""
        data = {
            "status": ScraperSessionStatus(status).value,
            "ended_at": datetime.now().isoformat(),
            "error_message": error_message,
        }
        self._write(
            "스크래퍼 세션 업데이트",
            self.client.table("scraper_sessions").update(data).eq("id", session_id)
        )
