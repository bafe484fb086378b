"""
토너먼트 데이터 모델 정의 (Pydantic)

Supabase 테이블 행(tournaments, players, groups, matches)과 1:1 대응
"""
import math
from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum


class TournamentStatus(str, Enum):
    """토너먼트 진행 상태"""
    SETUP = "setup"
    GROUP_STAGE = "group-stage"
    KNOCKOUT = "knockout"
    COMPLETED = "completed"


class MatchStatus(str, Enum):
    """경기 상태"""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Tournament(BaseModel):
    """토너먼트 정보"""
    id: str = Field(..., description="토너먼트 ID")
    name: str = Field(default="", description="토너먼트명")
    status: TournamentStatus = Field(default=TournamentStatus.SETUP, description="진행 상태")
    group_stage_completed: bool = Field(default=False, description="조별 리그 종료 여부")
    players_advancing_per_group: Optional[int] = Field(None, description="조별 진출 인원")

    # 경기 방식
    roundrobin_legs_to_win: int = Field(default=2, description="조별 리그 승리 레그 수")
    knockout_legs_to_win: int = Field(default=3, description="토너먼트 승리 레그 수")

    # DartConnect 연동
    dartconnect_integration_enabled: bool = Field(default=False, description="DartConnect 연동 활성화")
    dartconnect_auto_accept_scores: bool = Field(default=False, description="고신뢰도 점수 자동 승인")
    dartconnect_require_manual_approval: bool = Field(default=True, description="모든 점수 수동 승인 필요")
    dartconnect_watch_codes: List[str] = Field(default_factory=list, description="감시 중인 워치 코드")

    class Config:
        use_enum_values = True


class Player(BaseModel):
    """선수 정보"""
    id: str = Field(..., description="선수 ID")
    name: str = Field(..., description="선수명")
    tournament_id: Optional[str] = Field(None, description="토너먼트 ID")
    group_id: Optional[str] = Field(None, description="소속 조 ID")


class Group(BaseModel):
    """조 정보"""
    id: str = Field(..., description="조 ID")
    name: str = Field(default="", description="조 이름")
    tournament_id: Optional[str] = Field(None, description="토너먼트 ID")
    player_ids: List[str] = Field(default_factory=list, description="소속 선수 ID 목록")
    advancement_count: Optional[int] = Field(None, description="진출 인원")

    def effective_advancement_count(self, default: Optional[int] = None) -> int:
        """진출 인원 (미설정 시 토너먼트 기본값, 그것도 없으면 조 인원의 절반 올림)"""
        if self.advancement_count is not None:
            return self.advancement_count
        if default is not None:
            return default
        return math.ceil(len(self.player_ids) / 2)


class Match(BaseModel):
    """경기 정보 (group_id가 없으면 토너먼트 경기)"""
    id: str = Field(..., description="경기 ID")
    tournament_id: Optional[str] = Field(None, description="토너먼트 ID")
    group_id: Optional[str] = Field(None, description="조 ID (토너먼트 경기는 None)")

    player1_id: Optional[str] = Field(None, description="선수1 ID (미정이면 None)")
    player2_id: Optional[str] = Field(None, description="선수2 ID (미정이면 None)")

    round_number: int = Field(default=1, description="라운드 번호 (1부터)")
    match_number: Optional[int] = Field(None, description="라운드 내 경기 번호")
    board_number: Optional[int] = Field(None, description="보드 번호")

    player1_legs: int = Field(default=0, description="선수1 레그")
    player2_legs: int = Field(default=0, description="선수2 레그")
    player1_sets: Optional[int] = Field(None, description="선수1 세트")
    player2_sets: Optional[int] = Field(None, description="선수2 세트")

    status: MatchStatus = Field(default=MatchStatus.SCHEDULED, description="경기 상태")
    winner_id: Optional[str] = Field(None, description="승자 ID")
    completed_at: Optional[datetime] = Field(None, description="종료 시각")
    raw_data: Optional[Dict[str, Any]] = Field(None, description="원본 데이터")

    class Config:
        use_enum_values = True

    @property
    def is_knockout(self) -> bool:
        return self.group_id is None

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    def involves(self, player_id: str) -> bool:
        return player_id in (self.player1_id, self.player2_id)

    def opponent_of(self, player_id: str) -> Optional[str]:
        if player_id == self.player1_id:
            return self.player2_id
        if player_id == self.player2_id:
            return self.player1_id
        return None
