"""
스크래퍼 데이터 모델 정의 (Pydantic)
"""
from pydantic import BaseModel, Field
from typing import Optional, Any, Dict
from datetime import datetime
from enum import Enum


class PendingResultStatus(str, Enum):
    """스크랩 결과 승인 상태"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    AUTO_ACCEPTED = "auto-accepted"


class ScraperSessionStatus(str, Enum):
    """스크래퍼 세션 상태"""
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"
    FAILED = "failed"


class PlayerScore(BaseModel):
    """스코어보드 선수 한 명의 현재 상태"""
    name: str = Field(..., description="선수명")
    legs: int = Field(default=0, description="레그")
    sets: int = Field(default=0, description="세트")
    score: Optional[int] = Field(None, description="현재 레그 잔여 점수")
    average: float = Field(default=0.0, description="3다트 평균")
    one_eighties: int = Field(default=0, description="180 횟수")
    is_active: bool = Field(default=False, description="현재 투구 중")


class ScoreboardSnapshot(BaseModel):
    """스코어보드 한 번 조회 결과"""
    watch_code: str = Field(..., description="DartConnect 워치 코드")
    player1: PlayerScore
    player2: PlayerScore
    match_format: str = Field(default="", description="경기 방식 원문 (Best of 5 등)")
    current_leg: Optional[int] = Field(None, description="현재 레그 번호")
    captured_at: datetime = Field(default_factory=datetime.now, description="조회 시각")

    @property
    def score_key(self) -> tuple:
        return (self.player1.legs, self.player2.legs, self.player1.sets, self.player2.sets)


class PendingMatchResult(BaseModel):
    """완료 감지된 경기 결과 (승인 대기)"""
    id: Optional[str] = Field(None, description="DB ID")
    tournament_id: Optional[str] = Field(None, description="토너먼트 ID")
    watch_code: str = Field(..., description="DartConnect 워치 코드")
    scraper_session_id: Optional[str] = Field(None, description="스크래퍼 세션 ID")

    player1_name: str = Field(..., description="선수1 이름 (스코어보드 원문)")
    player2_name: str = Field(..., description="선수2 이름 (스코어보드 원문)")
    player1_legs: int = Field(default=0)
    player2_legs: int = Field(default=0)
    player1_sets: Optional[int] = Field(None)
    player2_sets: Optional[int] = Field(None)
    player1_average: Optional[float] = Field(None)
    player2_average: Optional[float] = Field(None)
    player1_180s: int = Field(default=0)
    player2_180s: int = Field(default=0)
    match_format: str = Field(default="")
    total_legs_played: int = Field(default=0)
    winner_name: Optional[str] = Field(None)

    status: PendingResultStatus = Field(default=PendingResultStatus.PENDING)
    confidence_score: float = Field(default=0.0, description="경기 매칭 신뢰도 (0~1)")
    match_found: bool = Field(default=False)
    match_id: Optional[str] = Field(None, description="매칭된 경기 ID")
    players_swapped: bool = Field(default=False, description="스코어보드 선수1 = 경기 선수2")
    matching_notes: Optional[str] = Field(None)

    match_completed_at: datetime = Field(default_factory=datetime.now)
    reviewed_at: Optional[datetime] = Field(None)
    reviewed_by: Optional[str] = Field(None)
    raw_scraper_data: Optional[Dict[str, Any]] = Field(None, description="원본 스코어보드 데이터")

    class Config:
        use_enum_values = True

    @property
    def is_pending(self) -> bool:
        return self.status == PendingResultStatus.PENDING

    def to_record(self) -> Dict[str, Any]:
        """pending_match_results 테이블 행"""
        data = self.model_dump(exclude={"id"}, mode="json")
        if self.id:
            data["id"] = self.id
        return data
