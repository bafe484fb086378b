"""
스크래퍼 및 결과 처리 설정
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class DartConnectConfig(BaseSettings):
    """DartConnect 라이브 스코어보드 설정"""

    # DartConnect TV 웹사이트
    base_url: str = "https://tv.dartconnect.com"

    # 폴링 설정
    check_interval_seconds: float = Field(default=5.0, description="스코어보드 확인 간격 (초)")
    completion_stable_polls: int = Field(default=3, description="완료 판정에 필요한 연속 동일 점수 횟수")
    default_legs_to_win: int = Field(default=2, description="경기 방식을 알 수 없을 때 승리 레그 수")

    # 브라우저 설정
    headless: bool = Field(default=True, description="헤드리스 브라우저 사용")
    page_timeout_ms: int = Field(default=30000, description="페이지 로드 타임아웃 (ms)")

    class Config:
        env_prefix = "DARTCONNECT_"
        case_sensitive = False

    def watch_url(self, watch_code: str) -> str:
        """워치 코드 → 라이브 페이지 URL"""
        return f"{self.base_url}/live/{watch_code}"


class SupabaseConfig(BaseSettings):
    """Supabase 설정"""

    supabase_url: str = Field(default="", description="Supabase Project URL")
    supabase_key: str = Field(default="", description="Supabase service role key")

    class Config:
        env_prefix = ""
        case_sensitive = False


class ScraperServiceConfig(BaseSettings):
    """스크래퍼 서비스 (워치 코드 감시) 설정"""

    tournament_id: Optional[str] = Field(default=None, description="감시할 토너먼트 ID")
    poll_interval_seconds: int = Field(default=10, description="워치 코드 DB 조회 간격 (초)")
    max_concurrent_scrapers: int = Field(default=4, description="최대 동시 스크래퍼 수")

    class Config:
        env_prefix = "SCRAPER_"
        case_sensitive = False


class ResultConfig(BaseSettings):
    """스크랩 결과 매칭/승인 설정"""

    auto_accept_threshold: float = Field(default=0.90, description="자동 승인 최소 신뢰도")
    min_match_confidence: float = Field(default=0.60, description="경기 매칭 최소 신뢰도")
    ambiguity_margin: float = Field(default=0.05, description="1위/2위 후보 신뢰도 차이가 이보다 작으면 모호")

    class Config:
        env_prefix = "RESULT_"
        case_sensitive = False


# 전역 설정 인스턴스
dartconnect_config = DartConnectConfig()
supabase_config = SupabaseConfig()
service_config = ScraperServiceConfig()
result_config = ResultConfig()
