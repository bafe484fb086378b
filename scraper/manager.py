"""
DartConnect 스크래퍼 서비스

토너먼트의 워치 코드 목록을 주기적으로 조회해 코드별 감시를 시작/중단한다.
- 새 코드: 감시 시작 (최대 동시 감시 수 제한)
- 목록에서 빠진 코드: 감시 중단
- 연동 비활성화: 전체 중단
- 완료된 코드는 다시 감시하지 않음
"""
import asyncio
from datetime import datetime
from typing import Callable, Dict, Optional, Set
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from .config import dartconnect_config, service_config, DartConnectConfig, ScraperServiceConfig
from .dartconnect import DartConnectPage
from .detector import MatchCompletionDetector
from .models import ScraperSessionStatus
from .watcher import MatchWatcher


class ScraperManager:
    """워치 코드별 스크래퍼 관리"""

    def __init__(
        self,
        db,
        approval,
        tournament_id: str,
        source_factory: Optional[Callable] = None,
        config: Optional[ScraperServiceConfig] = None,
        dartconnect: Optional[DartConnectConfig] = None,
    ):
        """
        Args:
            db: SupabaseDB
            approval: ResultApprovalService (완료 결과 저장)
            tournament_id: 감시할 토너먼트 ID
            source_factory: 워치 코드 → async context manager 스코어보드 소스 (기본 DartConnectPage)
        """
        self.db = db
        self.approval = approval
        self.tournament_id = tournament_id
        self.config = config or service_config
        self.dartconnect = dartconnect or dartconnect_config
        self.source_factory = source_factory or (lambda code: DartConnectPage(code, self.dartconnect))

        self.scheduler = AsyncIOScheduler()
        self._watchers: Dict[str, MatchWatcher] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._finished_codes: Set[str] = set()
        self._is_running = False
        self._last_sync: Optional[datetime] = None

    @property
    def active_codes(self) -> Set[str]:
        return set(self._tasks)

    def setup(self):
        """스케줄러 설정"""
        self.scheduler.add_job(
            self.sync_watch_codes,
            IntervalTrigger(seconds=self.config.poll_interval_seconds),
            id="watch_code_sync",
            name="DartConnect Watch Code Sync",
            max_instances=1,
            replace_existing=True
        )
        logger.info(f"워치 코드 동기화 스케줄 등록 ({self.config.poll_interval_seconds}초 간격)")

    async def sync_watch_codes(self):
        """워치 코드 목록과 실행 중인 감시 동기화"""
        if self._is_running:
            logger.debug("워치 코드 동기화 진행 중, 스킵")
            return

        self._is_running = True
        try:
            tournament = await self.db.get_tournament(self.tournament_id)
            if tournament is None or not tournament.dartconnect_integration_enabled:
                if self._tasks:
                    logger.info("DartConnect 연동 비활성화, 전체 감시 중단")
                await self.stop_all()
                return

            codes = [c for c in dict.fromkeys(tournament.dartconnect_watch_codes) if c]

            for code in list(self._tasks):
                if code not in codes:
                    logger.info(f"[{code}] 워치 코드 제거됨, 감시 중단")
                    await self.stop_watcher(code)

            for code in codes:
                if code in self._tasks or code in self._finished_codes:
                    continue
                if len(self._tasks) >= self.config.max_concurrent_scrapers:
                    logger.warning(
                        f"최대 동시 스크래퍼 수({self.config.max_concurrent_scrapers}) 도달, {code} 대기"
                    )
                    break
                self.start_watcher(code)

            self._last_sync = datetime.now()
        except Exception as e:
            logger.error(f"워치 코드 동기화 오류: {e}")
        finally:
            self._is_running = False

    def start_watcher(self, watch_code: str) -> asyncio.Task:
        """워치 코드 감시 시작"""
        task = asyncio.create_task(self._run_watcher(watch_code))
        self._tasks[watch_code] = task
        logger.info(f"[{watch_code}] 스크래퍼 시작 (실행 중 {len(self._tasks)}개)")
        return task

    async def _run_watcher(self, watch_code: str):
        session_id = None
        try:
            session_id = await self.db.create_scraper_session(self.tournament_id, watch_code)
            detector = MatchCompletionDetector(
                watch_code,
                stable_polls=self.dartconnect.completion_stable_polls,
                default_legs_to_win=self.dartconnect.default_legs_to_win,
                tournament_id=self.tournament_id,
                scraper_session_id=session_id,
            )

            async with self.source_factory(watch_code) as source:
                watcher = MatchWatcher(
                    source,
                    detector,
                    interval_seconds=self.dartconnect.check_interval_seconds,
                    on_result=self.approval.ingest,
                )
                self._watchers[watch_code] = watcher
                result = await watcher.run()

            if result is not None:
                self._finished_codes.add(watch_code)
            status = ScraperSessionStatus.COMPLETED if result is not None else ScraperSessionStatus.STOPPED
            if session_id:
                await self.db.update_scraper_session(session_id, status)
            logger.info(f"[{watch_code}] 스크래퍼 종료 ({status.value})")
        except asyncio.CancelledError:
            logger.info(f"[{watch_code}] 스크래퍼 취소됨")
            raise
        except Exception as e:
            logger.error(f"[{watch_code}] 스크래퍼 오류: {e}")
            if session_id:
                try:
                    await self.db.update_scraper_session(session_id, ScraperSessionStatus.FAILED, str(e))
                except Exception as update_error:
                    logger.error(f"[{watch_code}] 세션 상태 저장 오류: {update_error}")
        finally:
            self._watchers.pop(watch_code, None)
            self._tasks.pop(watch_code, None)

    async def stop_watcher(self, watch_code: str, timeout: Optional[float] = None):
        """워치 코드 감시 중단 (대기 시간 내 끝나지 않으면 취소)"""
        task = self._tasks.get(watch_code)
        if task is None:
            return

        watcher = self._watchers.get(watch_code)
        if watcher is not None:
            watcher.stop()
        else:
            task.cancel()

        wait = timeout if timeout is not None else self.dartconnect.check_interval_seconds * 2
        done, _ = await asyncio.wait({task}, timeout=wait)
        if task not in done:
            logger.warning(f"[{watch_code}] 스크래퍼가 응답하지 않아 취소")
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def stop_all(self):
        """전체 감시 중단"""
        for code in list(self._tasks):
            await self.stop_watcher(code)

    def start(self):
        """스케줄러 시작"""
        self.setup()
        self.scheduler.start()
        logger.info(f"스크래퍼 서비스 시작됨 (토너먼트 {self.tournament_id})")

    async def stop(self):
        """스케줄러 및 전체 감시 중지"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        await self.stop_all()
        logger.info("스크래퍼 서비스 중지됨")

    def get_status(self) -> dict:
        """서비스 상태 조회"""
        return {
            "tournament_id": self.tournament_id,
            "is_syncing": self._is_running,
            "last_sync": self._last_sync.isoformat() if self._last_sync else None,
            "active": sorted(self._tasks),
            "finished": sorted(self._finished_codes),
            "watchers": {
                code: {"polls": w.poll_count, "errors": w.error_count}
                for code, w in self._watchers.items()
            },
        }
