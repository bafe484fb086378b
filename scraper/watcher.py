"""
스코어보드 폴링 루프

- 조회는 순차 실행 (이전 조회가 끝난 뒤 대기 → 다음 조회)
- stop()으로 대기 중에도 즉시 중단
- 조회 오류는 로그만 남기고 계속
- 완료 판정 후 결과 콜백 호출, 루프 종료 (재시작 불가)
"""
import asyncio
from typing import Awaitable, Callable, Optional, Protocol
from loguru import logger

from .detector import MatchCompletionDetector
from .models import PendingMatchResult, ScoreboardSnapshot


class SnapshotSource(Protocol):
    async def fetch_snapshot(self) -> Optional[ScoreboardSnapshot]:
        ...


ResultCallback = Callable[[PendingMatchResult], Awaitable[None]]


class MatchWatcher:
    """워치 코드 하나에 대한 폴링 루프"""

    def __init__(
        self,
        source: SnapshotSource,
        detector: MatchCompletionDetector,
        interval_seconds: float = 5.0,
        on_result: Optional[ResultCallback] = None,
    ):
        self.source = source
        self.detector = detector
        self.interval_seconds = interval_seconds
        self.on_result = on_result

        self._stop_event: Optional[asyncio.Event] = None
        self._stop_requested = False
        self._running = False
        self.poll_count = 0
        self.error_count = 0

    @property
    def watch_code(self) -> str:
        return self.detector.watch_code

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self):
        """폴링 중단 요청"""
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()

    async def poll_once(self) -> Optional[PendingMatchResult]:
        """스코어보드 1회 조회 (오류는 로그 후 None)"""
        self.poll_count += 1
        try:
            snapshot = await self.source.fetch_snapshot()
        except Exception as e:
            self.error_count += 1
            logger.error(f"[{self.watch_code}] 스코어보드 조회 오류: {e}")
            return None

        if snapshot is None:
            return None
        return self.detector.observe(snapshot)

    async def run(self) -> Optional[PendingMatchResult]:
        """
        완료 판정 또는 stop()까지 폴링

        Returns:
            완료된 경기 결과 (중단된 경우 None)
        """
        if self._running:
            raise RuntimeError(f"[{self.watch_code}] 이미 실행 중인 감시입니다")
        if self.detector.completed:
            return self.detector.result

        self._running = True
        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()

        logger.info(f"[{self.watch_code}] 스코어보드 감시 시작 ({self.interval_seconds}초 간격)")

        try:
            while not self._stop_event.is_set():
                result = await self.poll_once()
                if result is not None:
                    if self.on_result is not None:
                        await self.on_result(result)
                    return result

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
                except asyncio.TimeoutError:
                    pass

            logger.info(f"[{self.watch_code}] 스코어보드 감시 중단")
            return None
        finally:
            self._running = False
