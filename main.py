"""
다트 토너먼트 트래커 메인
"""
import asyncio
import json
import sys
from typing import Optional
from loguru import logger

from database.supabase_client import SupabaseDB
from knockout.bracket import BracketError
from results.approval import ResultApprovalService
from scraper.config import dartconnect_config, service_config
from scraper.dartconnect import DartConnectPage
from scraper.detector import MatchCompletionDetector
from scraper.manager import ScraperManager
from scraper.watcher import MatchWatcher
from tournament.session import TournamentSession


# 로깅 설정
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/scraper_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


async def watch_once(db: SupabaseDB, tournament_id: Optional[str], watch_code: str):
    """워치 코드 하나를 완료까지 감시"""
    approval = ResultApprovalService(db)
    session_id = await db.create_scraper_session(tournament_id, watch_code) if tournament_id else None
    detector = MatchCompletionDetector(
        watch_code,
        stable_polls=dartconnect_config.completion_stable_polls,
        default_legs_to_win=dartconnect_config.default_legs_to_win,
        tournament_id=tournament_id,
        scraper_session_id=session_id,
    )

    async with DartConnectPage(watch_code) as page:
        watcher = MatchWatcher(
            page,
            detector,
            interval_seconds=dartconnect_config.check_interval_seconds,
            on_result=approval.ingest if tournament_id else None,
        )
        result = await watcher.run()

    if result is None:
        logger.info(f"[{watch_code}] 완료 결과 없이 종료")
        return

    print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))


async def run_service(db: SupabaseDB, tournament_id: str):
    """워치 코드 동기화 서비스"""
    manager = ScraperManager(db, ResultApprovalService(db), tournament_id)
    manager.start()
    await manager.sync_watch_codes()

    logger.info("스크래퍼 서비스 실행 중... (Ctrl+C로 종료)")

    try:
        while True:
            await asyncio.sleep(60)
            logger.debug(f"서비스 상태: {manager.get_status()}")
    finally:
        await manager.stop()


async def main():
    """메인 함수"""
    import argparse

    parser = argparse.ArgumentParser(description="다트 토너먼트 트래커")
    parser.add_argument(
        "--mode",
        choices=["watch", "service", "standings", "bracket", "create-bracket"],
        default="standings",
        help="실행 모드"
    )
    parser.add_argument(
        "--tournament-id",
        default=service_config.tournament_id,
        help="토너먼트 ID (기본: SCRAPER_TOURNAMENT_ID)"
    )
    parser.add_argument(
        "--watch-code",
        help="DartConnect 워치 코드 (watch 모드)"
    )

    args = parser.parse_args()

    if args.mode != "watch" and not args.tournament_id:
        parser.error("--tournament-id가 필요합니다")
    if args.mode == "watch" and not args.watch_code:
        parser.error("watch 모드에는 --watch-code가 필요합니다")

    db = SupabaseDB()

    if args.mode == "watch":
        await watch_once(db, args.tournament_id, args.watch_code)

    elif args.mode == "service":
        await run_service(db, args.tournament_id)

    elif args.mode == "standings":
        session = await TournamentSession.load(db, args.tournament_id)
        standings = {
            letter: [row.to_dict() for row in rows]
            for letter, rows in session.standings().items()
        }
        print(json.dumps(standings, ensure_ascii=False, indent=2))

    elif args.mode == "bracket":
        session = await TournamentSession.load(db, args.tournament_id)
        print(json.dumps(session.to_dict(), ensure_ascii=False, indent=2, default=str))

    elif args.mode == "create-bracket":
        session = await TournamentSession.load(db, args.tournament_id)
        try:
            bracket = await session.create_knockout(db)
        except BracketError as e:
            logger.error(f"대진표 생성 실패: {e}")
            sys.exit(1)
        print(json.dumps(bracket.to_dict(), ensure_ascii=False, indent=2, default=str))


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("종료됨")
