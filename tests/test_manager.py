"""
Unit tests for the watch code scraper service
Tests: starting/stopping watchers from the watch code list, limits, session records
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock
from scraper.config import DartConnectConfig, ScraperServiceConfig
from scraper.manager import ScraperManager
from scraper.models import PlayerScore, ScoreboardSnapshot, ScraperSessionStatus
from tournament.models import Tournament


def _snapshot(code, p1_legs, p2_legs):
    return ScoreboardSnapshot(
        watch_code=code,
        player1=PlayerScore(name="Alice", legs=p1_legs),
        player2=PlayerScore(name="Bob", legs=p2_legs),
    )


class FakePage:
    """Scoreboard page stand-in with a fixed score"""

    def __init__(self, code, legs=(0, 0), fail_on_open=False):
        self.code = code
        self.legs = legs
        self.fail_on_open = fail_on_open

    async def __aenter__(self):
        if self.fail_on_open:
            raise RuntimeError("browser failed to start")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def fetch_snapshot(self):
        return _snapshot(self.code, *self.legs)


def _tournament(codes, enabled=True):
    return Tournament(id="t1", dartconnect_integration_enabled=enabled, dartconnect_watch_codes=codes)


@pytest.fixture
def mock_db():
    db = MagicMock()
    db.get_tournament = AsyncMock(return_value=_tournament(["AAA", "BBB"]))
    db.create_scraper_session = AsyncMock(side_effect=lambda tid, code: f"s-{code}")
    db.update_scraper_session = AsyncMock()
    return db


@pytest.fixture
def approval():
    service = MagicMock()
    service.ingest = AsyncMock()
    return service


def _manager(db, approval, factory=None, max_concurrent=4):
    return ScraperManager(
        db,
        approval,
        "t1",
        source_factory=factory or (lambda code: FakePage(code)),
        config=ScraperServiceConfig(tournament_id="t1", poll_interval_seconds=1, max_concurrent_scrapers=max_concurrent),
        dartconnect=DartConnectConfig(check_interval_seconds=0.05, completion_stable_polls=1),
    )


async def _settle():
    await asyncio.sleep(0.1)


class TestSyncWatchCodes:
    """Test watch code list synchronization"""

    @pytest.mark.asyncio
    async def test_starts_a_watcher_per_code(self, mock_db, approval):
        manager = _manager(mock_db, approval)

        await manager.sync_watch_codes()
        await _settle()

        assert manager.active_codes == {"AAA", "BBB"}
        assert mock_db.create_scraper_session.await_count == 2
        await manager.stop_all()

    @pytest.mark.asyncio
    async def test_respects_concurrency_limit(self, mock_db, approval):
        mock_db.get_tournament.return_value = _tournament(["AAA", "BBB", "CCC"])
        manager = _manager(mock_db, approval, max_concurrent=2)

        await manager.sync_watch_codes()
        await _settle()

        assert manager.active_codes == {"AAA", "BBB"}
        await manager.stop_all()

    @pytest.mark.asyncio
    async def test_removed_code_is_stopped(self, mock_db, approval):
        manager = _manager(mock_db, approval)
        await manager.sync_watch_codes()
        await _settle()

        mock_db.get_tournament.return_value = _tournament(["AAA"])
        await manager.sync_watch_codes()

        assert manager.active_codes == {"AAA"}
        mock_db.update_scraper_session.assert_awaited_with("s-BBB", ScraperSessionStatus.STOPPED)
        await manager.stop_all()

    @pytest.mark.asyncio
    async def test_disabled_integration_stops_everything(self, mock_db, approval):
        manager = _manager(mock_db, approval)
        await manager.sync_watch_codes()
        await _settle()

        mock_db.get_tournament.return_value = _tournament(["AAA", "BBB"], enabled=False)
        await manager.sync_watch_codes()

        assert manager.active_codes == set()
        assert mock_db.update_scraper_session.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_tournament_starts_nothing(self, mock_db, approval):
        mock_db.get_tournament.return_value = None
        manager = _manager(mock_db, approval)

        await manager.sync_watch_codes()

        assert manager.active_codes == set()
        mock_db.create_scraper_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sync_errors_are_logged(self, mock_db, approval):
        mock_db.get_tournament.side_effect = RuntimeError("network")
        manager = _manager(mock_db, approval)

        await manager.sync_watch_codes()

        assert manager.get_status()["is_syncing"] is False
        assert manager.get_status()["last_sync"] is None


class TestWatcherLifecycle:
    """Test individual watcher outcomes"""

    @pytest.mark.asyncio
    async def test_completed_match_is_ingested_once(self, mock_db, approval):
        mock_db.get_tournament.return_value = _tournament(["AAA"])
        manager = _manager(mock_db, approval, factory=lambda code: FakePage(code, legs=(2, 1)))

        await manager.sync_watch_codes()
        await _settle()

        approval.ingest.assert_awaited_once()
        result = approval.ingest.call_args[0][0]
        assert result.watch_code == "AAA"
        assert result.tournament_id == "t1"
        assert result.scraper_session_id == "s-AAA"
        mock_db.update_scraper_session.assert_awaited_with("s-AAA", ScraperSessionStatus.COMPLETED)
        assert manager.active_codes == set()

        # 완료된 코드는 다시 감시하지 않음
        await manager.sync_watch_codes()
        await _settle()
        assert mock_db.create_scraper_session.await_count == 1
        assert manager.get_status()["finished"] == ["AAA"]

    @pytest.mark.asyncio
    async def test_source_failure_marks_session_failed(self, mock_db, approval):
        mock_db.get_tournament.return_value = _tournament(["AAA"])
        manager = _manager(mock_db, approval, factory=lambda code: FakePage(code, fail_on_open=True))

        await manager.sync_watch_codes()
        await _settle()

        args = mock_db.update_scraper_session.call_args[0]
        assert args[0] == "s-AAA"
        assert args[1] == ScraperSessionStatus.FAILED
        assert "browser failed" in args[2]
        assert manager.active_codes == set()

    @pytest.mark.asyncio
    async def test_status(self, mock_db, approval):
        manager = _manager(mock_db, approval)
        await manager.sync_watch_codes()
        await _settle()

        status = manager.get_status()

        assert status["tournament_id"] == "t1"
        assert status["active"] == ["AAA", "BBB"]
        assert set(status["watchers"]) == {"AAA", "BBB"}
        assert status["watchers"]["AAA"]["polls"] >= 1

        await manager.stop()
        assert manager.active_codes == set()
