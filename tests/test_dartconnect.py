"""
Unit tests for the DartConnect live page
Tests: browser lifecycle around page loading, snapshot parsing
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from scraper import dartconnect
from scraper.config import DartConnectConfig
from scraper.dartconnect import DartConnectPage


SCOREBOARD_HTML = """
<html><body>
  <span id="p1_name">Alice</span><span id="p1_legs">1</span>
  <span id="p2_name">Bob</span><span id="p2_legs">0</span>
</body></html>
"""


@pytest.fixture
def browser_stack(monkeypatch):
    """Fake async_playwright: playwright → browser → context → page"""
    page = MagicMock()
    page.goto = AsyncMock()
    page.content = AsyncMock(return_value=SCOREBOARD_HTML)

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    monkeypatch.setattr(
        dartconnect,
        "async_playwright",
        lambda: MagicMock(start=AsyncMock(return_value=playwright)),
    )
    return playwright, browser, page


class TestDartConnectPage:
    """Test opening and closing the scoreboard page"""

    @pytest.mark.asyncio
    async def test_opens_watch_url(self, browser_stack):
        playwright, browser, page = browser_stack

        async with DartConnectPage("ABC123", DartConnectConfig()) as source:
            snapshot = await source.fetch_snapshot()

        assert page.goto.call_args[0][0] == "https://tv.dartconnect.com/live/ABC123"
        assert snapshot.player1.name == "Alice"
        assert snapshot.player1.legs == 1
        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_page_load_closes_browser(self, browser_stack):
        """A navigation timeout must not leave Chromium running"""
        playwright, browser, page = browser_stack
        page.goto.side_effect = TimeoutError("networkidle")

        with pytest.raises(TimeoutError):
            async with DartConnectPage("ABC123", DartConnectConfig()):
                pass

        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_launch_stops_playwright(self, browser_stack):
        playwright, browser, _ = browser_stack
        playwright.chromium.launch.side_effect = RuntimeError("no chromium")

        with pytest.raises(RuntimeError):
            async with DartConnectPage("ABC123", DartConnectConfig()):
                pass

        browser.close.assert_not_awaited()
        playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fetch_requires_open_page(self):
        with pytest.raises(RuntimeError):
            await DartConnectPage("ABC123", DartConnectConfig()).fetch_snapshot()
