"""
DartConnect TV 라이브 페이지 (Playwright)
"""
from typing import Optional
from playwright.async_api import async_playwright, Browser, Page
from loguru import logger

from .config import dartconnect_config, DartConnectConfig
from .models import ScoreboardSnapshot
from .parsers.scoreboard import ScoreboardParser


class DartConnectPage:
    """워치 코드 하나의 라이브 스코어보드 페이지"""

    def __init__(self, watch_code: str, config: Optional[DartConnectConfig] = None):
        self.watch_code = watch_code
        self.config = config or dartconnect_config
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    @property
    def url(self) -> str:
        return self.config.watch_url(self.watch_code)

    async def __aenter__(self):
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.config.headless)

            context = await self._browser.new_context(viewport={'width': 1920, 'height': 1080})
            self._page = await context.new_page()

            logger.info(f"[{self.watch_code}] 페이지 열기: {self.url}")
            await self._page.goto(self.url, wait_until="networkidle", timeout=self.config.page_timeout_ms)
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """브라우저 및 Playwright 종료"""
        browser, playwright = self._browser, self._playwright
        self._page = self._browser = self._playwright = None
        if browser:
            await browser.close()
        if playwright:
            await playwright.stop()

    async def fetch_snapshot(self) -> Optional[ScoreboardSnapshot]:
        """현재 렌더링된 스코어보드 파싱"""
        if self._page is None:
            raise RuntimeError("페이지가 열려 있지 않습니다 (async with 사용)")

        html = await self._page.content()
        return ScoreboardParser.parse_html(html, self.watch_code)
