"""
Browser manager: Playwright lifecycle for pages that must run gateway JavaScript.

The payment gateway ships its checkout only as a browser script, so the
widget is hosted in a real page. One browser is shared across checkouts and
each payment gets its own page.
"""
import logging
from typing import Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)


class BrowserManager:
    """Manages a single Playwright browser instance across payments."""

    def __init__(self, headless: bool = False):
        self._headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._pages: list[Page] = []

    @property
    def page_count(self) -> int:
        return len(self._pages)

    async def _ensure_browser(self) -> Browser:
        """Launch browser if not already running."""
        if self._browser and self._browser.is_connected():
            return self._browser

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._headless,
            args=["--disable-dev-shm-usage", "--no-sandbox"],
        )
        logger.info("Browser launched (headless=%s)", self._headless)
        return self._browser

    async def _ensure_context(self) -> BrowserContext:
        if self._context:
            return self._context

        browser = await self._ensure_browser()
        self._context = await browser.new_context(viewport={"width": 1280, "height": 900})
        return self._context

    async def new_page(self, url: str | None = None) -> Page:
        """Open a page (blank unless a URL is given)."""
        context = await self._ensure_context()
        page = await context.new_page()
        if url:
            await page.goto(url, wait_until="domcontentloaded", timeout=30000)
        self._pages.append(page)
        logger.info("Opened page %d%s", len(self._pages) - 1, f": {url}" if url else "")
        return page

    async def close_page(self, page: Page) -> None:
        if page in self._pages:
            self._pages.remove(page)
        try:
            await page.close()
        except Exception as e:
            logger.debug("Page close failed: %s", e)

    async def close(self) -> None:
        """Shut down browser and Playwright."""
        for page in list(self._pages):
            await self.close_page(page)

        if self._context:
            try:
                await self._context.close()
            except Exception as e:
                logger.debug("Context close failed: %s", e)
            self._context = None

        if self._browser:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug("Browser close failed: %s", e)
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug("Playwright stop failed: %s", e)
            self._playwright = None

        logger.info("Browser closed")
