"""Tests for the Playwright browser manager with Playwright mocked out."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storefront.browser import BrowserManager


@pytest.fixture
def fake_playwright():
    page = AsyncMock()
    context = AsyncMock()
    context.new_page.return_value = page
    browser = AsyncMock()
    browser.is_connected = MagicMock(return_value=True)
    browser.new_context.return_value = context
    playwright = AsyncMock()
    playwright.chromium.launch.return_value = browser
    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)
    with patch("storefront.browser.async_playwright", return_value=starter):
        yield playwright, browser, context, page


@pytest.mark.asyncio
async def test_browser_launched_once(fake_playwright):
    playwright, browser, context, page = fake_playwright
    manager = BrowserManager(headless=True)

    await manager.new_page()
    await manager.new_page()

    playwright.chromium.launch.assert_awaited_once()
    assert playwright.chromium.launch.await_args.kwargs["headless"] is True
    browser.new_context.assert_awaited_once()
    assert manager.page_count == 2


@pytest.mark.asyncio
async def test_new_page_navigates_when_given_url(fake_playwright):
    _, _, _, page = fake_playwright
    manager = BrowserManager()
    await manager.new_page("https://checkout.razorpay.com/v1/checkout.js")
    page.goto.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_page_tolerates_failure(fake_playwright):
    _, _, _, page = fake_playwright
    page.close.side_effect = RuntimeError("already closed")
    manager = BrowserManager()
    opened = await manager.new_page()
    await manager.close_page(opened)
    assert manager.page_count == 0


@pytest.mark.asyncio
async def test_close_shuts_everything_down(fake_playwright):
    playwright, browser, context, page = fake_playwright
    manager = BrowserManager()
    await manager.new_page()

    await manager.close()

    page.close.assert_awaited_once()
    context.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()
    assert manager.page_count == 0
