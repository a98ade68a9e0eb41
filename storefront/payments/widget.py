"""Razorpay checkout hosted in a Playwright page."""
import asyncio
import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError

from ..browser import BrowserManager
from .base import PaymentWidget, WidgetOutcome
from .razorpay import CHECKOUT_SCRIPT_URL

logger = logging.getLogger(__name__)

_CALLBACK = "__storefrontPaymentResult"

# Second loader: append to <body> and wait on onload, like a plain <script> tag would.
_FALLBACK_LOADER_JS = """
(url) => new Promise((resolve) => {
    const script = document.createElement('script');
    script.src = url;
    script.type = 'text/javascript';
    script.charset = 'utf-8';
    const timer = setTimeout(() => resolve(false), 15000);
    script.onload = () => { clearTimeout(timer); resolve(true); };
    script.onerror = () => { clearTimeout(timer); resolve(false); };
    document.body.appendChild(script);
})
"""

_OPEN_JS = """
(options) => {
    const report = window.%(callback)s;
    const rzp = new window.Razorpay({
        ...options,
        handler: (response) => report({status: 'success', response}),
        modal: {
            ondismiss: () => report({
                status: 'failed',
                error: {
                    code: 'PAYMENT_CANCELLED',
                    description: 'Payment was cancelled by user',
                    source: 'customer',
                    step: 'payment_authentication',
                    reason: 'user_cancelled',
                },
            }),
        },
    });
    rzp.on('payment.failed', (response) => report({status: 'failed', error: response.error}));
    rzp.open();
}
""" % {"callback": _CALLBACK}


class BrowserPaymentWidget(PaymentWidget):
    """Loads the gateway script at runtime and waits for success, failure or dismissal."""

    def __init__(self, browser: BrowserManager, timeout: float = 900.0):
        self._browser = browser
        self._timeout = timeout

    async def _load_script(self, page) -> bool:
        try:
            await page.add_script_tag(url=CHECKOUT_SCRIPT_URL)
            if await page.evaluate("() => typeof window.Razorpay !== 'undefined'"):
                return True
        except PlaywrightError as e:
            logger.warning("Gateway script failed to load, trying fallback: %s", e)
        try:
            return bool(await page.evaluate(_FALLBACK_LOADER_JS, CHECKOUT_SCRIPT_URL))
        except PlaywrightError as e:
            logger.error("Fallback gateway script load failed: %s", e)
            return False

    async def open(self, options: dict[str, Any]) -> WidgetOutcome:
        loop = asyncio.get_running_loop()
        result: asyncio.Future = loop.create_future()

        def _deliver(payload: dict) -> None:
            if not result.done():
                result.set_result(payload)

        page = await self._browser.new_page()
        try:
            await page.expose_function(_CALLBACK, _deliver)
            if not await self._load_script(page):
                return WidgetOutcome.failed(
                    "RAZORPAY_INIT_ERROR", "Failed to initialize payment gateway",
                    source="client", step="payment_initialization", reason="sdk_error",
                )
            await page.evaluate(_OPEN_JS, options)
            logger.info("Payment widget opened for order %s", options.get("order_id"))

            try:
                payload = await asyncio.wait_for(result, timeout=self._timeout)
            except asyncio.TimeoutError:
                return WidgetOutcome.failed("PAYMENT_TIMEOUT", "Payment window timed out")
        except PlaywrightError as e:
            logger.error("Payment widget error: %s", e)
            return WidgetOutcome.failed(
                "RAZORPAY_INIT_ERROR", "Failed to initialize payment gateway",
                source="client", step="payment_initialization", reason="sdk_error", details=str(e),
            )
        finally:
            await self._browser.close_page(page)

        if payload.get("status") == "success":
            return WidgetOutcome(success=True, response=payload.get("response") or {})
        return WidgetOutcome(success=False, error=payload.get("error") or {})
