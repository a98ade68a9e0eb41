"""Tests for gateway options, display helpers and the browser-hosted widget."""
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from storefront.api import GatewayOrder, GatewayOrderHandle
from storefront.payments import (
    BrowserPaymentWidget,
    WidgetOutcome,
    bank_name,
    build_checkout_options,
    from_paise,
    gateway_error_message,
    payment_method_name,
    to_paise,
)


def _handle(key=None) -> GatewayOrderHandle:
    return GatewayOrderHandle(
        order=GatewayOrder(id="order_abc", amount=54900, currency="INR", receipt="TL1"),
        key=key,
    )


class TestHelpers:
    def test_paise_conversion(self):
        assert to_paise(Decimal("549.50")) == 54950
        assert from_paise(54950) == Decimal("549.5")

    def test_display_names(self):
        assert payment_method_name("upi") == "UPI"
        assert payment_method_name("crypto") == "Crypto"
        assert bank_name("HDFC") == "HDFC Bank"
        assert bank_name("ZZZZ") == "ZZZZ"

    def test_gateway_error_message(self):
        assert gateway_error_message({"code": "PAYMENT_CANCELLED"}) == "Payment was cancelled."
        assert gateway_error_message({"code": "X", "description": "Card declined"}) == "Card declined"
        assert gateway_error_message({}) == "Payment failed. Please try again."

    def test_outcome_description(self):
        assert WidgetOutcome.failed("X", "Card declined").description == "Card declined"
        assert WidgetOutcome(success=False).description == "Unknown error"


class TestCheckoutOptions:
    def test_prefers_response_key(self):
        options = build_checkout_options(_handle(key="rzp_test_server"), {"email": "a@b.co"}, "rzp_test_local")
        assert options["key"] == "rzp_test_server"
        assert options["amount"] == 54900
        assert options["order_id"] == "order_abc"
        assert options["prefill"] == {"email": "a@b.co"}
        assert options["theme"] == {"color": "#FBBF24"}

    def test_falls_back_to_configured_key(self):
        assert build_checkout_options(_handle(), {}, "rzp_test_local")["key"] == "rzp_test_local"

    def test_rejects_handle_without_order(self):
        with pytest.raises(ValueError):
            build_checkout_options(GatewayOrderHandle(mock=True), {})


def _browser_with(page) -> MagicMock:
    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close_page = AsyncMock()
    return browser


def _page(deliver_payload=None) -> MagicMock:
    """A page whose exposed callback is fired with `deliver_payload` when the widget opens."""
    page = MagicMock()
    callbacks = {}

    async def expose_function(name, fn):
        callbacks[name] = fn

    async def evaluate(script, arg=None):
        if "rzp.open()" in script and deliver_payload is not None:
            next(iter(callbacks.values()))(deliver_payload)
        return True

    page.expose_function = AsyncMock(side_effect=expose_function)
    page.add_script_tag = AsyncMock()
    page.evaluate = AsyncMock(side_effect=evaluate)
    return page


class TestBrowserPaymentWidget:
    @pytest.mark.asyncio
    async def test_success(self):
        response = {"razorpay_payment_id": "pay_1", "razorpay_order_id": "order_abc", "razorpay_signature": "sig"}
        page = _page({"status": "success", "response": response})
        browser = _browser_with(page)

        outcome = await BrowserPaymentWidget(browser, timeout=5).open({"order_id": "order_abc"})

        assert outcome.success
        assert outcome.response == response
        browser.close_page.assert_awaited_once_with(page)

    @pytest.mark.asyncio
    async def test_dismissed(self):
        page = _page({"status": "failed", "error": {"code": "PAYMENT_CANCELLED", "description": "Payment cancelled by user"}})
        outcome = await BrowserPaymentWidget(_browser_with(page), timeout=5).open({})
        assert not outcome.success
        assert outcome.error["code"] == "PAYMENT_CANCELLED"

    @pytest.mark.asyncio
    async def test_script_load_failure(self):
        page = _page()
        page.add_script_tag = AsyncMock(side_effect=PlaywrightError("blocked"))
        page.evaluate = AsyncMock(return_value=False)
        browser = _browser_with(page)

        outcome = await BrowserPaymentWidget(browser, timeout=5).open({})

        assert outcome.error["code"] == "RAZORPAY_INIT_ERROR"
        assert outcome.description == "Failed to initialize payment gateway"
        browser.close_page.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout(self):
        outcome = await BrowserPaymentWidget(_browser_with(_page()), timeout=0.01).open({})
        assert outcome.error["code"] == "PAYMENT_TIMEOUT"
