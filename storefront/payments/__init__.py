"""Online payment: gateway widget abstraction, checkout options, and the browser-hosted widget."""
from .base import PaymentWidget, WidgetOutcome
from .razorpay import (
    build_checkout_options,
    gateway_error_message,
    payment_method_name,
    bank_name,
    to_paise,
    from_paise,
    CHECKOUT_SCRIPT_URL,
)
from .widget import BrowserPaymentWidget

__all__ = [
    "PaymentWidget",
    "WidgetOutcome",
    "build_checkout_options",
    "gateway_error_message",
    "payment_method_name",
    "bank_name",
    "to_paise",
    "from_paise",
    "CHECKOUT_SCRIPT_URL",
    "BrowserPaymentWidget",
]
