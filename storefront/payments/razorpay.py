"""Razorpay checkout options and display helpers. Signature checks happen server-side only."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from ..api.schema import GatewayOrderHandle

CHECKOUT_SCRIPT_URL = "https://checkout.razorpay.com/v1/checkout.js"

MERCHANT_NAME = "TrustyLads"
MERCHANT_DESCRIPTION = "Streetwear that screams YOU"
MERCHANT_LOGO = "/logo.svg"
THEME_COLOR = "#FBBF24"
DEFAULT_CURRENCY = "INR"

PAYMENT_METHOD_NAMES = {
    "card": "Credit/Debit Card",
    "netbanking": "Net Banking",
    "wallet": "Wallet",
    "upi": "UPI",
    "emi": "EMI",
    "paylater": "Pay Later",
    "cardless_emi": "Cardless EMI",
    "bank_transfer": "Bank Transfer",
}

BANK_NAMES = {
    "HDFC": "HDFC Bank",
    "ICIC": "ICICI Bank",
    "SBIN": "State Bank of India",
    "UTIB": "Axis Bank",
    "AXIS": "Axis Bank",
    "YESB": "Yes Bank",
    "KKBK": "Kotak Mahindra Bank",
    "PUNB": "Punjab National Bank",
    "CNRB": "Canara Bank",
    "BARB": "Bank of Baroda",
    "IDFB": "IDFC First Bank",
    "INDB": "IndusInd Bank",
    "FDRL": "Federal Bank",
    "UBIN": "Union Bank of India",
}

GATEWAY_ERROR_MESSAGES = {
    "BAD_REQUEST_ERROR": "Invalid request. Please try again.",
    "GATEWAY_ERROR": "Payment gateway error. Please try again.",
    "NETWORK_ERROR": "Network error. Please check your connection.",
    "SERVER_ERROR": "Server error. Please try again later.",
    "PAYMENT_CANCELLED": "Payment was cancelled.",
    "PAYMENT_FAILED": "Payment failed. Please try again.",
}


def to_paise(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_paise(amount: int) -> Decimal:
    return Decimal(amount) / 100


def payment_method_name(method: str) -> str:
    return PAYMENT_METHOD_NAMES.get(method) or method[:1].upper() + method[1:]


def bank_name(code: str) -> str:
    return BANK_NAMES.get(code, code)


def gateway_error_message(error: dict[str, Any]) -> str:
    code = error.get("code")
    if code in GATEWAY_ERROR_MESSAGES:
        return GATEWAY_ERROR_MESSAGES[code]
    return error.get("description") or "Payment failed. Please try again."


def build_checkout_options(
    handle: GatewayOrderHandle,
    prefill: dict[str, str],
    fallback_key: str = "",
) -> dict[str, Any]:
    """Options for `new Razorpay(...)`; callbacks are attached by the widget host."""
    if handle.order is None:
        raise ValueError("Invalid payment data: order information missing")
    order = handle.order
    return {
        "key": handle.key or fallback_key,
        "amount": order.amount,
        "currency": order.currency or DEFAULT_CURRENCY,
        "name": MERCHANT_NAME,
        "description": MERCHANT_DESCRIPTION,
        "image": MERCHANT_LOGO,
        "order_id": order.id,
        "prefill": prefill,
        "theme": {"color": THEME_COLOR},
    }
