"""
Checkout orchestrator.

Drives the Contact → Shipping → Payment → Review wizard over one
CheckoutData, then places the order through either the online gateway or
cash on delivery. Placing an order moves the checkout through
CHECKOUT → ORDER_PLACED → CONFIRMING → IDLE. The empty-cart guard only
applies in CHECKOUT, so clearing the cart after navigating to the
confirmation view cannot bounce the user back to the cart.
"""
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from ..api import ApiClient, endpoints
from ..api.errors import ApiError, ResponseShapeError
from ..auth import AuthStore
from ..cart import CartLine, CartStore
from ..config import Settings
from ..navigation import Navigator, CART_PATH, order_success_path
from ..notices import Notifier
from ..payments import PaymentWidget, build_checkout_options
from ..storage import LocalStorage, CONTACT_KEY
from .fields import Step, STEP_FIELDS, field_spec, step_of
from .pincode import PincodeLookup, PincodeLookupError
from .pricing import PriceBreakdown, compute_pricing
from .schema import CheckoutData, PaymentMethod

logger = logging.getLogger(__name__)

FIX_ERRORS_MESSAGE = "Please fix the validation errors before proceeding"
REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
GATEWAY_UNAVAILABLE_MESSAGE = (
    "Online payment is not available right now. "
    "Please choose Cash on Delivery or try again later."
)
GENERIC_FAILURE_MESSAGE = "Failed to place order. Please try again."
COD_FAILURE_MESSAGE = "Failed to place COD order. Please try again."
NOT_REVIEWED_MESSAGE = "Please complete every checkout step and review your order first"


class CheckoutPhase(str, Enum):
    CHECKOUT = "checkout"
    ORDER_PLACED = "order_placed"
    CONFIRMING = "confirming"
    IDLE = "idle"


class PlaceOrderStatus(str, Enum):
    PLACED = "placed"
    NOT_READY = "not_ready"
    INVALID_CART = "invalid_cart"
    STOCK_CONFLICT = "stock_conflict"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"
    PAYMENT_FAILED = "payment_failed"
    FAILED = "failed"
    BUSY = "busy"


@dataclass
class PlaceOrderResult:
    status: PlaceOrderStatus
    message: str = ""
    order_id: str | None = None

    @property
    def placed(self) -> bool:
        return self.status is PlaceOrderStatus.PLACED

    def to_dict(self) -> dict:
        return {"status": self.status.value, "message": self.message, "order_id": self.order_id}


def _number(value: Decimal) -> int | float:
    return int(value) if value == value.to_integral_value() else float(value)


def stock_issues(lines: list[CartLine]) -> list[str]:
    """Client-side check against each line's last-known stock. Not authoritative."""
    return [
        f"{line.name} ({line.size}): Requested {line.quantity}, Available {line.max_stock}"
        for line in lines
        if line.quantity > line.max_stock
    ]


def _is_structurally_valid(line: CartLine) -> bool:
    return bool(line.product_id and line.name and line.size and line.quantity > 0)


class CheckoutOrchestrator:
    """One checkout session. Create a new one per visit to checkout."""

    def __init__(
        self,
        cart: CartStore,
        auth: AuthStore,
        client: ApiClient,
        notifier: Notifier,
        navigator: Navigator,
        widget: PaymentWidget | None = None,
        pincode_lookup: PincodeLookup | None = None,
        storage: LocalStorage | None = None,
        settings: Settings | None = None,
    ):
        self._cart = cart
        self._auth = auth
        self._client = client
        self._notifier = notifier
        self._navigator = navigator
        self._widget = widget
        self._pincode_lookup = pincode_lookup
        self._storage = storage
        self._settings = settings or Settings()

        self.step = Step.CONTACT
        self.phase = CheckoutPhase.CHECKOUT
        self.data = CheckoutData()
        self.errors: dict[str, str] = {}
        self.loading = False
        self.order_id: str | None = None
        self._closed = False
        self._prefill()

    # -- setup --------------------------------------------------------------

    def _prefill(self) -> None:
        """Cached contact first, then the signed-in user's email/name on top."""
        cached = self._storage.get_json(CONTACT_KEY) if self._storage else None
        if isinstance(cached, dict):
            for key in ("email", "phone", "name"):
                if isinstance(cached.get(key), str):
                    setattr(self.data.customer, key, cached[key])
        user = self._auth.user
        if self._auth.is_authenticated and user:
            self.data.customer.email = user.email or self.data.customer.email
            self.data.customer.name = user.name or self.data.customer.name

    def _save_contact(self) -> None:
        if self._storage is None:
            return
        customer = self.data.customer
        self._storage.set_json(CONTACT_KEY, {
            "email": customer.email,
            "phone": customer.phone,
            "name": customer.name,
        })

    def close(self) -> None:
        """The checkout view went away; late lookup results are dropped."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    # -- fields -------------------------------------------------------------

    def get_field(self, path: str) -> str:
        field_spec(path)
        if path == "payment_method":
            return self.data.payment_method.value
        section, key = path.split(".", 1)
        return getattr(getattr(self.data, section), key)

    def _validate_field(self, path: str, value: str) -> str | None:
        error = field_spec(path).validate(value)
        if error:
            self.errors[path] = error
        else:
            self.errors.pop(path, None)
        return error

    def set_field(self, path: str, value: str) -> str | None:
        """Store a value and validate it. Returns the field's error, if any."""
        field_spec(path)
        if path == "payment_method":
            try:
                self.data.payment_method = PaymentMethod(value)
            except ValueError:
                self.errors[path] = "Please choose a valid payment method"
                return self.errors[path]
            self.errors.pop(path, None)
            return None

        section, key = path.split(".", 1)
        setattr(getattr(self.data, section), key, value)
        if section == "customer":
            self._save_contact()
        return self._validate_field(path, value)

    async def change_field(self, path: str, value: str) -> str | None:
        """set_field, plus the city/state lookup once a full PIN code is typed."""
        error = self.set_field(path, value)
        if path == "shipping.pin_code" and len(value) == 6:
            await self.lookup_pin_code(value)
        return error

    def blur_field(self, path: str) -> str | None:
        return self._validate_field(path, self.get_field(path))

    async def lookup_pin_code(self, pin_code: str) -> bool:
        """Best effort: fill city/state on success, leave them alone otherwise."""
        if self._pincode_lookup is None:
            return False
        try:
            info = await self._pincode_lookup.lookup(pin_code)
        except PincodeLookupError as e:
            logger.warning("%s", e)
            return False
        if self._closed or self.data.shipping.pin_code != pin_code:
            logger.debug("Discarding stale pincode result for %s", pin_code)
            return False
        if info is None:
            return False
        self.data.shipping.city = info.city
        self.data.shipping.state = info.state
        self.errors.pop("shipping.city", None)
        self.errors.pop("shipping.state", None)
        logger.info("Pincode %s resolved to %s, %s", pin_code, info.city, info.state)
        return True

    # -- steps --------------------------------------------------------------

    def validate_step(self, step: Step | None = None) -> bool:
        """Minimal completeness gate: every gated field of the step is non-empty."""
        step = Step(step or self.step)
        return all(self.get_field(spec.path) for spec in STEP_FIELDS[step] if spec.gate)

    def step_errors(self, step: Step | None = None) -> dict[str, str]:
        step = Step(step or self.step)
        return {
            spec.path: self.errors[spec.path]
            for spec in STEP_FIELDS[step]
            if self.errors.get(spec.path)
        }

    def ready_to_place(self) -> str | None:
        """None when an order may be placed, else the message explaining why not."""
        if self.step is not Step.REVIEW:
            return NOT_REVIEWED_MESSAGE
        if not all(self.validate_step(step) for step in (Step.CONTACT, Step.SHIPPING, Step.PAYMENT)):
            return REQUIRED_FIELDS_MESSAGE
        if any(self.errors.values()):
            return FIX_ERRORS_MESSAGE
        return None

    def next_step(self) -> bool:
        if self.step is Step.REVIEW:
            return False
        if not self.validate_step():
            self._notifier.error(REQUIRED_FIELDS_MESSAGE)
            return False
        if self.step_errors():
            self._notifier.error(FIX_ERRORS_MESSAGE)
            return False
        self.step = Step(self.step + 1)
        logger.info("Checkout advanced to step %d (%s)", self.step, self.step.title)
        return True

    def back(self) -> bool:
        """Previous step. From Contact, leave checkout for the cart and return False."""
        if self.step > Step.CONTACT:
            self.step = Step(self.step - 1)
            return True
        self._navigator.navigate(CART_PATH)
        self.close()
        return False

    def press_enter(self, path: str) -> str | None:
        """
        Enter inside a field. Returns the next field to focus, or None when
        Enter on the step's last field tried to advance instead.
        """
        if step_of(path) is not self.step:
            return None
        paths = [spec.path for spec in STEP_FIELDS[self.step]]
        index = paths.index(path)
        if index < len(paths) - 1:
            return paths[index + 1]

        if self.step_errors() or not self.validate_step():
            self._notifier.error(FIX_ERRORS_MESSAGE)
        else:
            self.next_step()
        return None

    # -- derived state ------------------------------------------------------

    @property
    def pricing(self) -> PriceBreakdown:
        signed_in = self._auth.is_authenticated and self._auth.user is not None
        return compute_pricing(self._cart.get_subtotal(), signed_in, self._auth.order_count)

    @property
    def should_redirect_to_cart(self) -> bool:
        return not self._cart.items and self.phase is CheckoutPhase.CHECKOUT

    def enforce_cart_guard(self) -> bool:
        """Send the user back to the cart when there is nothing to check out."""
        if self.should_redirect_to_cart:
            self._navigator.navigate(CART_PATH)
            return True
        return False

    def build_order_payload(self, lines: list[CartLine]) -> dict[str, Any]:
        pricing = self.pricing
        return {
            "customer": self.data.cleaned_customer(),
            "shipping": self.data.cleaned_shipping(),
            "items": [line.model_dump(mode="json", by_alias=True) for line in lines],
            "paymentMethod": self.data.payment_method.value,
            "subtotal": _number(pricing.subtotal),
            "shippingCost": _number(pricing.shipping),
            "discountAmount": _number(pricing.discount_amount),
            "total": _number(pricing.total),
        }

    def summary(self) -> dict:
        return {
            "step": int(self.step),
            "step_title": self.step.title,
            "phase": self.phase.value,
            "data": self.data.model_dump(by_alias=True, mode="json"),
            "errors": dict(self.errors),
            "pricing": self.pricing.to_dict(),
            "items": [line.model_dump(mode="json", by_alias=True) for line in self._cart.items],
        }

    # -- placing the order --------------------------------------------------

    async def place_order(self) -> PlaceOrderResult:
        if self.loading:
            return PlaceOrderResult(PlaceOrderStatus.BUSY, "Order placement already in progress")
        self.loading = True
        try:
            return await self._place_order()
        except ApiError as e:
            logger.error("Order placement error: %s (status %s)", e.message, e.status)
            self._notifier.error(GENERIC_FAILURE_MESSAGE)
            return PlaceOrderResult(PlaceOrderStatus.FAILED, GENERIC_FAILURE_MESSAGE)
        finally:
            self.loading = False

    async def _place_order(self) -> PlaceOrderResult:
        lines = self._cart.items
        if not lines:
            return self._fail(PlaceOrderStatus.INVALID_CART,
                              "No items in cart. Please add items before placing order.")

        valid_lines = [line for line in lines if _is_structurally_valid(line)]
        if not valid_lines:
            return self._fail(PlaceOrderStatus.INVALID_CART,
                              "Invalid items in cart. Please refresh and try again.")

        not_ready = self.ready_to_place()
        if not_ready:
            return self._fail(PlaceOrderStatus.NOT_READY, not_ready)

        issues = stock_issues(valid_lines)
        if issues:
            return self._fail(PlaceOrderStatus.STOCK_CONFLICT,
                              "Insufficient stock for the following items:\n" + "\n".join(issues))

        payload = self.build_order_payload(valid_lines)
        logger.info("Placing %s order: %d item(s), total %s",
                    payload["paymentMethod"], len(valid_lines), payload["total"])

        if self.data.payment_method is PaymentMethod.RAZORPAY:
            return await self._pay_online(payload)
        return await self._pay_on_delivery(payload)

    def _fail(self, status: PlaceOrderStatus, message: str) -> PlaceOrderResult:
        self._notifier.error(message)
        return PlaceOrderResult(status, message)

    async def _pay_online(self, payload: dict[str, Any]) -> PlaceOrderResult:
        receipt = f"TL{int(time.time() * 1000)}"
        handle = await endpoints.create_gateway_order(
            self._client,
            self.pricing.total,
            receipt,
            self.data.customer.model_dump(by_alias=True),
        )
        if handle.mock:
            logger.warning("Payment gateway is in mock mode; online checkout refused")
            self.step = Step.PAYMENT
            return self._fail(PlaceOrderStatus.GATEWAY_UNAVAILABLE, GATEWAY_UNAVAILABLE_MESSAGE)
        if self._widget is None:
            self.step = Step.PAYMENT
            return self._fail(PlaceOrderStatus.GATEWAY_UNAVAILABLE, GATEWAY_UNAVAILABLE_MESSAGE)

        customer = self.data.customer
        shipping = self.data.shipping
        options = build_checkout_options(
            handle,
            prefill={
                "name": customer.name or f"{shipping.first_name} {shipping.last_name}".strip(),
                "email": customer.email,
                "contact": customer.phone,
            },
            fallback_key=self._settings.razorpay_key_id,
        )
        outcome = await self._widget.open(options)
        if not outcome.success:
            if self._closed:
                logger.info("Payment closed after checkout went away: %s", outcome.description)
                return PlaceOrderResult(PlaceOrderStatus.PAYMENT_FAILED, outcome.description)
            self.step = Step.PAYMENT
            return self._fail(PlaceOrderStatus.PAYMENT_FAILED, f"Payment failed: {outcome.description}")

        order_id = await endpoints.verify_payment(
            self._client, outcome.response, handle.order.receipt or receipt, payload,
        )
        return await self._complete(order_id)

    async def _pay_on_delivery(self, payload: dict[str, Any]) -> PlaceOrderResult:
        try:
            order_id = await endpoints.create_order(self._client, payload)
        except ResponseShapeError as e:
            logger.error("COD order response rejected: %s", e.message)
            return self._fail(PlaceOrderStatus.FAILED, COD_FAILURE_MESSAGE)
        except ApiError as e:
            logger.error("COD order placement error: %s (status %s)", e.message, e.status)
            return self._fail(PlaceOrderStatus.FAILED, self._cod_error_message(e))
        return await self._complete(order_id)

    @staticmethod
    def _cod_error_message(error: ApiError) -> str:
        message = error.server_message
        if not message:
            return COD_FAILURE_MESSAGE
        if "Insufficient stock" in message:
            return f"Stock issue: {message}. Please check your cart and try again."
        if "Validation failed" in message:
            return f"Validation error: {message}. Please check your information."
        return f"Order failed: {message}"

    async def _complete(self, order_id: str) -> PlaceOrderResult:
        """
        Count the order, show the confirmation view, then empty the cart.

        A captured payment still completes after close(); only the
        navigation to the confirmation view is skipped.
        """
        if self._auth.is_authenticated:
            self._auth.increment_order_count()
            await self._auth.refresh_user(self._client)

        self.order_id = order_id
        self.phase = CheckoutPhase.ORDER_PLACED
        if not self._closed:
            self._navigator.navigate(order_success_path(order_id), replace=True)
        self.phase = CheckoutPhase.CONFIRMING
        self._cart.clear_cart()
        logger.info("Order %s placed", order_id)
        return PlaceOrderResult(PlaceOrderStatus.PLACED, "Order placed successfully", order_id)

    def finish(self) -> None:
        """The confirmation view is showing; this checkout is over."""
        self.phase = CheckoutPhase.IDLE
        self.close()
