"""
Storefront MCP Server.

Exposes the storefront's cart, checkout and order follow-up over stdio.
Orders are only placed after a human-in-the-loop confirmation: preview_checkout
returns a short code and confirm_purchase must be called with it.
"""
import asyncio
import json
import logging
import secrets
import time
from datetime import datetime

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from .api import ApiClient, endpoints
from .auth import AuthStore
from .browser import BrowserManager
from .cart import CartStore, CartService, reconcile_cart
from .checkout import CheckoutOrchestrator, PincodeLookup, Step, STEP_FIELDS
from .config import Settings
from .navigation import HistoryNavigator
from .notices import Notifier
from .orders import OrderDesk, estimated_delivery
from .output_sanitizer import sanitize_output, redact_email, redact_phone
from .payments import BrowserPaymentWidget
from .storage import LocalStorage

logger = logging.getLogger(__name__)

_settings = Settings.from_env()


def _debug_log(tool_name: str, args: dict, result: str) -> None:
    """Append a tool call entry to the debug log file."""
    try:
        _settings.debug_dir.mkdir(parents=True, exist_ok=True)
        log_file = _settings.debug_dir / f"session_{datetime.now().strftime('%Y-%m-%d')}.log"
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]

        entry = (
            f"\n{'='*80}\n"
            f"[{timestamp}] TOOL: {tool_name}\n"
            f"ARGS: {sanitize_output(json.dumps(args, indent=2))}\n"
            f"RESPONSE:\n{result}\n"
        )

        with open(log_file, "a") as f:
            f.write(entry)
    except OSError as e:
        logger.debug("Debug log write failed: %s", e)


server = Server("storefront")

# Lazy-initialized singletons
_storage: LocalStorage | None = None
_auth: AuthStore | None = None
_cart: CartStore | None = None
_client: ApiClient | None = None
_browser_manager: BrowserManager | None = None
_notifier = Notifier()
_navigator = HistoryNavigator()
_checkout: CheckoutOrchestrator | None = None
_order_desk: OrderDesk | None = None

# Confirmation gate state (in-memory, single-process)
_pending_confirmations: dict[str, dict] = {}

_CONFIRMATION_TTL = 300  # 5 minutes


def _get_storage() -> LocalStorage:
    global _storage
    if _storage is None:
        _storage = LocalStorage(_settings.state_dir)
    return _storage


def _get_auth() -> AuthStore:
    global _auth
    if _auth is None:
        _auth = AuthStore(_get_storage())
    return _auth


def _get_cart() -> CartStore:
    global _cart
    if _cart is None:
        _cart = CartStore(_get_storage())
    return _cart


def _get_client() -> ApiClient:
    global _client
    if _client is None:
        _client = ApiClient(_settings, storage=_get_storage(), auth=_get_auth())
    return _client


def _get_browser_manager() -> BrowserManager:
    global _browser_manager
    if _browser_manager is None:
        _browser_manager = BrowserManager(headless=_settings.headless)
    return _browser_manager


def _get_cart_service() -> CartService:
    return CartService(_get_cart(), _notifier, _get_client())


def _get_order_desk() -> OrderDesk:
    global _order_desk
    if _order_desk is None:
        _order_desk = OrderDesk(_get_client(), _get_auth(), _notifier)
    return _order_desk


def _require_checkout() -> CheckoutOrchestrator:
    if _checkout is None or _checkout.closed:
        raise RuntimeError("No checkout in progress. Use start_checkout first.")
    return _checkout


def _end_checkout() -> None:
    global _checkout
    if _checkout is not None:
        _checkout.close()
    _checkout = None
    _pending_confirmations.clear()


def _generate_confirmation_code() -> str:
    """Generate a 6-character alphanumeric confirmation code."""
    return secrets.token_hex(3).upper()


def _cleanup_expired_confirmations() -> None:
    """Remove expired confirmation codes."""
    now = time.time()
    expired = [k for k, v in _pending_confirmations.items() if now - v["created_at"] > _CONFIRMATION_TTL]
    for k in expired:
        del _pending_confirmations[k]


def _order_snapshot(checkout: CheckoutOrchestrator) -> dict:
    """What the user is shown at preview: contact, address, lines, method and totals."""
    return checkout.build_order_payload(_get_cart().items)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

_CHECKOUT_FIELDS = [spec.path for step in Step for spec in STEP_FIELDS[step]]


def _line_schema(with_quantity: bool) -> dict:
    properties = {
        "product_id": {"type": "string", "description": "Product id"},
        "size": {"type": "string", "description": "Size label, e.g. 'M' or 'XL'"},
    }
    required = ["product_id", "size"]
    if with_quantity:
        properties["quantity"] = {"type": "integer", "description": "New quantity; 0 removes the line"}
        required.append("quantity")
    return {"type": "object", "properties": properties, "required": required}


_NO_ARGS = {"type": "object", "properties": {}, "required": []}


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="view_cart",
            description="Show the cart: lines, item count and subtotal.",
            inputSchema=_NO_ARGS,
        ),
        Tool(
            name="add_to_cart",
            description="Add a product in a given size to the cart. Stock is checked against the live product.",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "string", "description": "Product id"},
                    "size": {"type": "string", "description": "Size label"},
                    "quantity": {"type": "integer", "description": "Number of items to add", "default": 1},
                },
                "required": ["product_id", "size"],
            },
        ),
        Tool(
            name="update_cart_item",
            description="Change the quantity of one cart line. Quantity 0 removes it.",
            inputSchema=_line_schema(with_quantity=True),
        ),
        Tool(
            name="remove_from_cart",
            description="Remove one cart line.",
            inputSchema=_line_schema(with_quantity=False),
        ),
        Tool(
            name="clear_cart",
            description="Empty the cart.",
            inputSchema=_NO_ARGS,
        ),
        Tool(
            name="validate_cart",
            description=(
                "Check every cart line against live stock. Sold-out lines are removed and "
                "over-stock lines reduced; the report lists what changed."
            ),
            inputSchema=_NO_ARGS,
        ),
        Tool(
            name="start_checkout",
            description=(
                "Begin checkout. Validates the cart first; if anything had to be corrected the "
                "checkout does not start and the corrections are returned instead."
            ),
            inputSchema=_NO_ARGS,
        ),
        Tool(
            name="fill_checkout_field",
            description=(
                "Set one checkout field and validate it. A complete 6-digit PIN code also "
                "fills city and state when the lookup succeeds."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "field": {"type": "string", "enum": _CHECKOUT_FIELDS, "description": "Field path"},
                    "value": {"type": "string", "description": "Field value"},
                },
                "required": ["field", "value"],
            },
        ),
        Tool(
            name="checkout_enter",
            description=(
                "Press Enter in a checkout field: returns the next field to fill, or tries "
                "to continue when it is the last field of the step."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "field": {"type": "string", "enum": _CHECKOUT_FIELDS, "description": "Field path"},
                },
                "required": ["field"],
            },
        ),
        Tool(
            name="checkout_continue",
            description="Continue to the next checkout step (Contact, Shipping, Payment, Review).",
            inputSchema=_NO_ARGS,
        ),
        Tool(
            name="checkout_back",
            description="Go back one checkout step. From Contact this leaves checkout for the cart.",
            inputSchema=_NO_ARGS,
        ),
        Tool(
            name="set_payment_method",
            description="Choose online payment or cash on delivery.",
            inputSchema={
                "type": "object",
                "properties": {
                    "method": {"type": "string", "enum": ["razorpay", "cod"], "description": "Payment method"},
                },
                "required": ["method"],
            },
        ),
        Tool(
            name="preview_checkout",
            description=(
                "Preview the order from the Review step. Returns a REDACTED summary (items, "
                "shipping city/state, payment method, totals) and a confirmation code. "
                "Does NOT place the order. The user must provide the confirmation code to proceed."
            ),
            inputSchema=_NO_ARGS,
        ),
        Tool(
            name="confirm_purchase",
            description=(
                "Place the order. REQUIRES the confirmation_code returned by preview_checkout. "
                "Online payment opens the payment window in a browser."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "confirmation_code": {
                        "type": "string",
                        "description": "The 6-character code from preview_checkout",
                    },
                },
                "required": ["confirmation_code"],
            },
        ),
        Tool(
            name="track_order",
            description="Look up an order by order id, or by courier tracking id.",
            inputSchema={
                "type": "object",
                "properties": {
                    "order_id": {"type": "string", "description": "Order id or tracking id"},
                    "use_tracking_id": {"type": "boolean", "default": False},
                },
                "required": ["order_id"],
            },
        ),
        Tool(
            name="cancel_order",
            description="Cancel an order. Guests must give the email or phone used on the order.",
            inputSchema={
                "type": "object",
                "properties": {
                    "order_id": {"type": "string"},
                    "email": {"type": "string"},
                    "phone": {"type": "string"},
                },
                "required": ["order_id"],
            },
        ),
        Tool(
            name="my_orders",
            description="List the signed-in customer's orders.",
            inputSchema=_NO_ARGS,
        ),
    ]


# ---------------------------------------------------------------------------
# Tool dispatch
# ---------------------------------------------------------------------------

_HANDLERS = {}


def _tool(name: str):
    def register(handler):
        _HANDLERS[name] = handler
        return handler
    return register


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    handler = _HANDLERS.get(name)
    if handler is None:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]
    try:
        result = await handler(arguments or {})
        if isinstance(result, dict):
            notices = [n.to_dict() for n in _notifier.drain()]
            if notices:
                result["notices"] = notices
            text = json.dumps(result, indent=2, default=str)
        else:
            text = result
        sanitized = sanitize_output(text)

        _debug_log(name, arguments, sanitized)
        return [TextContent(type="text", text=sanitized)]

    except Exception as e:
        logger.exception("Tool %s failed", name)
        _notifier.drain()
        error_text = sanitize_output(f"Error: {str(e)}")
        _debug_log(name, arguments, error_text)
        return [TextContent(type="text", text=error_text)]


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------

def _cart_view() -> dict:
    cart = _get_cart()
    return {
        "items": [line.model_dump(mode="json", by_alias=True) for line in cart.items],
        "item_count": cart.get_items_count(),
        "subtotal": str(cart.get_subtotal()),
    }


def _after_cart_change(result: dict) -> dict:
    """An emptied cart ends a checkout that has not placed its order yet."""
    if _checkout is not None and _checkout.enforce_cart_guard():
        _end_checkout()
        result["checkout"] = "ended: cart is empty"
    result["cart"] = _cart_view()
    return result


@_tool("view_cart")
async def _handle_view_cart(args: dict) -> dict:
    return {"status": "ok", "cart": _cart_view()}


@_tool("add_to_cart")
async def _handle_add_to_cart(args: dict) -> dict:
    product = await endpoints.get_product(_get_client(), args["product_id"])
    added = await _get_cart_service().add_product(product, args["size"], int(args.get("quantity", 1)))
    return _after_cart_change({"status": "added" if added else "rejected"})


@_tool("update_cart_item")
async def _handle_update_cart_item(args: dict) -> dict:
    ok = await _get_cart_service().update_quantity(args["product_id"], args["size"], int(args["quantity"]))
    return _after_cart_change({"status": "updated" if ok else "rejected"})


@_tool("remove_from_cart")
async def _handle_remove_from_cart(args: dict) -> dict:
    ok = await _get_cart_service().remove_item(args["product_id"], args["size"])
    return _after_cart_change({"status": "removed" if ok else "not_found"})


@_tool("clear_cart")
async def _handle_clear_cart(args: dict) -> dict:
    await _get_cart_service().clear_cart()
    return _after_cart_change({"status": "cleared"})


@_tool("validate_cart")
async def _handle_validate_cart(args: dict) -> dict:
    report = await reconcile_cart(_get_cart(), _get_client(), _notifier)
    return _after_cart_change({
        "status": "valid" if report.valid else "corrected",
        "checks": [check.to_dict() for check in report.checks],
    })


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------

def _checkout_view(checkout: CheckoutOrchestrator, **extra) -> dict:
    view = checkout.summary()
    view["location"] = _navigator.location
    view.update(extra)
    return view


@_tool("start_checkout")
async def _handle_start_checkout(args: dict) -> dict:
    global _checkout
    if not _get_cart().items:
        _notifier.error("Your cart is empty")
        return {"status": "empty_cart", "cart": _cart_view()}

    report = await reconcile_cart(_get_cart(), _get_client(), _notifier)
    if not report.valid:
        return _after_cart_change({
            "status": "cart_corrected",
            "message": "Your cart was updated to match current stock. Review it and start checkout again.",
            "checks": [check.to_dict() for check in report.checks],
        })

    _end_checkout()
    _checkout = CheckoutOrchestrator(
        cart=_get_cart(),
        auth=_get_auth(),
        client=_get_client(),
        notifier=_notifier,
        navigator=_navigator,
        widget=BrowserPaymentWidget(_get_browser_manager()),
        pincode_lookup=PincodeLookup(),
        storage=_get_storage(),
        settings=_settings,
    )
    _navigator.navigate("/checkout")
    return _checkout_view(_checkout, status="started")


@_tool("fill_checkout_field")
async def _handle_fill_checkout_field(args: dict) -> dict:
    checkout = _require_checkout()
    error = await checkout.change_field(args["field"], args["value"])
    return _checkout_view(checkout, status="invalid" if error else "ok", field_error=error)


@_tool("checkout_enter")
async def _handle_checkout_enter(args: dict) -> dict:
    checkout = _require_checkout()
    next_field = checkout.press_enter(args["field"])
    return _checkout_view(checkout, status="ok", next_field=next_field)


@_tool("checkout_continue")
async def _handle_checkout_continue(args: dict) -> dict:
    checkout = _require_checkout()
    advanced = checkout.next_step()
    return _checkout_view(checkout, status="advanced" if advanced else "blocked")


@_tool("checkout_back")
async def _handle_checkout_back(args: dict) -> dict:
    checkout = _require_checkout()
    if checkout.back():
        return _checkout_view(checkout, status="ok")
    _end_checkout()
    return {"status": "left_checkout", "location": _navigator.location, "cart": _cart_view()}


@_tool("set_payment_method")
async def _handle_set_payment_method(args: dict) -> dict:
    checkout = _require_checkout()
    error = checkout.set_field("payment_method", args["method"])
    return _checkout_view(checkout, status="invalid" if error else "ok", field_error=error)


def _redacted_preview(checkout: CheckoutOrchestrator) -> dict:
    customer = checkout.data.customer
    shipping = checkout.data.shipping
    return {
        "contact": {
            "email": redact_email(customer.email),
            "phone": redact_phone(customer.phone),
        },
        "shipping_to": {
            "name": f"{shipping.first_name} {shipping.last_name[:1]}".strip(),
            "city": shipping.city,
            "state": shipping.state,
            "pin_code": shipping.pin_code[:3] + "***",
        },
        "payment_method": checkout.data.payment_method.value,
        "items": [
            {"name": line.name, "size": line.size, "quantity": line.quantity, "price": str(line.price)}
            for line in _get_cart().items
        ],
        "pricing": checkout.pricing.to_dict(),
    }


@_tool("preview_checkout")
async def _handle_preview_checkout(args: dict) -> dict:
    """Redacted order summary plus a confirmation code."""
    checkout = _require_checkout()
    if checkout.step is not Step.REVIEW:
        return {
            "status": "error",
            "message": f"Checkout is at the {checkout.step.title} step. Continue to Review first.",
        }
    if checkout.enforce_cart_guard():
        _end_checkout()
        return {"status": "error", "message": "Your cart is empty"}

    _cleanup_expired_confirmations()

    code = _generate_confirmation_code()
    _pending_confirmations[code] = {"created_at": time.time(), "order": _order_snapshot(checkout)}

    return {
        "status": "preview",
        "confirmation_code": code,
        "message": (
            f"Review your order details below. To place the order, "
            f"provide the confirmation code: {code}"
        ),
        **_redacted_preview(checkout),
    }


@_tool("confirm_purchase")
async def _handle_confirm_purchase(args: dict) -> dict:
    """Place the order if the confirmation code is valid."""
    code = args["confirmation_code"].strip().upper()

    _cleanup_expired_confirmations()

    if code not in _pending_confirmations:
        return {
            "status": "rejected",
            "message": "Invalid or expired confirmation code. Run preview_checkout again.",
        }
    checkout = _require_checkout()
    pending = _pending_confirmations.pop(code)
    if pending["order"] != _order_snapshot(checkout):
        return {
            "status": "rejected",
            "message": "The order changed since it was previewed. Run preview_checkout again.",
            "checkout": _checkout_view(checkout),
        }

    result = await checkout.place_order()
    response = result.to_dict()
    if not result.placed:
        response["checkout"] = _checkout_view(checkout)
        return response

    order = await _get_order_desk().load_confirmation(result.order_id)
    checkout.finish()
    _end_checkout()
    response["location"] = _navigator.location
    if order is not None:
        response["order"] = _order_view(order)
    return response


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

def _order_view(order) -> dict:
    delivery = estimated_delivery(order)
    return {
        "order_id": order.order_id,
        "order_status": order.order_status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "total": str(order.total),
        "tracking_id": order.tracking_id,
        "courier": order.courier,
        "items": [
            {k: item.get(k) for k in ("name", "size", "quantity", "price")}
            for item in order.items
        ],
        "created_at": order.created_at,
        "estimated_delivery": delivery.date().isoformat() if delivery else None,
    }


@_tool("track_order")
async def _handle_track_order(args: dict) -> dict:
    order = await _get_order_desk().track(args["order_id"], bool(args.get("use_tracking_id", False)))
    if order is None:
        return {"status": "not_found"}
    return {"status": "ok", "order": _order_view(order)}


@_tool("cancel_order")
async def _handle_cancel_order(args: dict) -> dict:
    desk = _get_order_desk()
    order = await desk.track(args["order_id"])
    if order is None:
        return {"status": "not_found"}
    cancelled = await desk.cancel(order, args.get("email", ""), args.get("phone", ""))
    return {"status": "cancelled" if cancelled else "failed", "order_id": order.order_id}


@_tool("my_orders")
async def _handle_my_orders(args: dict) -> dict:
    orders = await _get_order_desk().my_orders()
    return {"status": "ok", "orders": [_order_view(o) for o in orders]}


# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------

async def main():
    """Run the MCP server over stdio."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logger.info("Storefront MCP server starting against %s", _settings.api_url)

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        if _checkout is not None:
            _checkout.close()
        if _browser_manager:
            await _browser_manager.close()
        if _client:
            await _client.aclose()


def run():
    """Sync entry point for console_scripts."""
    asyncio.run(main())
