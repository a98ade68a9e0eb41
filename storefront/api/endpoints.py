"""
One adapter per backend endpoint.

Each adapter owns every response shape its endpoint is known to produce
(`{data: {orders}}` vs `{orders}`, `{orderId}` vs `{data: {orderId}}` ...)
so callers only ever see one normalized result.
"""
import logging
from decimal import Decimal
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from .client import ApiClient
from .errors import ResponseShapeError
from .schema import Product, GatewayOrder, GatewayOrderHandle, OrderRecord

logger = logging.getLogger(__name__)


def _dig(body: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(body, dict):
            return None
        body = body.get(key)
    return body


def _first(body: Any, *paths: tuple[str, ...]) -> Any:
    for path in paths:
        value = _dig(body, *path)
        if value is not None:
            return value
    return None


# -- catalog ----------------------------------------------------------------

async def get_product(client: ApiClient, product_id: str) -> Product:
    body = await client.get(f"/api/products/{quote(product_id, safe='')}")
    nested = _dig(body, "product")
    raw = nested if isinstance(nested, dict) else body
    try:
        return Product.model_validate(raw)
    except ValidationError as e:
        logger.error("Unexpected product payload for %s: %s", product_id, e)
        raise ResponseShapeError("Invalid product data from server", 200, body) from e


async def list_products(client: ApiClient, **filters: Any) -> list[Product]:
    params = {k: v for k, v in filters.items() if v is not None}
    body = await client.get("/api/products", params=params or None)
    raw = body if isinstance(body, list) else _first(body, ("products",), ("data", "products")) or []
    return [Product.model_validate(item) for item in raw]


# -- payments ---------------------------------------------------------------

async def create_gateway_order(
    client: ApiClient, amount: Decimal, receipt: str, customer: dict,
) -> GatewayOrderHandle:
    body = await client.post("/api/payments/razorpay/create", {
        "amount": float(amount) if amount != amount.to_integral_value() else int(amount),
        "orderId": receipt,
        "customer": customer,
    })
    if not isinstance(body, dict):
        raise ResponseShapeError("Invalid payment data from server", 200, body)
    if body.get("mock"):
        return GatewayOrderHandle(mock=True, key=body.get("key"))
    raw_order = body.get("order")
    if not isinstance(raw_order, dict):
        logger.error("Gateway create response missing order: %r", body)
        raise ResponseShapeError("Invalid payment data: order information missing", 200, body)
    return GatewayOrderHandle(order=GatewayOrder.model_validate(raw_order), key=body.get("key"))


async def verify_payment(
    client: ApiClient, gateway_response: dict, receipt: str, order_data: dict,
) -> str:
    """Verify the gateway's signed response server-side; returns the created order id."""
    body = await client.post("/api/payments/razorpay/verify", {
        **gateway_response,
        "orderId": receipt,
        "orderData": order_data,
    })
    if not body:
        raise ResponseShapeError("Payment verification returned no data", 200, body)
    return _first(body, ("orderId",), ("data", "orderId")) or receipt


async def get_payment_status(client: ApiClient, payment_id: str) -> dict:
    return await client.get(f"/api/payments/status/{quote(payment_id, safe='')}")


# -- orders -----------------------------------------------------------------

async def create_order(client: ApiClient, order_data: dict) -> str:
    body = await client.post("/api/orders", order_data)
    order_id = _first(body, ("orderId",), ("data", "orderId"))
    if not order_id:
        logger.error("Order create response without orderId: %r", body)
        raise ResponseShapeError("Invalid response format from server", 200, body)
    return order_id


async def get_order(client: ApiClient, order_id: str) -> OrderRecord:
    body = await client.get(f"/api/orders/{quote(order_id, safe='')}")
    return _order_from(body)


async def track_order(client: ApiClient, tracking_id: str) -> OrderRecord:
    body = await client.get(f"/api/orders/track/{quote(tracking_id, safe='')}")
    return _order_from(body)


def _order_from(body: Any) -> OrderRecord:
    raw = _first(body, ("order",), ("data", "order")) or body
    try:
        return OrderRecord.model_validate(raw)
    except ValidationError as e:
        raise ResponseShapeError("Order not found. Please check your order ID and try again.", 200, body) from e


async def cancel_order(client: ApiClient, order_id: str, email: str | None, phone: str | None) -> Any:
    payload = {k: v for k, v in {"email": email, "phone": phone}.items() if v}
    return await client.post(f"/api/orders/{quote(order_id, safe='')}/cancel", payload)


async def send_order_confirmation(client: ApiClient, order_id: str, email: str) -> None:
    await client.post("/api/orders/send-confirmation", {"orderId": order_id, "email": email})


async def list_my_orders(client: ApiClient) -> list[OrderRecord]:
    body = await client.get("/api/orders/my-orders")
    if isinstance(body, list):
        raw = body
    else:
        raw = _first(body, ("orders",), ("data", "orders"))
    if not isinstance(raw, list):
        logger.error("Unexpected my-orders payload: %r", body)
        raise ResponseShapeError("Invalid orders data from server", 200, body)
    return [OrderRecord.model_validate(item) for item in raw]


# -- users ------------------------------------------------------------------

async def get_current_user(client: ApiClient) -> dict | None:
    body = await client.get("/api/users/me")
    user = _first(body, ("user",), ("data", "user"))
    return user if isinstance(user, dict) else None


# -- server cart sync (best effort; callers swallow failures) ----------------

async def sync_cart_add(client: ApiClient, product_id: str, size: str, quantity: int) -> None:
    await client.post("/api/cart/add", {"productId": product_id, "size": size, "quantity": quantity})


async def sync_cart_update(client: ApiClient, product_id: str, size: str, quantity: int) -> None:
    await client.put("/api/cart/update", {"productId": product_id, "size": size, "quantity": quantity})


async def sync_cart_remove(client: ApiClient, product_id: str, size: str) -> None:
    await client.delete(f"/api/cart/remove/{quote(product_id, safe='')}/{quote(size, safe='')}")


async def sync_cart_clear(client: ApiClient) -> None:
    await client.delete("/api/cart/clear")


async def fetch_server_cart(client: ApiClient) -> list[dict]:
    body = await client.get("/api/cart")
    items = _first(body, ("items",), ("data", "items"))
    return items if isinstance(items, list) else []
