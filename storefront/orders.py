"""Order follow-up after checkout: confirmation, tracking, cancellation and history."""
import logging
from datetime import datetime, timedelta

from .api import ApiClient, OrderRecord, endpoints
from .api.errors import ApiError, ResponseShapeError
from .auth import AuthStore
from .notices import Notifier

logger = logging.getLogger(__name__)

DELIVERY_DAYS = 7
ORDER_NOT_FOUND_MESSAGE = "Order not found. Please check your order ID and try again."


def estimated_delivery(order: OrderRecord) -> datetime | None:
    """Order creation time plus a flat delivery window."""
    if not order.created_at:
        return None
    try:
        created = datetime.fromisoformat(order.created_at.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable createdAt %r on order %s", order.created_at, order.order_id)
        return None
    return created + timedelta(days=DELIVERY_DAYS)


class OrderDesk:
    """What the confirmation, tracking and my-orders views ask of the backend."""

    def __init__(self, client: ApiClient, auth: AuthStore, notifier: Notifier):
        self._client = client
        self._auth = auth
        self._notifier = notifier
        self._confirmed: set[str] = set()

    async def load_confirmation(self, order_id: str) -> OrderRecord | None:
        """Fetch a freshly placed order and send its confirmation email once."""
        try:
            order = await endpoints.get_order(self._client, order_id)
        except ApiError as e:
            logger.error("Failed to load order %s: %s", order_id, e.message)
            self._notifier.error(ORDER_NOT_FOUND_MESSAGE)
            return None
        await self.send_confirmation(order)
        return order

    async def send_confirmation(self, order: OrderRecord) -> bool:
        email = order.customer.get("email")
        if not email or order.order_id in self._confirmed:
            return False
        self._confirmed.add(order.order_id)
        try:
            await endpoints.send_order_confirmation(self._client, order.order_id, email)
        except ApiError as e:
            # The order exists either way; a missing email is not worth a notice.
            logger.warning("Confirmation email for %s failed: %s", order.order_id, e.message)
            return False
        logger.info("Confirmation email sent for order %s", order.order_id)
        return True

    async def track(self, query: str, use_tracking_id: bool = False) -> OrderRecord | None:
        query = query.strip()
        if not query:
            self._notifier.error("Please enter an order ID")
            return None
        lookup = endpoints.track_order if use_tracking_id else endpoints.get_order
        try:
            return await lookup(self._client, query)
        except ResponseShapeError:
            self._notifier.error(ORDER_NOT_FOUND_MESSAGE)
        except ApiError as e:
            logger.warning("Order lookup for %s failed: %s (status %s)", query, e.message, e.status)
            if e.status == 404:
                self._notifier.error(ORDER_NOT_FOUND_MESSAGE)
            else:
                self._notifier.error(
                    e.server_message
                    or "Failed to fetch order details. Please check the order ID and try again."
                )
        return None

    async def cancel(self, order: OrderRecord, email: str = "", phone: str = "") -> bool:
        """Cancel an order. Guests prove ownership with the order's email or phone."""
        if not self._auth.is_authenticated and not email and not phone:
            self._notifier.error("Please provide either email or phone number to verify your identity")
            return False
        if self._auth.is_authenticated:
            email = email or order.customer.get("email", "")
            phone = phone or order.customer.get("phone", "")
        try:
            await endpoints.cancel_order(self._client, order.order_id, email or None, phone or None)
        except ApiError as e:
            logger.error("Cancel of %s failed: %s", order.order_id, e.message)
            self._notifier.error(e.server_message or "Failed to cancel order")
            return False
        self._notifier.success("Order cancelled successfully")
        logger.info("Order %s cancelled", order.order_id)
        return True

    async def my_orders(self) -> list[OrderRecord]:
        if not self._auth.is_authenticated:
            self._notifier.error("Please log in to view your orders")
            return []
        try:
            return await endpoints.list_my_orders(self._client)
        except ApiError as e:
            logger.error("Failed to load orders: %s", e.message)
            self._notifier.error("Failed to load your orders")
            return []
