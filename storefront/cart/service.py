"""Cart operations with user feedback and best-effort server sync."""
import logging
from typing import Awaitable, Callable

from pydantic import ValidationError

from ..api import ApiClient, Product, endpoints
from ..api.errors import ApiError
from ..notices import Notifier
from .reconcile import reconcile_cart, ReconcileReport
from .schema import CartLine
from .store import CartStore

logger = logging.getLogger(__name__)


class CartService:
    """
    Feedback layer over CartStore.

    The store clamps silently; this layer checks the same limits first and
    tells the user why an action was refused. After a local change it mirrors
    the change to the backend cart, ignoring sync failures.
    """

    def __init__(self, store: CartStore, notifier: Notifier, client: ApiClient | None = None):
        self.store = store
        self._notifier = notifier
        self._client = client

    async def _sync(self, call: Callable[..., Awaitable[None]], *args) -> None:
        if self._client is None:
            return
        try:
            await call(self._client, *args)
        except ApiError as e:
            logger.warning("Failed to sync cart with server: %s", e.message)

    async def add_item(self, line: CartLine) -> bool:
        if not line.product_id or not line.size or line.quantity <= 0:
            self._notifier.error("Invalid item data")
            return False

        existing = self.store.get_cart_item(line.product_id, line.size)
        new_quantity = (existing.quantity if existing else 0) + line.quantity
        if new_quantity > line.max_stock:
            self._notifier.error(f"Only {line.max_stock} items available in stock")
            return False

        self.store.add_item(line)
        await self._sync(endpoints.sync_cart_add, line.product_id, line.size, line.quantity)
        return True

    async def add_product(self, product: Product, size: str, quantity: int = 1) -> bool:
        """Build a line from product detail and add it."""
        stock = product.stock_for(size)
        if stock is None:
            self._notifier.error(f"Size {size} is not available for {product.name}")
            return False
        if stock <= 0:
            self._notifier.error(f"{product.name} ({size}) is out of stock")
            return False
        try:
            line = CartLine(
                product_id=product.product_id or product.id,
                name=product.name,
                price=product.price,
                size=size,
                quantity=quantity,
                image=product.primary_image,
                category=product.category,
                max_stock=stock,
            )
        except ValidationError:
            self._notifier.error("Invalid item data")
            return False
        added = await self.add_item(line)
        if added:
            self._notifier.success(f"{product.name} ({size}) added to cart")
        return added

    async def update_quantity(self, product_id: str, size: str, quantity: int) -> bool:
        if quantity < 0:
            self._notifier.error("Quantity cannot be negative")
            return False
        item = self.store.get_cart_item(product_id, size)
        if item is None:
            self._notifier.error("Item not found in cart")
            return False
        if quantity > item.max_stock:
            self._notifier.error(f"Only {item.max_stock} items available in stock")
            return False

        self.store.update_quantity(product_id, size, quantity)
        if quantity == 0:
            await self._sync(endpoints.sync_cart_remove, product_id, size)
        else:
            await self._sync(endpoints.sync_cart_update, product_id, size, quantity)
        return True

    async def remove_item(self, product_id: str, size: str) -> bool:
        self.store.remove_item(product_id, size)
        await self._sync(endpoints.sync_cart_remove, product_id, size)
        self._notifier.success("Item removed from cart")
        return True

    async def clear_cart(self) -> bool:
        self.store.clear_cart()
        await self._sync(endpoints.sync_cart_clear)
        return True

    async def validate_cart(self) -> ReconcileReport:
        if self._client is None:
            raise RuntimeError("validate_cart needs a backend client")
        return await reconcile_cart(self.store, self._client, self._notifier)

    async def sync_from_server(self) -> bool:
        """Replace local lines with the server cart when it has any. No merge."""
        if self._client is None:
            return False
        try:
            raw_items = await endpoints.fetch_server_cart(self._client)
        except ApiError as e:
            logger.warning("Failed to sync cart with server: %s", e.message)
            return False
        if not raw_items:
            return False

        lines = []
        for raw in raw_items:
            try:
                lines.append(CartLine.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping unreadable server cart line: %s", e)
        self.store.replace_items(lines)
        logger.info("Cart replaced from server (%d line(s))", len(lines))
        return True
