"""
Cart store: the single owner of cart lines.

Mutations never raise. Invalid input degrades to a no-op or a removal, and
each mutation reports what it did as a CartOutcome so a feedback layer can
turn it into a notice. Lines are written through to storage after every
mutation; the open/closed flag is never persisted.
"""
import logging
from decimal import Decimal
from enum import Enum

from pydantic import ValidationError

from ..storage import LocalStorage, CART_KEY
from .schema import CartLine

logger = logging.getLogger(__name__)

_STORAGE_VERSION = 0


class CartOutcome(str, Enum):
    ADDED = "added"
    MERGED = "merged"
    STOCK_LIMIT = "stock_limit"  # merge skipped, quantity unchanged
    UPDATED = "updated"
    CLAMPED = "clamped"
    REMOVED = "removed"
    NOT_FOUND = "not_found"
    INVALID = "invalid"  # non-positive quantity, nothing changed
    CLEARED = "cleared"


class CartStore:
    """In-memory cart lines, written through to LocalStorage."""

    def __init__(self, storage: LocalStorage | None = None):
        self._storage = storage
        self._items: list[CartLine] = []
        self.is_open = False
        if storage is not None:
            self._items = self._load()

    # -- persistence --------------------------------------------------------

    def _load(self) -> list[CartLine]:
        envelope = self._storage.get_json(CART_KEY)
        if not isinstance(envelope, dict):
            return []
        raw_items = (envelope.get("state") or {}).get("items") or []
        lines: list[CartLine] = []
        for raw in raw_items:
            try:
                lines.append(CartLine.model_validate(raw))
            except ValidationError as e:
                logger.warning("Dropping unreadable cart line %r: %s", raw, e)
        logger.info("Hydrated cart with %d line(s)", len(lines))
        return lines

    def _persist(self) -> None:
        if self._storage is None:
            return
        self._storage.set_json(CART_KEY, {
            "state": {"items": [line.model_dump(mode="json", by_alias=True) for line in self._items]},
            "version": _STORAGE_VERSION,
        })

    def _index(self, product_id: str, size: str) -> int:
        for i, line in enumerate(self._items):
            if line.product_id == product_id and line.size == size:
                return i
        return -1

    # -- mutations ----------------------------------------------------------

    def add_item(self, line: CartLine) -> CartOutcome:
        """Merge into the matching line when within stock, else append verbatim."""
        if line.quantity <= 0:
            return CartOutcome.INVALID

        idx = self._index(line.product_id, line.size)
        if idx < 0:
            self._items = [*self._items, line.model_copy()]
            self._persist()
            return CartOutcome.ADDED

        existing = self._items[idx]
        new_quantity = existing.quantity + line.quantity
        if new_quantity > existing.max_stock:
            return CartOutcome.STOCK_LIMIT

        items = list(self._items)
        items[idx] = existing.model_copy(update={"quantity": new_quantity})
        self._items = items
        self._persist()
        return CartOutcome.MERGED

    def update_quantity(self, product_id: str, size: str, quantity: int) -> CartOutcome:
        """Set quantity clamped to max_stock; zero or less removes the line."""
        if quantity <= 0:
            return self.remove_item(product_id, size)

        idx = self._index(product_id, size)
        if idx < 0:
            return CartOutcome.NOT_FOUND

        existing = self._items[idx]
        clamped = min(quantity, existing.max_stock)
        items = list(self._items)
        items[idx] = existing.model_copy(update={"quantity": clamped})
        self._items = items
        self._persist()
        return CartOutcome.CLAMPED if clamped < quantity else CartOutcome.UPDATED

    def set_max_stock(self, product_id: str, size: str, max_stock: int) -> CartOutcome:
        """Record fresh stock for a line, clamping (or removing) its quantity to fit."""
        idx = self._index(product_id, size)
        if idx < 0:
            return CartOutcome.NOT_FOUND
        if max_stock <= 0:
            return self.remove_item(product_id, size)

        existing = self._items[idx]
        clamped = min(existing.quantity, max_stock)
        items = list(self._items)
        items[idx] = existing.model_copy(update={"quantity": clamped, "max_stock": max_stock})
        self._items = items
        self._persist()
        return CartOutcome.CLAMPED if clamped < existing.quantity else CartOutcome.UPDATED

    def remove_item(self, product_id: str, size: str) -> CartOutcome:
        if self._index(product_id, size) < 0:
            return CartOutcome.NOT_FOUND
        self._items = [
            line for line in self._items
            if not (line.product_id == product_id and line.size == size)
        ]
        self._persist()
        return CartOutcome.REMOVED

    def clear_cart(self) -> CartOutcome:
        self._items = []
        self._persist()
        return CartOutcome.CLEARED

    def replace_items(self, lines: list[CartLine]) -> None:
        """Overwrite all lines (server sync). Duplicate keys merge through add_item."""
        self._items = []
        for line in lines:
            self.add_item(line)
        self._persist()

    def open_cart(self) -> None:
        self.is_open = True

    def close_cart(self) -> None:
        self.is_open = False

    # -- queries ------------------------------------------------------------

    @property
    def items(self) -> list[CartLine]:
        return list(self._items)

    def get_items_count(self) -> int:
        return sum(line.quantity for line in self._items)

    def get_subtotal(self) -> Decimal:
        return sum((line.price * line.quantity for line in self._items), Decimal(0))

    def get_cart_item(self, product_id: str, size: str) -> CartLine | None:
        idx = self._index(product_id, size)
        return self._items[idx] if idx >= 0 else None

    def is_in_cart(self, product_id: str, size: str | None = None) -> bool:
        if size:
            return self._index(product_id, size) >= 0
        return any(line.product_id == product_id for line in self._items)
