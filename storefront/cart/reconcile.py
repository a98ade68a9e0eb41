"""
Pre-checkout reconciliation of cart lines against live stock.

Every line is checked concurrently against its product's current per-size
stock. Lines that no longer fit are reduced; lines whose product is gone or
sold out are evicted. A pass that corrected anything reports invalid, so
the caller has to run it again on the corrected cart before checkout.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from ..api import ApiClient, endpoints
from ..api.errors import ApiError
from ..notices import Notifier
from .schema import CartLine
from .store import CartStore

logger = logging.getLogger(__name__)


class LineStatus(str, Enum):
    VALID = "valid"
    REDUCED = "reduced"
    UNAVAILABLE = "unavailable"


@dataclass
class LineCheck:
    product_id: str
    size: str
    name: str
    requested: int
    available: int
    status: LineStatus

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "size": self.size,
            "name": self.name,
            "requested": self.requested,
            "available": self.available,
            "status": self.status.value,
        }


@dataclass
class ReconcileReport:
    checks: list[LineCheck] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return bool(self.checks) and all(c.status is LineStatus.VALID for c in self.checks)

    @property
    def corrections(self) -> list[LineCheck]:
        return [c for c in self.checks if c.status is not LineStatus.VALID]


async def _check_line(client: ApiClient, line: CartLine) -> LineCheck:
    try:
        product = await endpoints.get_product(client, line.product_id)
        available = product.stock_for(line.size) or 0
    except ApiError as e:
        logger.info("Stock lookup failed for %s (%s): %s", line.product_id, line.size, e.message)
        available = 0

    if available <= 0:
        status = LineStatus.UNAVAILABLE
    elif available < line.quantity:
        status = LineStatus.REDUCED
    else:
        status = LineStatus.VALID
    return LineCheck(line.product_id, line.size, line.name, line.quantity, available, status)


async def reconcile_cart(
    store: CartStore,
    client: ApiClient,
    notifier: Notifier | None = None,
) -> ReconcileReport:
    lines = store.items
    if not lines:
        if notifier:
            notifier.error("Your cart is empty")
        return ReconcileReport()

    checks = await asyncio.gather(*(_check_line(client, line) for line in lines))

    for check in checks:
        if check.status is LineStatus.UNAVAILABLE:
            store.remove_item(check.product_id, check.size)
            if notifier:
                notifier.error(f"{check.name} is no longer available")
        elif check.status is LineStatus.REDUCED:
            store.set_max_stock(check.product_id, check.size, check.available)
            if notifier:
                notifier.error(
                    f"{check.name} ({check.size}) - Only {check.available} available. "
                    f"Quantity reduced to {check.available}."
                )
        else:
            store.set_max_stock(check.product_id, check.size, check.available)

    report = ReconcileReport(list(checks))
    logger.info("Reconciled %d line(s): %d correction(s)", len(checks), len(report.corrections))
    return report
