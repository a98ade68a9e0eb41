"""Order pricing. Taxes are included in listed prices; there is no tax line."""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

DISCOUNT_THRESHOLD = Decimal(500)
DISCOUNT_RATE = Decimal("0.10")
FLAT_SHIPPING = Decimal(99)
FREE_DELIVERY_ORDER_LIMIT = 5  # signed-in users ship free for their first five orders


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    discount_amount: Decimal
    shipping: Decimal
    total: Decimal
    free_delivery: bool

    def to_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "discount_amount": str(self.discount_amount),
            "shipping": str(self.shipping),
            "total": str(self.total),
            "free_delivery": self.free_delivery,
        }


def compute_discount(subtotal: Decimal) -> Decimal:
    if subtotal < DISCOUNT_THRESHOLD:
        return Decimal(0)
    return (subtotal * DISCOUNT_RATE).quantize(Decimal(1), rounding=ROUND_HALF_UP)


def is_free_delivery(is_authenticated: bool, order_count: int) -> bool:
    return is_authenticated and order_count < FREE_DELIVERY_ORDER_LIMIT


def compute_pricing(subtotal: Decimal, is_authenticated: bool, order_count: int) -> PriceBreakdown:
    subtotal = Decimal(subtotal)
    discount = compute_discount(subtotal)
    free = is_free_delivery(is_authenticated, order_count)
    shipping = Decimal(0) if free else FLAT_SHIPPING
    return PriceBreakdown(
        subtotal=subtotal,
        discount_amount=discount,
        shipping=shipping,
        total=subtotal - discount + shipping,
        free_delivery=free,
    )
