"""Pydantic model for a cart line. Field aliases match the persisted camelCase format."""
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class CartLine(BaseModel):
    """One (product, size) entry in the cart."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    product_id: str
    name: str
    price: Decimal
    size: str
    quantity: int
    image: str | None = None
    category: str = ""
    max_stock: int  # last-known stock for product_id + size

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.size)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @field_serializer("price", when_used="json")
    def _price_as_number(self, price: Decimal) -> int | float:
        return int(price) if price == price.to_integral_value() else float(price)
