"""Backend resource shapes consumed by the storefront. Unknown fields are kept."""
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _Resource(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ProductSize(_Resource):
    size: str
    stock: int = 0


class ProductImage(_Resource):
    url: str
    alt: str = ""
    is_primary: bool = False


class Product(_Resource):
    """Product detail including per-size stock."""
    id: str = Field(default="", alias="_id")
    product_id: str = ""
    name: str
    price: Decimal
    category: str = ""
    sizes: list[ProductSize] = Field(default_factory=list)
    images: list[ProductImage] = Field(default_factory=list)
    is_active: bool = True

    @property
    def primary_image(self) -> str | None:
        for image in self.images:
            if image.is_primary:
                return image.url
        return self.images[0].url if self.images else None

    def stock_for(self, size: str) -> int | None:
        """Live stock for a size, or None when the product has no such size."""
        for entry in self.sizes:
            if entry.size == size:
                return entry.stock
        return None


class GatewayOrder(_Resource):
    """Order handle minted by the payment gateway (amounts in paise)."""
    id: str
    amount: int
    currency: str = "INR"
    receipt: str = ""


class GatewayOrderHandle(BaseModel):
    order: GatewayOrder | None = None
    key: str | None = None
    mock: bool = False


class OrderRecord(_Resource):
    """Server-owned order, as echoed back for confirmation and tracking."""
    id: str = Field(default="", alias="_id")
    order_id: str
    customer: dict[str, Any] = Field(default_factory=dict)
    items: list[dict[str, Any]] = Field(default_factory=list)
    shipping: dict[str, Any] = Field(default_factory=dict)
    total: Decimal = Decimal(0)
    order_status: str = "pending"
    payment_status: str = "pending"
    payment_method: str = ""
    tracking_id: str | None = None
    courier: str | None = None
    created_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _order_id_fallback(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("orderId") and not data.get("order_id"):
            fallback = data.get("_id") or data.get("id")
            if fallback:
                data = {**data, "orderId": fallback}
        return data
