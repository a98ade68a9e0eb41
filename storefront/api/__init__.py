"""Backend REST access: the httpx wrapper, normalized errors, and per-endpoint adapters."""
from .client import ApiClient, unwrap_envelope
from .errors import ApiError, ResponseShapeError
from .schema import Product, ProductSize, ProductImage, GatewayOrder, GatewayOrderHandle, OrderRecord

__all__ = [
    "ApiClient",
    "unwrap_envelope",
    "ApiError",
    "ResponseShapeError",
    "Product",
    "ProductSize",
    "ProductImage",
    "GatewayOrder",
    "GatewayOrderHandle",
    "OrderRecord",
]
