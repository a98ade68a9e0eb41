"""Multi-step checkout: field schema, pricing, PIN code lookup and order placement."""
from .schema import CheckoutData, CustomerInfo, ShippingInfo, PaymentMethod
from .fields import Step, FieldSpec, STEP_FIELDS, field_spec, step_of
from .pricing import PriceBreakdown, compute_pricing, compute_discount, is_free_delivery
from .pincode import PincodeLookup, PincodeInfo, PincodeLookupError
from .orchestrator import (
    CheckoutOrchestrator,
    CheckoutPhase,
    PlaceOrderResult,
    PlaceOrderStatus,
    stock_issues,
)

__all__ = [
    "CheckoutData",
    "CustomerInfo",
    "ShippingInfo",
    "PaymentMethod",
    "Step",
    "FieldSpec",
    "STEP_FIELDS",
    "field_spec",
    "step_of",
    "PriceBreakdown",
    "compute_pricing",
    "compute_discount",
    "is_free_delivery",
    "PincodeLookup",
    "PincodeInfo",
    "PincodeLookupError",
    "CheckoutOrchestrator",
    "CheckoutPhase",
    "PlaceOrderResult",
    "PlaceOrderStatus",
    "stock_issues",
]
