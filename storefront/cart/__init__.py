"""Persisted cart: line items, stock clamping, and pre-checkout reconciliation."""
from .schema import CartLine
from .store import CartStore, CartOutcome
from .service import CartService
from .reconcile import reconcile_cart, ReconcileReport, LineCheck, LineStatus

__all__ = [
    "CartLine",
    "CartStore",
    "CartOutcome",
    "CartService",
    "reconcile_cart",
    "ReconcileReport",
    "LineCheck",
    "LineStatus",
]
