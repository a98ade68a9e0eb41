"""Encrypted key/value storage for cart, auth and contact state."""
from .crypto import StorageCrypto
from .local import LocalStorage, CART_KEY, AUTH_KEY, ADMIN_TOKEN_KEYS, REFRESH_TOKEN_KEY, CONTACT_KEY

__all__ = [
    "StorageCrypto",
    "LocalStorage",
    "CART_KEY",
    "AUTH_KEY",
    "ADMIN_TOKEN_KEYS",
    "REFRESH_TOKEN_KEY",
    "CONTACT_KEY",
]
