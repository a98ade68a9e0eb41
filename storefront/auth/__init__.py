"""Signed-in user state: token, profile, and the order count behind free delivery."""
from .schema import User
from .store import AuthStore, GOOGLE_OAUTH_TOKEN

__all__ = ["User", "AuthStore", "GOOGLE_OAUTH_TOKEN"]
