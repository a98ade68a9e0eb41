"""Normalized error shapes raised by the HTTP wrapper and endpoint adapters."""
from typing import Any


class ApiError(Exception):
    """Any failed backend call: HTTP error, `success: false` envelope, or transport failure."""

    def __init__(self, message: str, status: int = 0, data: Any = None):
        self.message = message
        self.status = status
        self.data = data
        super().__init__(message)

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    @property
    def server_message(self) -> str | None:
        """The backend's own `message` field, when the body carried one."""
        if isinstance(self.data, dict) and isinstance(self.data.get("message"), str):
            return self.data["message"]
        return None

    def to_dict(self) -> dict:
        return {"message": self.message, "status": self.status}


class ResponseShapeError(ApiError):
    """A response arrived but none of the known body shapes matched."""
