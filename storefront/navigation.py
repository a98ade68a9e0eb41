"""Client-side route history. Checkout navigates through this, never directly."""
import logging
from typing import Protocol

logger = logging.getLogger(__name__)

CART_PATH = "/cart"


def order_success_path(order_id: str) -> str:
    return f"/order-success/{order_id}"


class Navigator(Protocol):
    def navigate(self, path: str, replace: bool = False) -> None: ...

    @property
    def location(self) -> str: ...


class HistoryNavigator:
    """In-memory history stack; `replace` swaps the top entry."""

    def __init__(self, start: str = "/"):
        self._history: list[str] = [start]

    @property
    def location(self) -> str:
        return self._history[-1]

    @property
    def history(self) -> list[str]:
        return list(self._history)

    def navigate(self, path: str, replace: bool = False) -> None:
        if replace:
            self._history[-1] = path
        else:
            self._history.append(path)
        logger.info("Navigated to %s%s", path, " (replace)" if replace else "")
