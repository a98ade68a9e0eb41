"""Abstract payment widget: whatever hosts the gateway's checkout UI."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class WidgetOutcome:
    """How the payment widget closed."""
    success: bool
    response: dict[str, Any] = field(default_factory=dict)  # signed gateway fields on success
    error: dict[str, Any] = field(default_factory=dict)

    @property
    def description(self) -> str:
        return self.error.get("description") or self.error.get("message") or "Unknown error"

    @classmethod
    def failed(cls, code: str, description: str, **extra: Any) -> "WidgetOutcome":
        return cls(success=False, error={"code": code, "description": description, **extra})


class PaymentWidget(ABC):
    """Opens the gateway checkout for one order handle and waits for it to close."""

    @abstractmethod
    async def open(self, options: dict[str, Any]) -> WidgetOutcome:
        ...
