"""Transient user notifications (toasts) collected for the caller to render."""
import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass
class Notice:
    level: NoticeLevel
    message: str

    def to_dict(self) -> dict:
        return {"level": self.level.value, "message": self.message}


class Notifier:
    """Queue of notices. Callers drain it after each user-facing action."""

    def __init__(self):
        self._pending: list[Notice] = []

    def success(self, message: str) -> None:
        self._push(NoticeLevel.SUCCESS, message)

    def info(self, message: str) -> None:
        self._push(NoticeLevel.INFO, message)

    def error(self, message: str) -> None:
        self._push(NoticeLevel.ERROR, message)

    def _push(self, level: NoticeLevel, message: str) -> None:
        logger.debug("notice[%s]: %s", level.value, message)
        self._pending.append(Notice(level, message))

    @property
    def pending(self) -> list[Notice]:
        return list(self._pending)

    def drain(self) -> list[Notice]:
        notices, self._pending = self._pending, []
        return notices
