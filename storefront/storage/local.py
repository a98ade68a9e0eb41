"""
Client-side storage with browser localStorage semantics.

String keys map to string values. The whole map is kept in one encrypted
file; every write re-reads it and replaces it atomically, so two processes
sharing a state dir behave like two browser tabs: last write wins.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any

from cryptography.fernet import InvalidToken

from .crypto import StorageCrypto

logger = logging.getLogger(__name__)

CART_KEY = "trustylads-cart"
AUTH_KEY = "trustylads-auth"
# Legacy name first, current name second; both are written and both are read.
ADMIN_TOKEN_KEYS = ("adminToken", "trustylads-admin-token")
REFRESH_TOKEN_KEY = "trustylads-refresh-token"
CONTACT_KEY = "trustylads-customer-contact"


class LocalStorage:
    """Persistent string map under a state directory."""

    def __init__(self, state_dir: Path, crypto: StorageCrypto | None = None):
        self._path = state_dir / "local_storage.enc"
        self._crypto = crypto or StorageCrypto(key_path=state_dir / "storage.key")

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            return self._crypto.decrypt(self._path.read_bytes())
        except InvalidToken:
            logger.error("Storage file %s could not be decrypted; starting empty", self._path)
            return {}

    def _write_all(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_bytes(self._crypto.encrypt(data))
        os.replace(tmp, self._path)

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def keys(self) -> list[str]:
        return list(self._read_all())

    def get_json(self, key: str) -> Any:
        """Decode a JSON value; malformed or missing values read as None."""
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed JSON under storage key %s", key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))
