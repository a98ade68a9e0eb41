"""Fernet encryption for the storage file. The key lives beside the data."""
import json
import logging
import os
from pathlib import Path

from cryptography.fernet import Fernet

logger = logging.getLogger(__name__)

DEFAULT_KEY_PATH = Path.home() / ".config" / "storefront" / "storage.key"


class StorageCrypto:
    """Encrypts JSON-serializable dicts. Creates the key on first use."""

    def __init__(self, key_path: Path | None = None):
        self._key_path = key_path or DEFAULT_KEY_PATH
        self._fernet: Fernet | None = None

    def _get_fernet(self) -> Fernet:
        if self._fernet is not None:
            return self._fernet
        if self._key_path.exists():
            key = self._key_path.read_bytes().strip()
        else:
            self._key_path.parent.mkdir(parents=True, exist_ok=True)
            key = Fernet.generate_key()
            self._key_path.write_bytes(key)
            os.chmod(self._key_path, 0o600)
            logger.info("Generated storage key at %s", self._key_path)
        self._fernet = Fernet(key)
        return self._fernet

    def encrypt(self, data: dict) -> bytes:
        return self._get_fernet().encrypt(json.dumps(data).encode("utf-8"))

    def decrypt(self, token: bytes) -> dict:
        """Raises cryptography.fernet.InvalidToken on tampered input."""
        return json.loads(self._get_fernet().decrypt(token).decode("utf-8"))
