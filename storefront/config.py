"""Runtime settings read from STOREFRONT_* environment variables."""
import os
from pathlib import Path

from pydantic import BaseModel

DEFAULT_STATE_DIR = Path.home() / ".config" / "storefront"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


class Settings(BaseModel):
    """Backend location, gateway key and client behaviour knobs."""
    api_url: str = "http://localhost:5000"
    razorpay_key_id: str = ""
    state_dir: Path = DEFAULT_STATE_DIR
    request_timeout: float = 30.0
    throttle_interval: float = 0.3  # seconds between calls to the same path
    read_retries: int = 1
    headless: bool = False
    debug_dir: Path = DEFAULT_STATE_DIR / "debug"

    @classmethod
    def from_env(cls) -> "Settings":
        state_dir = Path(os.path.expanduser(
            os.environ.get("STOREFRONT_STATE_DIR", str(DEFAULT_STATE_DIR))
        ))
        return cls(
            api_url=os.environ.get("STOREFRONT_API_URL", "").strip() or "http://localhost:5000",
            razorpay_key_id=os.environ.get("STOREFRONT_RAZORPAY_KEY_ID", ""),
            state_dir=state_dir,
            request_timeout=float(os.environ.get("STOREFRONT_REQUEST_TIMEOUT", "30")),
            throttle_interval=float(os.environ.get("STOREFRONT_THROTTLE_INTERVAL", "0.3")),
            read_retries=int(os.environ.get("STOREFRONT_READ_RETRIES", "1")),
            headless=_env_bool("STOREFRONT_HEADLESS"),
            debug_dir=Path(os.path.expanduser(
                os.environ.get("STOREFRONT_DEBUG_DIR", str(state_dir / "debug"))
            )),
        )
