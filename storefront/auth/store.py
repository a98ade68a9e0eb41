"""Auth store, persisted under the `trustylads-auth` key."""
import logging

from pydantic import ValidationError

from ..api import ApiClient, endpoints
from ..api.errors import ApiError
from ..storage import LocalStorage, AUTH_KEY
from .schema import User

logger = logging.getLogger(__name__)

GOOGLE_OAUTH_TOKEN = "google-oauth"


class AuthStore:
    """Token + user. Authentication itself is done by the backend; this only holds the result."""

    def __init__(self, storage: LocalStorage | None = None):
        self._storage = storage
        self.token: str | None = None
        self.is_authenticated = False
        self.user: User | None = None
        self.is_google_oauth = False
        if storage is not None:
            self._load()

    def _load(self) -> None:
        envelope = self._storage.get_json(AUTH_KEY)
        state = envelope.get("state") if isinstance(envelope, dict) else None
        if not isinstance(state, dict):
            return
        self.token = state.get("token")
        self.is_authenticated = bool(state.get("isAuthenticated"))
        self.is_google_oauth = bool(state.get("isGoogleOAuth"))
        if state.get("user"):
            try:
                self.user = User.model_validate(state["user"])
            except ValidationError as e:
                logger.warning("Ignoring unreadable stored user: %s", e)

    def _persist(self) -> None:
        if self._storage is None:
            return
        self._storage.set_json(AUTH_KEY, {
            "state": {
                "token": self.token,
                "isAuthenticated": self.is_authenticated,
                "user": self.user.model_dump(by_alias=True) if self.user else None,
                "isGoogleOAuth": self.is_google_oauth,
            },
            "version": 0,
        })

    def login(self, token: str, user: User | None = None) -> None:
        self.token = token
        self.is_authenticated = True
        self.user = user
        self.is_google_oauth = token == GOOGLE_OAUTH_TOKEN
        self._persist()
        logger.info("Signed in%s", f" as {user.email}" if user else "")

    def logout(self) -> None:
        self.token = None
        self.is_authenticated = False
        self.user = None
        self.is_google_oauth = False
        self._persist()
        logger.info("Signed out")

    def set_token(self, token: str | None) -> None:
        self.token = token
        self.is_authenticated = bool(token)
        self._persist()

    def set_user(self, user: User) -> None:
        self.user = user
        self._persist()

    @property
    def order_count(self) -> int:
        return self.user.order_count if self.user else 0

    def increment_order_count(self) -> None:
        """Optimistic bump right after an order, ahead of the server refresh."""
        if self.user is None:
            return
        self.user = self.user.model_copy(update={"order_count": self.user.order_count + 1})
        self._persist()

    async def refresh_user(self, client: ApiClient) -> None:
        """Reload the user from the backend. Failures are logged and ignored."""
        if not self.token:
            logger.debug("No token; skipping user refresh")
            return
        try:
            raw = await endpoints.get_current_user(client)
        except ApiError as e:
            logger.warning("Failed to refresh user data: %s", e.message)
            return
        if raw is None:
            logger.warning("User refresh returned an unexpected shape")
            return
        try:
            self.set_user(User.model_validate(raw))
        except ValidationError as e:
            logger.warning("User refresh payload rejected: %s", e)

    async def sync_order_count(self, client: ApiClient) -> None:
        """Set order_count to the number of orders the backend lists for this user."""
        if not self.token or self.user is None:
            return
        try:
            orders = await endpoints.list_my_orders(client)
        except ApiError as e:
            if e.status == 401:
                logger.info("Token appears to be invalid or expired")
            logger.warning("Failed to sync order count: %s", e.message)
            return
        self.set_user(self.user.model_copy(update={"order_count": len(orders)}))
