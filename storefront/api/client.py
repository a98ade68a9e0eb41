"""
HTTP client wrapper over httpx.

Adds bearer-token injection, `{success, data}` envelope unwrapping, error
normalization into ApiError, per-path request spacing, a single admin token
refresh on 401, and bounded retries for reads. Mutations are sent once.
"""
import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from ..config import Settings
from ..storage import LocalStorage, ADMIN_TOKEN_KEYS, REFRESH_TOKEN_KEY
from .errors import ApiError

if TYPE_CHECKING:
    from ..auth import AuthStore

logger = logging.getLogger(__name__)

REFRESH_PATH = "/api/admin/refresh"


def unwrap_envelope(body: Any) -> Any:
    """Strip the `{success: true, data}` envelope; raise on `success: false`."""
    if isinstance(body, dict):
        if body.get("success") is True:
            data = body.get("data")
            return data if data is not None else body
        if body.get("success") is False:
            raise ApiError(body.get("message") or "API request failed", 200, body)
    return body


def _error_from_response(response: httpx.Response) -> ApiError:
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    message = None
    if isinstance(body, dict):
        message = body.get("message")
    return ApiError(message or response.reason_phrase or "Request failed", response.status_code, body)


def _error_from_transport(exc: httpx.HTTPError) -> ApiError:
    if isinstance(exc, httpx.TimeoutException):
        return ApiError("Request timed out", 0)
    return ApiError(str(exc) or "Network error", 0)


class ApiClient:
    """Async backend client. One instance per process."""

    def __init__(
        self,
        settings: Settings,
        storage: LocalStorage | None = None,
        auth: "AuthStore | None" = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._storage = storage
        self._auth = auth
        self._http = httpx.AsyncClient(
            base_url=settings.api_url,
            timeout=settings.request_timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self._next_slot: dict[str, float] = {}

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -- auth ---------------------------------------------------------------

    def _admin_token(self) -> str | None:
        if self._storage is None:
            return None
        for key in ADMIN_TOKEN_KEYS:
            token = self._storage.get_item(key)
            if token:
                return token
        return None

    def _auth_headers(self) -> dict[str, str]:
        token = self._admin_token() or (self._auth.token if self._auth else None)
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _refresh_access_token(self) -> bool:
        """Exchange the stored refresh token. On failure, sign out everywhere."""
        refresh_token = self._storage.get_item(REFRESH_TOKEN_KEY) if self._storage else None
        if not refresh_token:
            return False
        try:
            response = await self._http.post(REFRESH_PATH, json={"refreshToken": refresh_token})
            response.raise_for_status()
            token = response.json()["data"]["token"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Token refresh failed: %s", e)
            if self._auth:
                self._auth.logout()
            for key in (REFRESH_TOKEN_KEY, *ADMIN_TOKEN_KEYS):
                self._storage.remove_item(key)
            return False

        for key in ADMIN_TOKEN_KEYS:
            self._storage.set_item(key, token)
        if self._auth:
            self._auth.set_token(token)
        logger.info("Access token refreshed")
        return True

    # -- throttling ---------------------------------------------------------

    async def _throttle(self, path: str) -> None:
        interval = self._settings.throttle_interval
        if interval <= 0:
            return
        now = time.monotonic()
        slot = max(now, self._next_slot.get(path, 0.0))
        self._next_slot[path] = slot + interval
        if slot > now:
            await asyncio.sleep(slot - now)

    # -- requests -----------------------------------------------------------

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict | None = None,
    ) -> Any:
        method = method.upper()
        path = httpx.URL(url).path
        retries = self._settings.read_retries if method == "GET" else 0
        attempt = 0
        refreshed = False

        while True:
            await self._throttle(path)
            try:
                response = await self._http.request(
                    method, url, json=json, params=params, headers=self._auth_headers(),
                )
            except httpx.HTTPError as e:
                if attempt < retries:
                    attempt += 1
                    logger.warning("%s %s failed (%s); retry %d/%d", method, path, e, attempt, retries)
                    continue
                raise _error_from_transport(e) from e

            if response.status_code == 401 and not refreshed:
                refreshed = True
                if await self._refresh_access_token():
                    continue
            if response.status_code >= 500 and attempt < retries:
                attempt += 1
                logger.warning("%s %s returned %d; retry %d/%d",
                               method, path, response.status_code, attempt, retries)
                continue
            return self._handle_response(response)

    @staticmethod
    def _handle_response(response: httpx.Response) -> Any:
        if response.status_code >= 400:
            raise _error_from_response(response)
        if not response.content:
            return None
        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ApiError("Invalid JSON in response", response.status_code) from e
        return unwrap_envelope(body)

    async def get(self, url: str, params: dict | None = None) -> Any:
        return await self.request("GET", url, params=params)

    async def post(self, url: str, data: Any = None) -> Any:
        return await self.request("POST", url, json=data)

    async def put(self, url: str, data: Any = None) -> Any:
        return await self.request("PUT", url, json=data)

    async def patch(self, url: str, data: Any = None) -> Any:
        return await self.request("PATCH", url, json=data)

    async def delete(self, url: str) -> Any:
        return await self.request("DELETE", url)
