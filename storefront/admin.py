"""Back-office client: admin session plus plain form-to-API mutations."""
import logging
from typing import Any
from urllib.parse import quote

from .api import ApiClient
from .api.errors import ResponseShapeError
from .auth import AuthStore
from .storage import LocalStorage, ADMIN_TOKEN_KEYS, REFRESH_TOKEN_KEY

logger = logging.getLogger(__name__)


def _path(template: str, *parts: str) -> str:
    return template.format(*(quote(str(p), safe="") for p in parts))


class AdminClient:
    def __init__(self, client: ApiClient, storage: LocalStorage, auth: AuthStore | None = None):
        self._client = client
        self._storage = storage
        self._auth = auth

    @property
    def is_logged_in(self) -> bool:
        return any(self._storage.get_item(key) for key in ADMIN_TOKEN_KEYS)

    async def login(self, email: str, password: str) -> str:
        """Sign in and store the token under both admin keys; returns the token."""
        body = await self._client.post("/api/admin/login", {"email": email, "password": password})
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise ResponseShapeError("Invalid response format from server", 200, body)
        for key in ADMIN_TOKEN_KEYS:
            self._storage.set_item(key, token)
        if body.get("refreshToken"):
            self._storage.set_item(REFRESH_TOKEN_KEY, body["refreshToken"])
        if self._auth is not None:
            self._auth.login(token)
        logger.info("Admin signed in as %s", email)
        return token

    def logout(self) -> None:
        if self._auth is not None:
            self._auth.logout()
        for key in (*ADMIN_TOKEN_KEYS, REFRESH_TOKEN_KEY):
            self._storage.remove_item(key)
        logger.info("Admin signed out")

    # -- dashboard ----------------------------------------------------------

    async def stats(self) -> dict:
        return await self._client.get("/api/admin/stats")

    async def list_orders(self) -> list[dict]:
        body = await self._client.get("/api/admin/orders")
        return body if isinstance(body, list) else (body or {}).get("orders", [])

    async def update_order_status(self, order_id: str, status: str) -> Any:
        return await self._client.put(_path("/api/admin/orders/{}", order_id), {"orderStatus": status})

    async def update_tracking(self, order_id: str, tracking_id: str) -> Any:
        return await self._client.put(_path("/api/orders/{}/tracking", order_id), {"trackingId": tracking_id})

    # -- products -----------------------------------------------------------

    async def list_products(self) -> list[dict]:
        body = await self._client.get("/api/admin/products")
        return body if isinstance(body, list) else (body or {}).get("products", [])

    async def create_product(self, product: dict) -> Any:
        return await self._client.post("/api/admin/products", product)

    async def update_product(self, product_id: str, product: dict) -> Any:
        return await self._client.put(_path("/api/admin/products/{}", product_id), product)

    async def delete_product(self, product_id: str) -> Any:
        return await self._client.delete(_path("/api/admin/products/{}", product_id))

    # -- categories ---------------------------------------------------------

    async def list_categories(self) -> list[dict]:
        body = await self._client.get("/api/categories/admin/all")
        return body if isinstance(body, list) else (body or {}).get("categories", [])

    async def create_category(self, category: dict) -> Any:
        return await self._client.post("/api/categories/admin", category)

    async def update_category(self, category_id: str, category: dict) -> Any:
        return await self._client.put(_path("/api/categories/admin/{}", category_id), category)

    async def delete_category(self, category_id: str) -> Any:
        return await self._client.delete(_path("/api/categories/admin/{}", category_id))

    async def toggle_category(self, category_id: str) -> Any:
        return await self._client.patch(_path("/api/categories/admin/{}/toggle", category_id))

    async def set_category_sort(self, category_id: str, sort_order: int) -> Any:
        return await self._client.patch(
            _path("/api/categories/admin/{}/sort", category_id), {"sortOrder": sort_order}
        )

    # -- reviews ------------------------------------------------------------

    async def pending_reviews(self) -> list[dict]:
        body = await self._client.get("/api/reviews/admin/pending")
        return body if isinstance(body, list) else (body or {}).get("reviews", [])

    async def product_reviews(self, product_id: str) -> list[dict]:
        body = await self._client.get(_path("/api/reviews/admin/product/{}", product_id))
        return body if isinstance(body, list) else (body or {}).get("reviews", [])

    async def approve_review(self, review_id: str, approved: bool = True) -> Any:
        return await self._client.put(
            _path("/api/reviews/admin/{}/approve", review_id), {"isApproved": approved}
        )

    async def delete_review(self, review_id: str) -> Any:
        return await self._client.delete(_path("/api/reviews/admin/{}", review_id))
