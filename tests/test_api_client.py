"""Tests for the HTTP client wrapper."""
import httpx
import pytest

from storefront.api import ApiClient, ApiError, unwrap_envelope
from storefront.storage import ADMIN_TOKEN_KEYS, REFRESH_TOKEN_KEY

from conftest import json_response


class TestUnwrapEnvelope:
    def test_success_returns_data(self):
        assert unwrap_envelope({"success": True, "data": {"orderId": "A1"}}) == {"orderId": "A1"}

    def test_success_without_data_returns_body(self):
        body = {"success": True, "orderId": "A1"}
        assert unwrap_envelope(body) == body

    @pytest.mark.parametrize("empty", [[], {}, 0, ""])
    def test_empty_data_is_kept(self, empty):
        assert unwrap_envelope({"success": True, "data": empty}) == empty

    def test_null_data_returns_body(self):
        body = {"success": True, "data": None, "orderId": "A1"}
        assert unwrap_envelope(body) == body

    def test_failure_raises_with_server_message(self):
        with pytest.raises(ApiError) as exc:
            unwrap_envelope({"success": False, "message": "Validation failed: email"})
        assert exc.value.server_message == "Validation failed: email"

    def test_plain_body_passes_through(self):
        assert unwrap_envelope([1, 2]) == [1, 2]


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_is_normalized(self, client, backend):
        backend.on("POST", "/api/orders", json_response(400, {"success": False, "message": "Insufficient stock for P1"}))
        with pytest.raises(ApiError) as exc:
            await client.post("/api/orders", {})
        assert exc.value.status == 400
        assert exc.value.message == "Insufficient stock for P1"
        assert exc.value.server_message == "Insufficient stock for P1"

    @pytest.mark.asyncio
    async def test_transport_failure_is_status_zero(self, settings):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with ApiClient(settings, transport=httpx.MockTransport(fail)) as api:
            with pytest.raises(ApiError) as exc:
                await api.post("/api/orders", {})
        assert exc.value.is_network_error

    @pytest.mark.asyncio
    async def test_timeout_message(self, settings):
        def slow(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with ApiClient(settings, transport=httpx.MockTransport(slow)) as api:
            with pytest.raises(ApiError, match="Request timed out"):
                await api.get("/api/products")

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self, client, backend):
        backend.on("DELETE", "/api/cart/clear", httpx.Response(204))
        assert await client.delete("/api/cart/clear") is None


class TestRetries:
    @pytest.mark.asyncio
    async def test_get_retried_once_on_server_error(self, client, backend):
        backend.on("GET", "/api/products", [
            json_response(503, {"message": "busy"}),
            json_response(body={"success": True, "data": {"products": []}}),
        ])
        assert await client.get("/api/products") == {"products": []}
        assert len(backend.calls("GET", "/api/products")) == 2

    @pytest.mark.asyncio
    async def test_mutations_are_sent_once(self, client, backend):
        backend.on("POST", "/api/orders", json_response(503, {"message": "busy"}))
        with pytest.raises(ApiError):
            await client.post("/api/orders", {})
        assert len(backend.calls("POST", "/api/orders")) == 1

    @pytest.mark.asyncio
    async def test_client_errors_not_retried(self, client, backend):
        backend.on("GET", "/api/products/P9", json_response(404, {"message": "Product not found"}))
        with pytest.raises(ApiError):
            await client.get("/api/products/P9")
        assert len(backend.calls("GET", "/api/products/P9")) == 1


class TestAuthHeaders:
    @pytest.mark.asyncio
    async def test_admin_token_wins_over_user_token(self, client, backend, storage, auth):
        auth.login("user-token")
        storage.set_item("trustylads-admin-token", "admin-token")
        backend.on("GET", "/api/admin/stats", json_response(body={"success": True, "data": {"orders": 3}}))
        await client.get("/api/admin/stats")
        [request] = backend.calls("GET", "/api/admin/stats")
        assert request.headers["Authorization"] == "Bearer admin-token"

    @pytest.mark.asyncio
    async def test_user_token_used_without_admin_token(self, client, backend, auth):
        auth.login("user-token")
        backend.on("GET", "/api/users/me", json_response(body={"success": True, "data": {"user": {}}}))
        await client.get("/api/users/me")
        assert backend.requests[0].headers["Authorization"] == "Bearer user-token"

    @pytest.mark.asyncio
    async def test_anonymous_request_has_no_header(self, client, backend):
        backend.on("GET", "/api/products", json_response(body=[]))
        await client.get("/api/products")
        assert "Authorization" not in backend.requests[0].headers


class TestTokenRefresh:
    @pytest.mark.asyncio
    async def test_401_refreshes_and_replays_once(self, client, backend, storage, auth):
        storage.set_item("adminToken", "stale")
        storage.set_item(REFRESH_TOKEN_KEY, "refresh-1")

        def orders(request):
            if request.headers.get("Authorization") == "Bearer fresh":
                return json_response(body={"success": True, "data": {"orders": ["A1"]}})
            return json_response(401, {"message": "Token expired"})

        backend.on("GET", "/api/admin/orders", orders)
        backend.on("POST", "/api/admin/refresh", json_response(body={"success": True, "data": {"token": "fresh"}}))

        assert await client.get("/api/admin/orders") == {"orders": ["A1"]}
        assert [storage.get_item(k) for k in ADMIN_TOKEN_KEYS] == ["fresh", "fresh"]
        assert auth.token == "fresh"
        [refresh] = backend.calls("POST", "/api/admin/refresh")
        assert backend.body_of(refresh) == {"refreshToken": "refresh-1"}

    @pytest.mark.asyncio
    async def test_failed_refresh_logs_out(self, client, backend, storage, auth):
        auth.login("stale")
        storage.set_item("adminToken", "stale")
        storage.set_item(REFRESH_TOKEN_KEY, "refresh-1")
        backend.on("GET", "/api/admin/orders", json_response(401, {"message": "Token expired"}))
        backend.on("POST", "/api/admin/refresh", json_response(401, {"message": "Invalid refresh token"}))

        with pytest.raises(ApiError) as exc:
            await client.get("/api/admin/orders")

        assert exc.value.status == 401
        assert not auth.is_authenticated
        assert storage.get_item("adminToken") is None
        assert storage.get_item(REFRESH_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_no_refresh_token_means_no_refresh(self, client, backend):
        backend.on("GET", "/api/users/me", json_response(401, {"message": "Unauthorized"}))
        with pytest.raises(ApiError):
            await client.get("/api/users/me")
        assert backend.calls("POST", "/api/admin/refresh") == []
