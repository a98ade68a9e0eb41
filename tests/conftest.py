"""Shared test fixtures."""
import json
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from storefront.api import ApiClient
from storefront.auth import AuthStore
from storefront.cart import CartLine, CartStore
from storefront.config import Settings
from storefront.navigation import HistoryNavigator
from storefront.notices import Notifier
from storefront.storage import LocalStorage


def make_line(**overrides) -> CartLine:
    fields = {
        "product_id": "P1",
        "name": "Oversized Tee",
        "price": Decimal(500),
        "size": "M",
        "quantity": 2,
        "image": "https://cdn.example.com/tee.jpg",
        "category": "tees",
        "max_stock": 10,
    }
    fields.update(overrides)
    return CartLine(**fields)


def product_body(product_id="P1", name="Oversized Tee", price=500, sizes=None, **extra) -> dict:
    """Product detail as the backend sends it, wrapped in the success envelope."""
    if sizes is None:
        sizes = {"M": 10}
    product = {
        "_id": f"db-{product_id}",
        "productId": product_id,
        "name": name,
        "price": price,
        "category": "tees",
        "sizes": [{"size": s, "stock": n} for s, n in sizes.items()],
        "images": [{"url": "https://cdn.example.com/tee.jpg", "alt": name, "isPrimary": True}],
        "isActive": True,
        **extra,
    }
    return {"success": True, "data": product}


def json_response(status: int = 200, body=None) -> httpx.Response:
    if body is None:
        return httpx.Response(status)
    return httpx.Response(status, content=json.dumps(body), headers={"Content-Type": "application/json"})


class Backend:
    """Route table for httpx.MockTransport; records every request it sees."""

    def __init__(self):
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, response) -> None:
        """`response` is an httpx.Response, a list of them (served in order), or a callable."""
        self.routes[(method.upper(), path)] = response

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def body_of(self, request: httpx.Request) -> dict:
        return json.loads(request.content)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return json_response(404, {"success": False, "message": "Not found"})
        if callable(route):
            return route(request)
        if isinstance(route, list):
            return route.pop(0) if len(route) > 1 else route[0]
        return route

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_url="http://backend.test",
        razorpay_key_id="rzp_test_configuredkey",
        state_dir=tmp_path / "state",
        throttle_interval=0,
        read_retries=1,
        debug_dir=tmp_path / "debug",
    )


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "state")


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def navigator():
    return HistoryNavigator(start="/checkout")


@pytest.fixture
def backend():
    return Backend()


@pytest.fixture
def auth(storage):
    return AuthStore(storage)


@pytest.fixture
def cart(storage):
    return CartStore(storage)


@pytest_asyncio.fixture
async def client(settings, storage, auth, backend):
    api = ApiClient(settings, storage=storage, auth=auth, transport=backend.transport)
    yield api
    await api.aclose()


@pytest.fixture
def messages(notifier):
    """Notice texts drained from the notifier."""
    def _messages():
        return [n.message for n in notifier.drain()]
    return _messages
