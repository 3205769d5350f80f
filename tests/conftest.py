"""Pytest configuration and fixtures for the StoreLink test suite.

Provides:
- Pinned Shopify/app settings for every test
- Disabled rate limiting
- A fresh ConnectionRegistry per test, injected into the app
- Async (httpx) and sync (Starlette TestClient) clients
- Helpers for signing callbacks and mocking the outbound HTTP calls
"""

import hashlib
import hmac
from collections.abc import AsyncGenerator, Callable, Generator
from http.cookies import SimpleCookie
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient
from starlette.websockets import WebSocketState

from storelink.core.rate_limit import limiter
from storelink.main import app
from storelink.services.connection_registry import ConnectionRegistry, get_connection_registry

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SHOPIFY_TEST_API_KEY = "test-shopify-api-key"
SHOPIFY_TEST_API_SECRET = "test-shopify-api-secret"
SHOPIFY_TEST_SCOPES = "read_products,read_orders"
SHOPIFY_TEST_SHOP = "test-store.myshopify.com"
SHOPIFY_TEST_ACCESS_TOKEN = "shpat_test_access_token_123"
TEST_HOST = "https://connect.example.com"
TEST_DASHBOARD_URL = "https://dashboard.example.com"
TEST_TOKEN_STORE_URL = "https://token-store.example.com/save"
TEST_EMAIL = "merchant@example.com"

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


@pytest.fixture(autouse=True)
def set_test_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure app settings are consistent for all tests."""
    monkeypatch.setattr("storelink.core.config.settings.shopify_api_key", SHOPIFY_TEST_API_KEY)
    monkeypatch.setattr(
        "storelink.core.config.settings.shopify_api_secret", SHOPIFY_TEST_API_SECRET
    )
    monkeypatch.setattr("storelink.core.config.settings.shopify_scopes", SHOPIFY_TEST_SCOPES)
    monkeypatch.setattr("storelink.core.config.settings.host", TEST_HOST)
    monkeypatch.setattr("storelink.core.config.settings.dashboard_url", TEST_DASHBOARD_URL)
    monkeypatch.setattr("storelink.core.config.settings.token_store_url", TEST_TOKEN_STORE_URL)
    monkeypatch.setattr("storelink.core.config.settings.cookie_secure", True)
    monkeypatch.setattr("storelink.core.config.settings.open_login_first", True)


# ---------------------------------------------------------------------------
# Connection registry
# ---------------------------------------------------------------------------


class FakeChannel:
    """Stand-in for a WebSocket that records what the registry sends."""

    def __init__(self, *, open_: bool = True, fail_with: Exception | None = None) -> None:
        state = WebSocketState.CONNECTED if open_ else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state
        self.fail_with = fail_with
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(data)


@pytest.fixture
def fake_channel_factory() -> Callable[..., FakeChannel]:
    """Factory for fake notification channels."""
    return FakeChannel


@pytest.fixture
def registry() -> Generator[ConnectionRegistry, None, None]:
    """Fresh registry wired into the app for the duration of a test."""
    fresh = ConnectionRegistry()
    app.dependency_overrides[get_connection_registry] = lambda: fresh
    yield fresh
    app.dependency_overrides.pop(get_connection_registry, None)


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(registry: ConnectionRegistry) -> AsyncGenerator[AsyncClient, None]:  # noqa: ARG001
    """Async test client with the per-test registry injected."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def plain_client() -> AsyncGenerator[AsyncClient, None]:
    """Minimal async test client with NO dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def sync_client(registry: ConnectionRegistry) -> Generator[TestClient, None, None]:  # noqa: ARG001
    """Starlette TestClient for WebSocket flows.

    Used as a context manager so HTTP requests and sockets share one event loop.
    """
    with TestClient(app) as tc:
        yield tc


# ---------------------------------------------------------------------------
# Shopify helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def shopify_oauth_hmac() -> Callable[[dict[str, str]], str]:
    """Generate a valid Shopify OAuth callback HMAC for query params.

    Shopify signs the sorted ``key=value`` pairs (joined with ``&``) of all
    callback params except ``hmac`` and ``signature``.

    Usage:
        params = {"code": "abc", "shop": "store.myshopify.com", "state": "nonce123"}
        params["hmac"] = shopify_oauth_hmac(params)
    """

    def _compute(params: dict[str, str]) -> str:
        message = "&".join(
            f"{k}={v}" for k, v in sorted(params.items()) if k not in ("hmac", "signature")
        )
        return hmac.new(
            SHOPIFY_TEST_API_SECRET.encode(),
            message.encode(),
            hashlib.sha256,
        ).hexdigest()

    return _compute


@pytest.fixture
def signed_callback(
    shopify_oauth_hmac: Callable[[dict[str, str]], str],
) -> Callable[..., tuple[dict[str, str], dict[str, str]]]:
    """Build signed callback params plus the matching cookie header.

    Returns ``(params, headers)`` ready for ``client.get("/auth/callback", ...)``.
    """

    def _build(
        *,
        nonce: str = "a" * 32,
        shop: str = SHOPIFY_TEST_SHOP,
        code: str = "auth-code-123",
        email: str | None = None,
        extra: dict[str, str] | None = None,
    ) -> tuple[dict[str, str], dict[str, str]]:
        params = {"code": code, "shop": shop, "state": nonce, "timestamp": "1700000000"}
        params.update(extra or {})
        params["hmac"] = shopify_oauth_hmac(params)
        cookie = f"state={nonce}"
        if email:
            cookie += f"; shopify_email={email}"
        return params, {"Cookie": cookie}

    return _build


@pytest.fixture
def mock_token_exchange() -> Generator[AsyncMock, None, None]:
    """Mock the code-for-token exchange used by the callback route."""
    with patch(
        "storelink.api.oauth.exchange_code_for_token",
        new=AsyncMock(return_value=SHOPIFY_TEST_ACCESS_TOKEN),
    ) as mock_exchange:
        yield mock_exchange


@pytest.fixture
def mock_token_store() -> Generator[MagicMock, None, None]:
    """Mock the TokenStoreClient used by the callback route."""
    with patch("storelink.api.oauth.TokenStoreClient") as mock_class:
        mock_instance = MagicMock()
        mock_instance.save_access_token = AsyncMock(return_value={"success": True})
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def mock_shopify_http() -> Generator[AsyncMock, None, None]:
    """Mock httpx.AsyncClient for the Shopify token exchange helper."""
    with patch("storelink.integrations.shopify.oauth.httpx.AsyncClient") as mock_class:
        mock_client = AsyncMock()
        mock_class.return_value.__aenter__.return_value = mock_client

        mock_response = MagicMock()
        mock_response.json.return_value = {
            "access_token": SHOPIFY_TEST_ACCESS_TOKEN,
            "scope": SHOPIFY_TEST_SCOPES,
        }
        mock_response.raise_for_status = MagicMock()
        mock_client.post.return_value = mock_response

        yield mock_client


@pytest.fixture
def mock_token_store_http() -> Generator[AsyncMock, None, None]:
    """Mock httpx.AsyncClient for TokenStoreClient unit tests."""
    with patch("storelink.integrations.token_store.client.httpx.AsyncClient") as mock_class:
        mock_client = AsyncMock()
        mock_class.return_value.__aenter__.return_value = mock_client

        mock_response = MagicMock()
        mock_response.json.return_value = {"success": True, "message": "Token saved"}
        mock_response.raise_for_status = MagicMock()
        mock_client.post.return_value = mock_response

        yield mock_client


def http_status_error(status_code: int, text: str = "error") -> httpx.HTTPStatusError:
    """Build an HTTPStatusError with a real response attached."""
    request = httpx.Request("POST", "https://example.com")
    response = httpx.Response(status_code, text=text, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


def parse_set_cookies(response: httpx.Response) -> dict[str, Any]:
    """Parse every Set-Cookie header into morsels keyed by cookie name."""
    morsels: dict[str, Any] = {}
    for header in response.headers.get_list("set-cookie"):
        jar: SimpleCookie = SimpleCookie()
        jar.load(header)
        morsels.update(jar)
    return morsels
