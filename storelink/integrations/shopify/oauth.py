"""Shopify OAuth helpers for the authorize URL and token exchange."""

import logging
from urllib.parse import urlencode

import httpx

from storelink.core.config import settings
from storelink.core.exceptions import UpstreamExchangeError

logger = logging.getLogger(__name__)


def normalize_shop(shop: str | None) -> str:
    """Canonical lowercase shop domain; Shopify calls back with this form."""
    return (shop or "").strip().lower()


def build_auth_url(shop: str, nonce: str) -> str:
    """Build the Shopify OAuth authorization URL.

    Args:
        shop: The shop domain (e.g. mystore.myshopify.com).
        nonce: Random state parameter for CSRF protection.

    Returns:
        The full authorization URL to send the merchant to.
    """
    params = urlencode({
        "client_id": settings.shopify_api_key,
        "scope": settings.shopify_scopes,
        "state": nonce,
        "redirect_uri": settings.callback_url,
    })
    return f"https://{shop}/admin/oauth/authorize?{params}"


def build_login_url(shop: str) -> str:
    """Store admin URL opened first so the merchant is logged in before authorizing."""
    return f"https://{shop}/admin"


async def exchange_code_for_token(shop: str, code: str) -> str:
    """Exchange the OAuth authorization code for a permanent access token.

    Args:
        shop: The shop domain.
        code: The authorization code from Shopify.

    Returns:
        The access token string.

    Raises:
        UpstreamExchangeError: If the request fails, Shopify answers with a
            non-success status, or the response carries no access token.
    """
    url = f"https://{shop}/admin/oauth/access_token"
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            response = await client.post(url, json={
                "client_id": settings.shopify_api_key,
                "client_secret": settings.shopify_api_secret,
                "code": code,
            })
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        raise _exchange_failed(f"Shopify returned {e.response.status_code}: {e.response.text}") from e
    except httpx.HTTPError as e:
        raise _exchange_failed(f"{type(e).__name__}: {e}") from e
    except ValueError as e:
        raise _exchange_failed("token endpoint returned invalid JSON") from e

    access_token = data.get("access_token") if isinstance(data, dict) else None
    if not access_token:
        raise _exchange_failed("no access token in response")

    logger.info("Obtained access token (scopes: %s)", data.get("scope", ""))
    return str(access_token)


def _exchange_failed(detail: str) -> UpstreamExchangeError:
    return UpstreamExchangeError(f"Failed to get access token: {detail}")
