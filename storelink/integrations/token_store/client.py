"""HTTP client for the external service that stores merchant access tokens."""

import logging
from typing import Any

import httpx

from storelink.core.config import settings
from storelink.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class TokenStoreClient:
    """Async client for the save-access-token service."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self.base_url = base_url or settings.token_store_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.headers = {"Content-Type": "application/x-www-form-urlencoded"}

    async def save_access_token(
        self,
        shop: str,
        access_token: str,
        email: str | None = None,
    ) -> dict[str, Any]:
        """Forward a freshly issued access token to the token store.

        Args:
            shop: The shop domain the token belongs to.
            access_token: The Shopify offline access token.
            email: Merchant email captured at install time, if any.

        Returns:
            The service's JSON response, or ``{"response": <text>}`` when the
            body is not JSON.

        Raises:
            PersistenceError: If the request fails or returns a non-success status.
        """
        form: dict[str, str] = {"shopifyAccessToken": access_token}
        if email:
            form["email"] = email
        form["shop"] = shop

        try:
            async with httpx.AsyncClient(headers=self.headers, timeout=self.timeout) as client:
                response = await client.post(self.base_url, data=form)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PersistenceError(
                f"Token store returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise PersistenceError(f"Token store request failed: {type(e).__name__}") from e

        try:
            body = response.json()
        except ValueError:
            return {"response": response.text}
        if isinstance(body, dict):
            return body
        return {"response": body}
