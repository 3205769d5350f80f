"""Pydantic schemas for the Shopify connection flow."""

from typing import Any, Literal

from storelink.schemas.common import BaseSchema

SAVE_TOKEN_FAILED: dict[str, Any] = {"error": "Failed to save access token"}


class ConnectionStatusMessage(BaseSchema):
    """Message pushed to the install page once the store is connected."""

    status: Literal["connected"] = "connected"
    shop: str


class CallbackResult(BaseSchema):
    """Outcome of a completed OAuth callback, rendered on the success page."""

    shop: str
    dashboard_url: str
    save_result: dict[str, Any]

    @property
    def saved(self) -> bool:
        return "error" not in self.save_result
