"""Pydantic schemas for API request/response validation."""

from storelink.schemas.common import BaseSchema, ErrorResponse, HealthResponse
from storelink.schemas.oauth import CallbackResult, ConnectionStatusMessage

__all__ = [
    "BaseSchema",
    "CallbackResult",
    "ConnectionStatusMessage",
    "ErrorResponse",
    "HealthResponse",
]
