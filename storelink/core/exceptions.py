"""Errors raised by the OAuth connection flow.

Each error carries the HTTP status the route should answer with and the
flow step it was raised from, so handlers can log with enough context to
diagnose a failed connection without touching secrets.
"""

from fastapi import status


class OAuthFlowError(Exception):
    """Base class for failures in the install/callback flow."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    step: str = "oauth"

    def __init__(self, message: str, *, step: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if step is not None:
            self.step = step


class ValidationError(OAuthFlowError):
    """A required request parameter is missing."""

    status_code = status.HTTP_400_BAD_REQUEST
    step = "validate"


class CsrfError(OAuthFlowError):
    """Callback state does not match the nonce issued at install time."""

    status_code = status.HTTP_403_FORBIDDEN
    step = "csrf"


class IntegrityError(OAuthFlowError):
    """Callback HMAC does not match the query parameters."""

    status_code = status.HTTP_400_BAD_REQUEST
    step = "hmac"


class UpstreamExchangeError(OAuthFlowError):
    """Shopify refused or failed the code-for-token exchange."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    step = "token_exchange"


class PersistenceError(OAuthFlowError):
    """The token store could not save the access token.

    Never surfaced as an HTTP failure: the callback embeds it in the
    success page instead.
    """

    step = "persist"
