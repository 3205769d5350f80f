"""Nonce generation and Shopify callback signature helpers."""

import hashlib
import hmac
import secrets
from collections.abc import Mapping

# Query parameters that carry the signature itself and are never signed
SIGNATURE_FIELDS = frozenset({"hmac", "signature"})

NONCE_BYTES = 16


def generate_nonce() -> str:
    """Generate a random hex state token for CSRF protection."""
    return secrets.token_hex(NONCE_BYTES)


def build_signing_message(params: Mapping[str, str]) -> str:
    """Build the canonical message Shopify signs for an OAuth callback.

    Keys are sorted lexicographically and joined as raw ``key=value`` pairs
    with ``&``. Values are not URL-encoded.
    """
    return "&".join(
        f"{key}={params[key]}" for key in sorted(params) if key not in SIGNATURE_FIELDS
    )


def compute_signature(secret: str, params: Mapping[str, str]) -> str:
    """Compute the hex HMAC-SHA256 of the callback parameters.

    Args:
        secret: The Shopify app secret.
        params: Callback query parameters. ``hmac`` and ``signature`` are ignored.

    Returns:
        The hex digest.
    """
    return hmac.new(
        secret.encode("utf-8"),
        build_signing_message(params).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(params: Mapping[str, str], signature: str | None, secret: str) -> bool:
    """Verify a Shopify OAuth callback signature in constant time."""
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(secret, params), signature)


def states_match(expected: str | None, received: str | None) -> bool:
    """Compare the cookie nonce against the returned state in constant time."""
    if not expected or not received:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))
