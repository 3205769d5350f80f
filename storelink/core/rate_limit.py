"""Rate limiting for the public OAuth entry points using slowapi."""

from slowapi import Limiter
from starlette.requests import Request


def _client_ip(request: Request) -> str:
    """Resolve the merchant's IP behind the load balancer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "127.0.0.1"


limiter = Limiter(key_func=_client_ip)
