"""Shopify OAuth install and callback endpoints.

Mounted at the application root: Shopify only redirects back to the exact
``{HOST}/auth/callback`` URI registered for the app.
"""

import logging

from fastapi import APIRouter, Cookie, Depends, Query, Request
from fastapi.responses import HTMLResponse

from storelink.core.config import settings
from storelink.core.exceptions import CsrfError, IntegrityError, PersistenceError, ValidationError
from storelink.core.logging_config import bind_shop
from storelink.core.rate_limit import limiter
from storelink.core.security import generate_nonce, states_match, verify_signature
from storelink.integrations.shopify.oauth import (
    build_auth_url,
    build_login_url,
    exchange_code_for_token,
    normalize_shop,
)
from storelink.integrations.token_store.client import TokenStoreClient
from storelink.schemas.oauth import SAVE_TOKEN_FAILED, CallbackResult, ConnectionStatusMessage
from storelink.services.connection_registry import ConnectionRegistry, get_connection_registry
from storelink.services.pages import (
    build_dashboard_url,
    render_connect_page,
    render_connected_page,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])

STATE_COOKIE = "state"
EMAIL_COOKIE = "shopify_email"


def _set_session_cookie(response: HTMLResponse, key: str, value: str) -> None:
    response.set_cookie(
        key,
        value,
        max_age=settings.oauth_cookie_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def _clear_session_cookie(response: HTMLResponse, key: str) -> None:
    response.delete_cookie(
        key,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


@router.get("/auth", response_class=HTMLResponse)
@limiter.limit(settings.auth_rate_limit)
async def install(
    request: Request,  # noqa: ARG001  # slowapi reads it
    shop: str | None = Query(None),
    email: str | None = Query(None),
) -> HTMLResponse:
    """Start the Shopify OAuth flow for a store.

    Issues a fresh CSRF nonce in the ``state`` cookie and returns a page that
    opens Shopify's authorization screen and waits on the notification
    socket for the callback to complete.
    """
    shop = normalize_shop(shop)
    if not shop:
        raise ValidationError("Missing shop parameter", step="install")
    bind_shop(shop)

    nonce = generate_nonce()
    auth_url = build_auth_url(shop, nonce)

    response = HTMLResponse(
        render_connect_page(shop=shop, auth_url=auth_url, login_url=build_login_url(shop))
    )
    _set_session_cookie(response, STATE_COOKIE, nonce)
    if email:
        _set_session_cookie(response, EMAIL_COOKIE, email)
    else:
        _clear_session_cookie(response, EMAIL_COOKIE)

    logger.info("Starting OAuth flow")
    return response


@router.get("/auth/callback", response_class=HTMLResponse)
async def callback(
    request: Request,
    shop: str | None = Query(None),
    code: str | None = Query(None),
    state: str | None = Query(None),
    hmac: str | None = Query(None),
    state_cookie: str | None = Cookie(None, alias=STATE_COOKIE),
    email: str | None = Cookie(None, alias=EMAIL_COOKIE),
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> HTMLResponse:
    """Handle the Shopify OAuth callback.

    The CSRF, HMAC and token exchange steps are hard gates. Saving the
    token downstream is best-effort: a failure is reported on the success
    page instead of failing the request.
    """
    bind_shop(shop)

    if not states_match(state_cookie, state):
        raise CsrfError("Invalid state")

    params = dict(request.query_params)
    if not verify_signature(params, hmac, settings.shopify_api_secret):
        raise IntegrityError("HMAC mismatch")

    shop = normalize_shop(shop)
    if not shop or not code:
        raise ValidationError("Missing shop or code parameter", step="callback")

    access_token = await exchange_code_for_token(shop, code)

    delivered = await registry.notify(shop, ConnectionStatusMessage(shop=shop).model_dump())
    if not delivered:
        logger.info("No open install page to notify")

    try:
        save_result = await TokenStoreClient().save_access_token(shop, access_token, email)
        logger.info("Access token forwarded to token store")
    except PersistenceError as e:
        logger.error("OAuth %s failed: %s", e.step, e.message)
        save_result = dict(SAVE_TOKEN_FAILED)

    result = CallbackResult(
        shop=shop,
        dashboard_url=build_dashboard_url(shop, access_token, email),
        save_result=save_result,
    )
    response = HTMLResponse(render_connected_page(result))
    _clear_session_cookie(response, STATE_COOKIE)
    _clear_session_cookie(response, EMAIL_COOKIE)
    return response
