"""Browser pages shown during the connection flow."""

import json
from pathlib import Path
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader

from storelink.core.config import settings
from storelink.schemas.oauth import CallbackResult

# Jinja2 template environment
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_jinja_env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), autoescape=True)


def build_dashboard_url(shop: str, access_token: str, email: str | None = None) -> str:
    """Build the dashboard hand-off URL carrying the new connection."""
    params = {"shop": shop, "accessToken": access_token}
    if email:
        params["email"] = email
    separator = "&" if "?" in settings.dashboard_url else "?"
    return f"{settings.dashboard_url}{separator}{urlencode(params)}"


def render_connect_page(*, shop: str, auth_url: str, login_url: str) -> str:
    """Render the waiting page that sends the merchant to Shopify.

    The page listens on the notification socket for the shop and flips to
    the connected state when the callback completes in the other window.
    """
    template = _jinja_env.get_template("connect.html")
    return template.render(
        shop=shop,
        auth_url=auth_url,
        login_url=login_url if settings.open_login_first else None,
        ws_url=f"{settings.ws_url}?{urlencode({'shop': shop})}",
        login_delay_ms=settings.login_redirect_delay_ms,
        authorize_delay_ms=settings.authorize_redirect_delay_ms,
    )


def render_connected_page(result: CallbackResult) -> str:
    """Render the success page that forwards the merchant to the dashboard."""
    template = _jinja_env.get_template("connected.html")
    return template.render(
        shop=result.shop,
        saved=result.saved,
        save_result=json.dumps(result.save_result, indent=2),
        dashboard_url=result.dashboard_url,
        redirect_delay_ms=settings.dashboard_redirect_delay_ms,
    )
