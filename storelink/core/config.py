"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API
    api_v1_prefix: str = "/api/v1"
    project_name: str = "StoreLink"
    version: str = "0.1.0"

    # Server
    host: str = "http://localhost:3000"  # Public base URL Shopify redirects back to
    port: int = 3000

    # Shopify app credentials
    shopify_api_key: str = ""
    shopify_api_secret: str = ""
    shopify_scopes: str = "read_products,read_orders"

    # Downstream services
    dashboard_url: str = "http://localhost:5173"
    token_store_url: str = "https://save-shopify-acces-token-201137466588.asia-south1.run.app"
    http_timeout_seconds: float = 10.0

    # OAuth session cookies
    cookie_secure: bool = True
    oauth_cookie_max_age_seconds: int = 600

    # Browser pages (milliseconds)
    open_login_first: bool = True
    login_redirect_delay_ms: int = 1000
    authorize_redirect_delay_ms: int = 3000
    dashboard_redirect_delay_ms: int = 5000

    # Rate limiting
    auth_rate_limit: str = "30/minute"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",  # Dashboard dev server
    ]

    # Error reporting
    sentry_dsn: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def callback_url(self) -> str:
        """OAuth redirect URI registered with Shopify."""
        return f"{self.host.rstrip('/')}/auth/callback"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ws_url(self) -> str:
        """Notification socket endpoint derived from the public host."""
        base = self.host.rstrip("/")
        if base.startswith("https://"):
            base = "wss://" + base.removeprefix("https://")
        elif base.startswith("http://"):
            base = "ws://" + base.removeprefix("http://")
        return f"{base}/ws"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
