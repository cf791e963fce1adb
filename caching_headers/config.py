"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (or a .env file in dev).
Per-page cache durations and feature toggles are NOT settings: they live in
the options store and are edited through the admin settings surface.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEV = "dev"
    PROD = "prod"
    TEST = "test"


class OptionsBackend(StrEnum):
    MEMORY = "memory"
    REDIS = "redis"


_DEFAULT_ADMIN_API_KEY = "dev-admin-key-not-for-production"
_DEFAULT_SESSION_SECRET = "dev-session-secret-not-for-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Application
    # ------------------------------------------------------------------ #
    environment: Environment = Environment.DEV
    debug: bool = False
    log_level: str = Field(
        default="INFO",
        description="Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # ------------------------------------------------------------------ #
    # Options store
    # ------------------------------------------------------------------ #
    options_backend: OptionsBackend = Field(
        default=OptionsBackend.MEMORY,
        description="Where caching options are persisted: memory or redis",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL used when options_backend=redis",
    )
    options_key_prefix: str = Field(
        default="caching_headers:option:",
        description="Prefix prepended to every option key in the store",
    )

    # ------------------------------------------------------------------ #
    # Auth
    # ------------------------------------------------------------------ #
    admin_api_key: SecretStr = Field(
        default=SecretStr(_DEFAULT_ADMIN_API_KEY),
        description="X-API-Key value required by the admin settings surface",
    )
    admin_cookie_name: str = Field(
        default="caching_admin_key",
        description="Cookie carrying the admin key, for browser access to the settings form",
    )
    session_secret: SecretStr = Field(
        default=SecretStr(_DEFAULT_SESSION_SECRET),
        description="Signs the admin session cookie and the settings form CSRF token",
    )
    admin_session_cookie: str = Field(
        default="caching_session",
        description="Cookie holding the signed admin session",
    )
    csrf_time_limit: int = Field(
        default=3600,
        ge=1,
        description="Seconds a rendered settings form stays valid for submission",
    )
    session_cookie_prefix: str = Field(
        default="logged_in_",
        description=(
            "Cookies whose name starts with this prefix mark the visitor as "
            "authenticated. Authenticated responses are never shared-cached."
        ),
    )

    # ------------------------------------------------------------------ #
    # Page classification
    # ------------------------------------------------------------------ #
    home_paths: list[str] = Field(
        default=["/"],
        description="Exact paths served as the home / front page",
    )
    single_path_prefixes: list[str] = Field(
        default=["/posts/", "/pages/"],
        description="Path prefixes of single posts and static pages",
    )
    archive_path_prefixes: list[str] = Field(
        default=["/category/", "/tag/", "/author/", "/archives/"],
        description="Path prefixes of archive listings",
    )
    bypass_path_prefixes: list[str] = Field(
        default=["/admin", "/api", "/health", "/docs", "/redoc", "/openapi.json"],
        description="Paths that never receive caching headers (admin, API, probes)",
    )

    # ------------------------------------------------------------------ #
    # Header format
    # ------------------------------------------------------------------ #
    quote_etag: bool = Field(
        default=False,
        description=(
            "Emit the Etag as a quoted entity-tag (\"<digest>\"). Off by default "
            "to stay byte-compatible with existing proxy configurations."
        ),
    )

    # ------------------------------------------------------------------ #
    # Derived / Computed
    # ------------------------------------------------------------------ #
    @model_validator(mode="after")
    def _set_debug_from_env(self) -> Settings:
        if self.environment == Environment.DEV:
            self.debug = True
        return self

    @model_validator(mode="after")
    def _validate_production_secrets(self) -> Settings:
        """Refuse to start in production with the development secrets."""
        if self.environment != Environment.PROD:
            return self

        admin_key = self.admin_api_key.get_secret_value()
        if not admin_key or admin_key == _DEFAULT_ADMIN_API_KEY:
            raise ValueError(
                "PRODUCTION STARTUP BLOCKED -- ADMIN_API_KEY is unset or uses the "
                "development default. Set a strong, random key for production."
            )

        session_secret = self.session_secret.get_secret_value()
        if not session_secret or session_secret == _DEFAULT_SESSION_SECRET:
            raise ValueError(
                "PRODUCTION STARTUP BLOCKED -- SESSION_SECRET is unset or uses the "
                "development default. Set a strong, random secret for production."
            )
        return self

    @property
    def is_dev(self) -> bool:
        return self.environment in (Environment.DEV, Environment.TEST)

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PROD


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings singleton.

    Use FastAPI dependency injection via Depends(get_settings) in endpoints,
    or call directly in non-request contexts (startup, scripts).
    """
    return Settings()
