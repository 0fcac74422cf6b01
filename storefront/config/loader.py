"""Env var config loading with pydantic-settings."""

from __future__ import annotations

import signal

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class StorefrontSettings(BaseSettings):
    """Service configuration, overridden by ``STOREFRONT_*`` env vars."""

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    listen_host: str = "0.0.0.0"
    listen_port: int = 8080
    redis_url: str = "redis://localhost:6379"
    redis_pool_size: int = 10
    log_level: str = "info"
    log_json: bool = True

    # CORS: the deployed frontend, plus the local dev server
    client_url: str = ""
    dev_client_url: str = "http://localhost:5173"

    # Request body limit (1000 KiB)
    max_body_bytes: int = 1000 * 1024

    # Which operator denylist from query_operators.yaml to apply
    query_operator_profile: str = "mongodb"

    # CSRF double-submit cookie
    csrf_cookie_name: str = "csrf-token"
    csrf_header_name: str = "X-CSRF-Token"
    csrf_max_age: int = 86400  # 24 hours
    csrf_cookie_secure: bool = True
    csrf_cookie_samesite: str = "none"

    # Bearer credentials
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expiry_seconds: int = 86400  # 24 hours
    auth_cookie_name: str = "auth-token"
    auth_cookie_secure: bool = True
    auth_cookie_samesite: str = "none"

    # Accounts
    bcrypt_rounds: int = 12
    admin_registration_password: str = ""

    @property
    def allowed_origins(self) -> list[str]:
        """Origins allowed by CORS, without trailing slashes."""
        origins = []
        if self.client_url:
            origins.append(self.client_url.rstrip("/"))
        if self.dev_client_url:
            origins.append(self.dev_client_url.rstrip("/"))
        return origins


_settings: StorefrontSettings | None = None


def get_settings() -> StorefrontSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def load_settings() -> StorefrontSettings:
    """Load settings from env vars (env vars override model defaults)."""
    global _settings
    _settings = StorefrontSettings()
    logger.info("config_loaded", port=_settings.listen_port, operator_profile=_settings.query_operator_profile)
    return _settings


def register_reload_handler() -> None:
    """Register SIGHUP handler for hot-reload of configuration."""
    import threading

    if threading.current_thread() is not threading.main_thread():
        logger.debug("skipping_sighup_handler", reason="not main thread")
        return

    def _reload(signum, frame):
        logger.info("config_reload_triggered")
        load_settings()

    try:
        signal.signal(signal.SIGHUP, _reload)
    except (ValueError, AttributeError):
        logger.debug("skipping_sighup_handler", reason="signal not supported")
