"""
Configuration Management Module

Loads client configuration from environment variables (.env file) using
Pydantic Settings: exchange base URLs, credentials, signing windows, stream
keepalive and logging.

Credentials are optional. Public endpoints work without them; private
endpoints and private streams fail fast with ConfigurationError when the
matching key/secret pair is missing.

Usage:
    from core.config import settings

    print(settings.bybit_base_url)
    creds = settings.bybit_credentials()  # Credentials or None
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.schemas import Credentials, OptionalFloat


class Settings(BaseSettings):
    """
    Application Settings

    Values are loaded from environment variables or the .env file
    (case-insensitive, unknown keys ignored).

    Attributes:
        bybit_base_url: Bybit REST base URL
        bybit_private_ws_url: Bybit private WebSocket URL
        bybit_api_key: Bybit API key (optional)
        bybit_secret_key: Bybit API secret (optional)
        bitmex_base_url: BitMEX REST base URL (including /api/v1)
        bitmex_api_key: BitMEX API key (optional)
        bitmex_secret_key: BitMEX API secret (optional)
        recv_window: Default signature validity window in milliseconds
        request_timeout: REST deadline in seconds (None = transport default)
        ws_ping_interval: Seconds between keepalive pings on streams
        ws_auth_expiry_ms: How far in the future stream auth signatures expire
        environment: Current environment (development, production)
        log_level: Logging level
    """

    # ============================================
    # Bybit Configuration
    # ============================================

    bybit_base_url: str = Field(
        default="https://api-testnet.bybit.com",
        description="Bybit REST API base URL"
    )

    bybit_private_ws_url: str = Field(
        default="wss://stream-testnet.bybit.com/v5/private",
        description="Bybit private WebSocket URL"
    )

    bybit_api_key: str = Field(
        default="",
        description="Bybit API key (required for private endpoints)"
    )

    bybit_secret_key: str = Field(
        default="",
        description="Bybit secret key (required for private endpoints)"
    )

    # ============================================
    # BitMEX Configuration
    # ============================================

    bitmex_base_url: str = Field(
        default="https://www.bitmex.com/api/v1",
        description="BitMEX REST API base URL"
    )

    bitmex_api_key: str = Field(
        default="",
        description="BitMEX API key (required for private endpoints)"
    )

    bitmex_secret_key: str = Field(
        default="",
        description="BitMEX secret key (required for private endpoints)"
    )

    # ============================================
    # Signing & Transport
    # ============================================

    recv_window: int = Field(
        default=5000,
        description="Signature validity window in milliseconds"
    )

    request_timeout: OptionalFloat = Field(
        default=None,
        description="REST request deadline in seconds (empty = aiohttp default)"
    )

    ws_ping_interval: float = Field(
        default=30,
        description="Seconds between keepalive pings on stream sessions"
    )

    ws_auth_expiry_ms: int = Field(
        default=5000,
        description="Milliseconds until a stream auth signature expires"
    )

    # ============================================
    # Application Configuration
    # ============================================

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    # ============================================
    # Credential Helpers
    # ============================================

    def bybit_credentials(self) -> Optional[Credentials]:
        """
        Build Bybit credentials from settings.

        Returns:
            Credentials if both key and secret are set, None otherwise
        """
        return _credentials(self.bybit_api_key, self.bybit_secret_key)

    def bitmex_credentials(self) -> Optional[Credentials]:
        """
        Build BitMEX credentials from settings.

        Returns:
            Credentials if both key and secret are set, None otherwise
        """
        return _credentials(self.bitmex_api_key, self.bitmex_secret_key)


def _credentials(api_key: str, secret_key: str) -> Optional[Credentials]:
    if not api_key or not secret_key:
        return None
    return Credentials(api_key=api_key, secret_key=secret_key)


# ============================================
# Global Settings Instance
# ============================================

settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Optional[Settings] = None) -> None:
    """
    Validate configuration settings.

    Args:
        config: Settings to validate (defaults to the global settings)

    Raises:
        ValueError: If a setting is missing or invalid
    """
    # logging.py imports config.py, so import the logger lazily
    from core.logging import logger

    if config is None:
        config = settings

    for name in ("bybit_base_url", "bitmex_base_url"):
        url = getattr(config, name)
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"{name.upper()} must be an http(s) URL, got '{url}'")

    if not config.bybit_private_ws_url.startswith(("ws://", "wss://")):
        raise ValueError(
            f"BYBIT_PRIVATE_WS_URL must be a ws(s) URL, got '{config.bybit_private_ws_url}'"
        )

    if config.recv_window <= 0:
        raise ValueError(f"Invalid RECV_WINDOW: {config.recv_window}. Must be positive")

    if config.request_timeout is not None and config.request_timeout <= 0:
        raise ValueError(f"Invalid REQUEST_TIMEOUT: {config.request_timeout}. Must be positive")

    if config.ws_ping_interval <= 0:
        raise ValueError(f"Invalid WS_PING_INTERVAL: {config.ws_ping_interval}. Must be positive")

    if config.ws_auth_expiry_ms <= 0:
        raise ValueError(f"Invalid WS_AUTH_EXPIRY_MS: {config.ws_auth_expiry_ms}. Must be positive")

    # Key and secret must be configured together
    for exchange in ("bybit", "bitmex"):
        key = getattr(config, f"{exchange}_api_key")
        secret = getattr(config, f"{exchange}_secret_key")
        if bool(key) != bool(secret):
            raise ValueError(
                f"{exchange.upper()}_API_KEY and {exchange.upper()}_SECRET_KEY "
                f"must be set together"
            )

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    logger.info("Configuration validated successfully")
    logger.info(f"Bybit API: {config.bybit_base_url} (credentials: {'yes' if config.bybit_api_key else 'no'})")
    logger.info(f"Bybit private stream: {config.bybit_private_ws_url}")
    logger.info(f"BitMEX API: {config.bitmex_base_url} (credentials: {'yes' if config.bitmex_api_key else 'no'})")
    logger.info(f"Recv window: {config.recv_window}ms | Ping interval: {config.ws_ping_interval}s")
    logger.info(f"Log level: {config.log_level.upper()}")
