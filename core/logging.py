"""
Unified Logging Configuration

Centralized logging for the whole package. Modules get a child logger through
get_logger(__name__) instead of using print().

Usage:
    from core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Connected to Bybit private stream")

Log Levels:
    DEBUG    - Request/response and frame-level detail
    INFO     - Session lifecycle (connected, authenticated, subscribed)
    WARNING  - Frames dropped or ignored, protocol oddities
    ERROR    - Failed calls, rejected handshakes, transport failures

Credentials are never logged: request helpers below log method, path, query
parameters and status only, never headers or bodies that carry signatures.

Configuration:
    Log level comes from the LOG_LEVEL setting (.env), default INFO.
"""

import logging
import sys
from typing import Optional

from core.config import settings


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the package logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: The "exchangezoo" logger

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Client started")
        2024-01-01 12:00:00 [INFO] exchangezoo: Client started
    """
    if log_format is None:
        format_parts = []
        if include_timestamp:
            format_parts.append("%(asctime)s")
        format_parts.append("[%(levelname)s]")
        if include_module:
            format_parts.append("%(name)s:")
        format_parts.append("%(message)s")
        log_format = " ".join(format_parts)

    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    logger = logging.getLogger("exchangezoo")
    logger.setLevel(level)
    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

logger = setup_logging(log_level=settings.log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger for a module.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: e.g. "exchangezoo.exchanges.bybit.ws_client"
    """
    return logging.getLogger(f"exchangezoo.{name}")


def set_log_level(level: str) -> None:
    """
    Change the log level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(exchange: str, method: str, path: str, params=None) -> None:
    """
    Log an outbound REST request.

    Example:
        >>> log_api_request("bybit", "GET", "/v5/order/realtime", [("category", "linear")])
        [DEBUG] API Request: bybit GET /v5/order/realtime | Params: [('category', 'linear')]
    """
    if params:
        logger.debug(f"API Request: {exchange} {method} {path} | Params: {params}")
    else:
        logger.debug(f"API Request: {exchange} {method} {path}")


def log_api_response(exchange: str, method: str, path: str, status: int, response_time: float = None) -> None:
    """
    Log a REST response with status and timing.

    Example:
        >>> log_api_response("bitmex", "GET", "/order", 200, 0.342)
        [DEBUG] API Response: bitmex GET /order | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {exchange} {method} {path} | Status: {status}{time_str}")


def log_websocket_event(exchange: str, event: str, details: str = None) -> None:
    """
    Log a stream session lifecycle event.

    Events named "error" are logged at ERROR level, everything else at INFO.

    Example:
        >>> log_websocket_event("bybit", "authenticated")
        [INFO] WebSocket: bybit authenticated
    """
    details_str = f" | {details}" if details else ""
    level = logging.ERROR if event == "error" else logging.INFO
    logger.log(level, f"WebSocket: {exchange} {event}{details_str}")
