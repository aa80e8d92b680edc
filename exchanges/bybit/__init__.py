"""
Bybit Exchange Connector

API Documentation:
    https://bybit-exchange.github.io/docs/v5/intro

Structure:
    exchanges/bybit/
    ├── __init__.py          # This file
    ├── request.py           # X-BAPI-* signing and retCode envelope decoding
    ├── models.py            # REST and private stream models
    ├── api_client.py        # BybitAPIClient + endpoint table
    └── ws_client.py         # BybitPrivateStream
"""

from .api_client import BybitAPIClient, BYBIT_ENDPOINTS
from .ws_client import BybitPrivateStream, TOPIC_MODELS

__all__ = ["BybitAPIClient", "BYBIT_ENDPOINTS", "BybitPrivateStream", "TOPIC_MODELS"]
