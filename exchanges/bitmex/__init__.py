"""
BitMEX Exchange Connector

API Documentation:
    https://www.bitmex.com/api/explorer/

Structure:
    exchanges/bitmex/
    ├── __init__.py          # This file
    ├── request.py           # api-key/api-expires/api-signature signing, bare JSON decoding
    ├── models.py            # REST models
    └── api_client.py        # BitMEXAPIClient + endpoint table
"""

from .api_client import BitMEXAPIClient, BITMEX_ENDPOINTS

__all__ = ["BitMEXAPIClient", "BITMEX_ENDPOINTS"]
