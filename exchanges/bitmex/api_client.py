"""
BitMEX REST API Client

Async client for the BitMEX REST API (https://www.bitmex.com/api/explorer/).
Endpoint names are derived from verb + path, e.g. GET /user/margin is called
as "get_user_margin".

Usage:
    async with BitMEXAPIClient(credentials=settings.bitmex_credentials()) as client:
        stats = await client.call("get_stats")
        orders = await client.call("get_order", {"symbol": "XBTUSD", "filter": {"open": True}})
"""

from typing import Any

import aiohttp

from core.api_client import ExchangeAPIClient
from core.config import settings
from core.endpoints import EndpointTable, private, public
from core.request import Params
from core.schemas import Credentials, TimingOptions
from exchanges.bitmex import request
from exchanges.bitmex.models import Order, Position, Stats, User, UserMargin, WalletAsset, WalletNetwork


BITMEX_ENDPOINTS = EndpointTable([
    public("GET", "/stats", Stats),
    private("GET", "/order", Order),
    private("GET", "/position", Position),
    private("GET", "/wallet/assets", WalletAsset),
    private("GET", "/wallet/networks", WalletNetwork),
    private("GET", "/user", User),
    private("GET", "/user/margin", UserMargin),
])


class BitMEXAPIClient(ExchangeAPIClient):
    """Async HTTP client for BitMEX"""

    name = "bitmex"
    ENDPOINTS = BITMEX_ENDPOINTS

    @classmethod
    def default_base_url(cls) -> str:
        return settings.bitmex_base_url

    async def perform_public(
        self,
        session: aiohttp.ClientSession,
        method: str,
        path: str,
        params: Params,
        model: Any
    ) -> Any:
        return await request.perform_public(
            session, self.base_url, method, path, params, model,
            timeout=self.timeout
        )

    async def perform_private(
        self,
        session: aiohttp.ClientSession,
        method: str,
        path: str,
        params: Params,
        model: Any,
        credentials: Credentials,
        timing: TimingOptions
    ) -> Any:
        return await request.perform_private(
            session, self.base_url, method, path, params, model, credentials,
            timing=timing,
            timeout=self.timeout
        )
