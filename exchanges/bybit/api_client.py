"""
Bybit REST API Client

Async client for the Bybit V5 REST API. Endpoints are declared in a table and
called by name through ExchangeAPIClient.call(); signing and envelope decoding
live in exchanges/bybit/request.py.

API Documentation:
    https://bybit-exchange.github.io/docs/v5/intro

Usage:
    async with BybitAPIClient(credentials=settings.bybit_credentials()) as client:
        instruments = await client.call("get_instruments_info", {"category": "linear"})
        orders = await client.call("get_open_orders", {"category": "linear", "symbol": "BTCUSDT"})
"""

from typing import Any

import aiohttp

from core.api_client import ExchangeAPIClient
from core.config import settings
from core.endpoints import EndpointTable, private, public
from core.request import Params
from core.schemas import Credentials, TimingOptions
from exchanges.bybit import request
from exchanges.bybit.models import InstrumentsInfo, OrderResponse


BYBIT_ENDPOINTS = EndpointTable([
    public("GET", "/v5/market/instruments-info", InstrumentsInfo, alias="get_instruments_info"),
    private("GET", "/v5/order/realtime", OrderResponse, alias="get_open_orders"),
    private("POST", "/v5/order/create", OrderResponse, alias="create_order"),
    private("POST", "/v5/order/create-batch", OrderResponse, alias="create_batch_order"),
    private("POST", "/v5/order/cancel-batch", OrderResponse, alias="cancel_batch_order"),
    private("POST", "/v5/order/cancel-all", OrderResponse, alias="cancel_all_orders"),
])


class BybitAPIClient(ExchangeAPIClient):
    """
    Async HTTP client for Bybit V5.

    Attributes:
        name: "bybit"
        ENDPOINTS: Bybit endpoint table
        base_url: REST base URL (default: settings.bybit_base_url)
        session: Shared aiohttp ClientSession (created by `async with`)

    Example:
        >>> async with BybitAPIClient(credentials=creds) as client:
        ...     result = await client.call("create_order", {
        ...         "category": "linear", "symbol": "BTCUSDT", "side": "Buy",
        ...         "orderType": "Market", "qty": "0.001",
        ...     })
        ...     print(result.order_id)
    """

    name = "bybit"
    ENDPOINTS = BYBIT_ENDPOINTS

    @classmethod
    def default_base_url(cls) -> str:
        return settings.bybit_base_url

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
