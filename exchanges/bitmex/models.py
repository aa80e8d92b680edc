"""
BitMEX Models

Models for the BitMEX REST endpoints in the endpoint table. BitMEX returns bare
JSON (no envelope): arrays for collections, objects for single resources, and
{"error": {"message": ..., "name": ...}} on failure. Timestamps are ISO-8601.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from core.schemas import ExchangeModel


class ErrorDetail(ExchangeModel):
    message: Optional[str] = None
    name: Optional[str] = None


class Error(ExchangeModel):
    """Failure body, e.g. {"error": {"message": "Signature not valid.", "name": "HTTPError"}}"""

    error: Optional[ErrorDetail] = None


class Stats(ExchangeModel):
    """GET /stats item"""

    root_symbol: str
    currency: Optional[str] = None
    volume24h: Optional[float] = None
    turnover24h: Optional[float] = None
    open_interest: Optional[float] = None
    open_value: Optional[float] = None


class Order(ExchangeModel):
    """GET /order item"""

    order_id: str = Field(alias="orderID")
    cl_ord_id: Optional[str] = Field(default=None, alias="clOrdID")
    account: Optional[int] = None
    symbol: Optional[str] = None
    side: Optional[str] = None
    order_qty: Optional[float] = None
    price: Optional[float] = None
    ord_type: Optional[str] = None
    time_in_force: Optional[str] = None
    ord_status: Optional[str] = None
    leaves_qty: Optional[float] = None
    cum_qty: Optional[float] = None
    avg_px: Optional[float] = None
    text: Optional[str] = None
    transact_time: Optional[datetime] = None
    timestamp: Optional[datetime] = None


class Position(ExchangeModel):
    """GET /position item"""

    account: int
    symbol: str
    currency: Optional[str] = None
    current_qty: Optional[float] = None
    leverage: Optional[float] = None
    cross_margin: Optional[bool] = None
    avg_entry_price: Optional[float] = None
    mark_price: Optional[float] = None
    liquidation_price: Optional[float] = None
    unrealised_pnl: Optional[float] = None
    realised_pnl: Optional[float] = None
    is_open: Optional[bool] = None
    timestamp: Optional[datetime] = None


class WalletNetwork(ExchangeModel):
    """GET /wallet/networks item"""

    asset: Optional[str] = None
    token_address: Optional[str] = None
    deposit_enabled: Optional[bool] = None
    withdrawal_enabled: Optional[bool] = None
    withdrawal_fee: Optional[float] = None
    min_fee: Optional[float] = None
    max_fee: Optional[float] = None


class WalletAsset(ExchangeModel):
    """GET /wallet/assets item"""

    asset: str
    currency: Optional[str] = None
    major_currency: Optional[str] = None
    name: Optional[str] = None
    scale: Optional[int] = None
    enabled: Optional[bool] = None
    is_margin_currency: Optional[bool] = None
    networks: List[Any] = Field(default_factory=list)


class User(ExchangeModel):
    """GET /user"""

    id: int
    username: Optional[str] = None
    email: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    country: Optional[str] = None
    created: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class UserMargin(ExchangeModel):
    """GET /user/margin"""

    account: int
    currency: str
    amount: Optional[float] = None
    wallet_balance: Optional[float] = None
    margin_balance: Optional[float] = None
    available_margin: Optional[float] = None
    withdrawable_margin: Optional[float] = None
    unrealised_pnl: Optional[float] = None
    realised_pnl: Optional[float] = None
    risk_value: Optional[float] = None
    margin_leverage: Optional[float] = None
    timestamp: Optional[datetime] = None
