"""
Bybit V5 Models

REST response and private-stream event models. Field names follow Bybit's
camelCase wire names through ExchangeModel's alias generator; numeric values
arrive as strings and are coerced, with "" treated as "not set".

REST:
    - Error: Envelope of a failed call (retCode != 0)
    - InstrumentsInfo: /v5/market/instruments-info list item
    - OrderResponse: Order endpoints (create/cancel return ids only,
      /v5/order/realtime returns full orders)

Private stream (wss://stream.bybit.com/v5/private):
    - ExecutionEvent, PositionEvent, OrderEvent, WalletEvent, GreeksEvent
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from core.schemas import ExchangeModel, OptionalFloat, OptionalTimestamp


# ============================================
# REST Models
# ============================================

class Error(ExchangeModel):
    """Failed envelope, e.g. {"retCode": 10001, "retMsg": "params error"}"""

    ret_code: Optional[int] = None
    ret_msg: Optional[str] = None
    ret_ext_info: Optional[Dict[str, Any]] = None
    time: Optional[int] = None


class InstrumentsInfo(ExchangeModel):
    """One instrument from GET /v5/market/instruments-info"""

    symbol: str
    contract_type: Optional[str] = None
    status: Optional[str] = None
    base_coin: Optional[str] = None
    quote_coin: Optional[str] = None
    settle_coin: Optional[str] = None
    launch_time: OptionalTimestamp = None
    price_scale: Optional[str] = None
    funding_interval: Optional[int] = None
    leverage_filter: Optional[Dict[str, Any]] = None
    price_filter: Optional[Dict[str, Any]] = None
    lot_size_filter: Optional[Dict[str, Any]] = None


class OrderResponse(ExchangeModel):
    """
    Order as returned by the order endpoints.

    create/cancel only return orderId and orderLinkId; the remaining fields are
    filled for GET /v5/order/realtime.
    """

    order_id: Optional[str] = None
    order_link_id: Optional[str] = None
    symbol: Optional[str] = None
    side: Optional[str] = None
    order_type: Optional[str] = None
    price: OptionalFloat = None
    qty: OptionalFloat = None
    order_status: Optional[str] = None
    avg_price: OptionalFloat = None
    cum_exec_qty: OptionalFloat = None
    time_in_force: Optional[str] = None
    reduce_only: Optional[bool] = None
    created_time: OptionalTimestamp = None
    updated_time: OptionalTimestamp = None


# ============================================
# Private Stream Events
# ============================================

class ExecutionEvent(ExchangeModel):
    """Fill notification (topic: execution)"""

    category: Optional[str] = None
    symbol: str
    exec_id: str
    order_id: Optional[str] = None
    order_link_id: Optional[str] = None
    side: Optional[str] = None
    exec_price: OptionalFloat = None
    exec_qty: OptionalFloat = None
    exec_type: Optional[str] = None
    exec_fee: OptionalFloat = None
    fee_rate: OptionalFloat = None
    is_maker: Optional[bool] = None
    exec_time: OptionalTimestamp = None


class PositionEvent(ExchangeModel):
    """Position update (topic: position)"""

    category: Optional[str] = None
    symbol: str
    side: Optional[str] = None
    size: OptionalFloat = None
    position_idx: Optional[int] = None
    position_value: OptionalFloat = None
    entry_price: OptionalFloat = None
    mark_price: OptionalFloat = None
    leverage: OptionalFloat = None
    liq_price: OptionalFloat = None
    unrealised_pnl: OptionalFloat = None
    cum_realised_pnl: OptionalFloat = None
    position_status: Optional[str] = None
    updated_time: OptionalTimestamp = None


class OrderEvent(ExchangeModel):
    """Order status update (topic: order)"""

    category: Optional[str] = None
    symbol: str
    order_id: str
    order_link_id: Optional[str] = None
    side: Optional[str] = None
    order_type: Optional[str] = None
    price: OptionalFloat = None
    qty: OptionalFloat = None
    order_status: Optional[str] = None
    avg_price: OptionalFloat = None
    cum_exec_qty: OptionalFloat = None
    leaves_qty: OptionalFloat = None
    time_in_force: Optional[str] = None
    reduce_only: Optional[bool] = None
    reject_reason: Optional[str] = None
    created_time: OptionalTimestamp = None
    updated_time: OptionalTimestamp = None


class WalletCoin(ExchangeModel):
    coin: str
    equity: OptionalFloat = None
    wallet_balance: OptionalFloat = None
    available_to_withdraw: OptionalFloat = None
    usd_value: OptionalFloat = None
    unrealised_pnl: OptionalFloat = None
    cum_realised_pnl: OptionalFloat = None


class WalletEvent(ExchangeModel):
    """Wallet update (topic: wallet)"""

    account_type: Optional[str] = None
    account_im_rate: OptionalFloat = Field(default=None, alias="accountIMRate")
    account_mm_rate: OptionalFloat = Field(default=None, alias="accountMMRate")
    total_equity: OptionalFloat = None
    total_wallet_balance: OptionalFloat = None
    total_margin_balance: OptionalFloat = None
    total_available_balance: OptionalFloat = None
    total_perp_upl: OptionalFloat = Field(default=None, alias="totalPerpUPL")
    total_initial_margin: OptionalFloat = None
    total_maintenance_margin: OptionalFloat = None
    coin: List[WalletCoin] = Field(default_factory=list)


class GreeksEvent(ExchangeModel):
    """Options greeks per base coin (topic: greeks)"""

    base_coin: str
    total_delta: OptionalFloat = None
    total_gamma: OptionalFloat = None
    total_vega: OptionalFloat = None
    total_theta: OptionalFloat = None
