"""
Bybit V5 Request Signing & Decoding

Signing (https://bybit-exchange.github.io/docs/v5/guide#authentication):
    canonical = timestamp + api_key + recv_window + (query string | JSON body)
    X-BAPI-SIGN = hex(HMAC_SHA256(secret, canonical))

    Headers: X-BAPI-API-KEY, X-BAPI-TIMESTAMP (ms), X-BAPI-RECV-WINDOW (ms),
    X-BAPI-SIGN.

Envelope:
    {"retCode": 0, "retMsg": "OK", "result": {...}, "retExtInfo": {...}, "time": ...}

    - retCode 0 and result.list present -> list of models
    - retCode 0 otherwise               -> one model from result
    - anything else                     -> ExchangeError with Error model

retExtInfo can carry per-item codes for batch endpoints; it is not inspected
here, callers get the batch result as returned.
"""

from typing import Any, Optional, Tuple

import aiohttp

from core.config import settings
from core.request import (
    OutboundRequest,
    Params,
    add_header,
    append_query_params,
    perform,
    put_header_signature,
    put_json_body,
)
from core.schemas import Credentials, TimingOptions
from exchanges.bybit.models import Error


EXCHANGE = "bybit"
BODY_METHODS = ("POST", "PUT")


def unwrap(data: Any) -> Tuple[bool, Any]:
    """Recognise a successful Bybit envelope and pick out its payload"""
    if not isinstance(data, dict) or data.get("retCode") != 0 or "result" not in data:
        return False, None

    result = data["result"]
    if isinstance(result, dict) and isinstance(result.get("list"), list):
        return True, result["list"]
    return True, result


def build_request(base_url: str, method: str, path: str, params: Params) -> OutboundRequest:
    """Put params in the query string (GET/DELETE) or a JSON body (POST/PUT)"""
    request = OutboundRequest(method.upper(), base_url, path)
    if request.method in BODY_METHODS:
        return put_json_body(request, params)
    return append_query_params(request, params)


def canonical_string(request: OutboundRequest, api_key: str, timestamp: int, recv_window: int) -> str:
    payload = request.body.decode("utf-8") if request.body else request.query_string
    return f"{timestamp}{api_key}{recv_window}{payload}"


def sign_request(
    request: OutboundRequest,
    credentials: Credentials,
    timing: TimingOptions
) -> OutboundRequest:
    """
    Add Bybit auth headers to a request.

    Args:
        request: Request with query/body already in place
        credentials: API key and secret
        timing: timestamp (ms, None = now) and recv_window (ms, None =
            settings.recv_window)

    Returns:
        OutboundRequest: New request carrying the four X-BAPI-* headers
    """
    timing = timing.resolve(settings.recv_window)
    timestamp = timing.timestamp
    recv_window = timing.recv_window

    request = add_header(request, "X-BAPI-API-KEY", credentials.api_key)
    request = add_header(request, "X-BAPI-TIMESTAMP", timestamp)
    request = add_header(request, "X-BAPI-RECV-WINDOW", recv_window)
    return put_header_signature(
        request,
        "X-BAPI-SIGN",
        credentials.secret_key,
        lambda r: canonical_string(r, credentials.api_key, timestamp, recv_window)
    )


async def perform_public(
    session: aiohttp.ClientSession,
    base_url: str,
    method: str,
    path: str,
    params: Params,
    model: Any,
    timeout: Optional[float] = None
) -> Any:
    request = build_request(base_url, method, path, params)
    return await perform(session, request, model, Error, unwrap, timeout=timeout, exchange=EXCHANGE)


async def perform_private(
    session: aiohttp.ClientSession,
    base_url: str,
    method: str,
    path: str,
    params: Params,
    model: Any,
    credentials: Credentials,
    timing: Optional[TimingOptions] = None,
    timeout: Optional[float] = None
) -> Any:
    request = build_request(base_url, method, path, params)
    request = sign_request(request, credentials, timing or TimingOptions())
    return await perform(session, request, model, Error, unwrap, timeout=timeout, exchange=EXCHANGE)
