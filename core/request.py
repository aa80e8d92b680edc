"""
Request Pipeline

Exchange-agnostic half of every REST call:

    build OutboundRequest -> (sign) -> execute over aiohttp -> decode

Each exchange module supplies the pieces that differ: how the canonical string
is built, which headers carry the signature, and how to recognise a successful
envelope (the `unwrap` function passed to decode_response/perform).

Requests are built through small functions that each return a new
OutboundRequest, so a request is never mutated once it has been signed.

Usage:
    request = OutboundRequest("GET", "https://api.bybit.com", "/v5/market/time")
    request = append_query_params(request, {"category": "linear"})
    result = await perform(session, request, Model, ErrorModel, unwrap, exchange="bybit")

No retries and no caching happen here.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type, Union
from urllib.parse import urlencode

import aiohttp
from yarl import URL

from core.decoder import decode_model, decode_models
from core.errors import DecodeError, ExchangeError, TransportError
from core.logging import log_api_request, log_api_response
from core.signer import Secret, sign


Params = Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None]

# Given parsed JSON, returns (success, payload). A list payload decodes to a
# list of models, anything else to a single model.
Unwrap = Callable[[Any], Tuple[bool, Any]]


# ============================================
# Outbound Request
# ============================================

@dataclass(frozen=True)
class OutboundRequest:
    """
    A fully described HTTP request.

    Attributes:
        method: HTTP verb, uppercase
        base_url: Scheme + host (+ optional prefix), no trailing slash
        path: Path starting with "/"
        query: Ordered (key, value) pairs, values already formatted as strings
        headers: Header name -> value
        body: Raw body bytes (b"" for none)
    """

    method: str
    base_url: str
    path: str
    query: Tuple[Tuple[str, str], ...] = ()
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def query_string(self) -> str:
        """Percent-encoded query string exactly as it goes on the wire"""
        return urlencode(self.query)

    @property
    def path_with_query(self) -> str:
        if self.query:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path_with_query}"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        # e.g. BitMEX filter={"open":true}
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _pairs(params: Params) -> List[Tuple[str, Any]]:
    if params is None:
        return []
    if isinstance(params, Mapping):
        return list(params.items())
    return list(params)


def append_query_params(request: OutboundRequest, params: Params) -> OutboundRequest:
    """
    Append query parameters, keeping their order. None values are skipped.
    """
    extra = tuple(
        (str(key), _format_value(value))
        for key, value in _pairs(params)
        if value is not None
    )
    if not extra:
        return request
    return replace(request, query=request.query + extra)


def put_json_body(request: OutboundRequest, params: Params) -> OutboundRequest:
    """
    Encode params as a compact JSON object body.

    The exact bytes stored here are both signed and sent.
    """
    payload = {key: value for key, value in _pairs(params) if value is not None}
    body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    request = add_header(request, "Content-Type", "application/json")
    return replace(request, body=body)


def add_header(request: OutboundRequest, name: str, value: Any) -> OutboundRequest:
    """Set a header, replacing any previous value for the same name"""
    headers = dict(request.headers)
    headers[name] = str(value)
    return replace(request, headers=headers)


def put_header_signature(
    request: OutboundRequest,
    name: str,
    secret: Secret,
    canonical: Callable[[OutboundRequest], str]
) -> OutboundRequest:
    """
    Sign the request and store the signature in a header.

    Args:
        request: Request with everything that goes into the signature already set
        name: Header carrying the signature
        secret: API secret
        canonical: Builds the exchange's canonical string from the request
    """
    return add_header(request, name, sign(canonical(request), secret))


# ============================================
# Execution
# ============================================

@dataclass(frozen=True)
class Response:
    """Status and raw body of an HTTP response"""

    status: int
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


async def execute(
    session: aiohttp.ClientSession,
    request: OutboundRequest,
    timeout: Optional[float] = None,
    exchange: str = ""
) -> Response:
    """
    Send a request over the shared aiohttp session.

    Args:
        session: Pooled aiohttp ClientSession
        request: Request to send
        timeout: Total deadline in seconds (None = aiohttp default)
        exchange: Exchange name, for logging

    Returns:
        Response: Status and raw body (any status, errors are decoded later)

    Raises:
        TransportError: On connection failures and timeouts
    """
    kwargs: Dict[str, Any] = {"headers": dict(request.headers)}
    if request.body:
        kwargs["data"] = request.body
    if timeout is not None:
        kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

    log_api_request(exchange, request.method, request.path, request.query)
    started = time.monotonic()

    try:
        # The query string is part of the signature, so stop yarl re-encoding it
        async with session.request(
            request.method,
            URL(request.url, encoded=True),
            **kwargs
        ) as response:
            body = await response.read()
            status = response.status
    except asyncio.TimeoutError as e:
        raise TransportError(f"{request.method} {request.path} timed out") from e
    except aiohttp.ClientError as e:
        raise TransportError(f"{request.method} {request.path} failed: {e}") from e

    log_api_response(exchange, request.method, request.path, status, time.monotonic() - started)
    return Response(status=status, body=body)


# ============================================
# Decoding
# ============================================

def decode_response(
    response: Response,
    model: Type[Any],
    error_model: Type[Any],
    unwrap: Unwrap
) -> Any:
    """
    Decode a response into a model, a list of models, or an ExchangeError.

    Steps:
        1. Parse the body as JSON; failure raises DecodeError
        2. HTTP 200 and unwrap() reports success:
           - list payload -> list of model, order preserved
           - otherwise -> one model
        3. Anything else -> ExchangeError(status, error_model decoded from the
           whole body)

    Raises:
        DecodeError: Body is not JSON, or a model fails validation
        ExchangeError: Non-200 status or failed envelope
    """
    try:
        data = json.loads(response.body)
    except ValueError as e:
        raise DecodeError(str(e), raw=response.text, status=response.status) from e

    if response.status == 200:
        ok, payload = unwrap(data)
        if ok:
            if isinstance(payload, list):
                return decode_models(payload, model)
            return decode_model(payload, model)

    raise ExchangeError(response.status, decode_model(data, error_model))


async def perform(
    session: aiohttp.ClientSession,
    request: OutboundRequest,
    model: Type[Any],
    error_model: Type[Any],
    unwrap: Unwrap,
    timeout: Optional[float] = None,
    exchange: str = ""
) -> Any:
    """Execute a request and decode its response (see decode_response)"""
    response = await execute(session, request, timeout=timeout, exchange=exchange)
    return decode_response(response, model, error_model, unwrap)
