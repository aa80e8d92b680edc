"""
BitMEX Request Signing & Decoding

Signing (https://www.bitmex.com/app/apiKeysUsage):
    canonical = VERB + path (with /api/v1 prefix and query) + expires + body
    api-signature = hex(HMAC_SHA256(secret, canonical))

    Headers: api-key, api-expires (unix SECONDS), api-signature.
    expires = (timestamp_ms + recv_window_ms) // 1000

Envelope:
    BitMEX answers with bare JSON. A body with a top-level "error" key is a
    failure; otherwise an array decodes to a list and an object to one model.
"""

from typing import Any, Optional, Tuple

import aiohttp
from yarl import URL

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
from exchanges.bitmex.models import Error


EXCHANGE = "bitmex"
BODY_METHODS = ("POST", "PUT")


def unwrap(data: Any) -> Tuple[bool, Any]:
    """BitMEX has no success envelope: any body without "error" is the payload"""
    if isinstance(data, dict) and "error" in data:
        return False, None
    return True, data


def build_request(base_url: str, method: str, path: str, params: Params) -> OutboundRequest:
    request = OutboundRequest(method.upper(), base_url, path)
    if request.method in BODY_METHODS:
        return put_json_body(request, params)
    return append_query_params(request, params)


def expires_at(timing: TimingOptions) -> int:
    """api-expires in unix seconds"""
    timing = timing.resolve(settings.recv_window)
    return (timing.timestamp + timing.recv_window) // 1000


def canonical_string(request: OutboundRequest, expires: int) -> str:
    # BitMEX signs the full path, including the /api/v1 prefix of the base URL
    prefix = URL(request.base_url).path.rstrip("/")
    body = request.body.decode("utf-8") if request.body else ""
    return f"{request.method}{prefix}{request.path_with_query}{expires}{body}"


def sign_request(
    request: OutboundRequest,
    credentials: Credentials,
    timing: TimingOptions
) -> OutboundRequest:
    """
    Add BitMEX auth headers to a request.

    Returns:
        OutboundRequest: New request carrying api-key, api-expires and api-signature
    """
    expires = expires_at(timing)

    request = add_header(request, "api-key", credentials.api_key)
    request = add_header(request, "api-expires", expires)
    return put_header_signature(
        request,
        "api-signature",
        credentials.secret_key,
        lambda r: canonical_string(r, expires)
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
