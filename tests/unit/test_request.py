"""
Unit Tests for the generic Request Pipeline

These tests verify that:
- Requests are built immutably with ordered query parameters
- execute() sends exactly what was built and maps transport failures
- decode_response() follows the list / object / error / parse-error rules

Run with:
    pytest tests/unit/test_request.py -v
"""

import asyncio
import json

import aiohttp
import pytest

from core.errors import DecodeError, ExchangeError, TransportError
from core.request import (
    OutboundRequest,
    Response,
    add_header,
    append_query_params,
    decode_response,
    execute,
    put_header_signature,
    put_json_body,
)
from core.schemas import ExchangeModel
from core.signer import sign


class Model(ExchangeModel):
    a: int


class ErrorModel(ExchangeModel):
    code: int = 0
    msg: str = ""


def unwrap_ok(data):
    """Envelope {"ok": bool, "payload": ...}"""
    return data.get("ok") is True, data.get("payload")


# ============================================
# Request Building
# ============================================

class TestRequestBuilding:
    """Tests for OutboundRequest builders"""

    def test_query_params_keep_order(self):
        request = OutboundRequest("GET", "https://api.test", "/v1/x")
        request = append_query_params(request, [("symbol", "BTCUSDT"), ("category", "linear")])
        request = append_query_params(request, {"limit": 10})

        assert request.query_string == "symbol=BTCUSDT&category=linear&limit=10"
        assert request.url == "https://api.test/v1/x?symbol=BTCUSDT&category=linear&limit=10"

    def test_query_params_formatting(self):
        request = append_query_params(
            OutboundRequest("GET", "https://api.test", "/x"),
            {"reverse": True, "skip": None, "filter": {"open": True}}
        )
        assert request.query == (("reverse", "true"), ("filter", '{"open":true}'))

    def test_no_params_leaves_path_bare(self):
        request = append_query_params(OutboundRequest("GET", "https://api.test", "/x"), None)
        assert request.url == "https://api.test/x"
        assert request.path_with_query == "/x"

    def test_builders_do_not_mutate_original(self):
        original = OutboundRequest("GET", "https://api.test", "/x")
        updated = add_header(original, "X-Test", 1)

        assert original.headers == {}
        assert updated.headers == {"X-Test": "1"}

    def test_add_header_replaces_existing(self):
        request = add_header(OutboundRequest("GET", "https://api.test", "/x"), "X-Test", "a")
        request = add_header(request, "X-Test", "b")
        assert request.headers == {"X-Test": "b"}

    def test_json_body_is_compact(self):
        request = put_json_body(
            OutboundRequest("POST", "https://api.test", "/x"),
            {"symbol": "BTCUSDT", "qty": "0.1", "price": None}
        )
        assert request.body == b'{"symbol":"BTCUSDT","qty":"0.1"}'
        assert request.headers["Content-Type"] == "application/json"

    def test_header_signature_uses_canonical_builder(self):
        request = append_query_params(OutboundRequest("GET", "https://api.test", "/x"), {"a": 1})
        signed = put_header_signature(request, "X-Sign", "secret", lambda r: f"{r.method}{r.query_string}")
        assert signed.headers["X-Sign"] == sign("GETa=1", "secret")


# ============================================
# Execution
# ============================================

class TestExecute:
    """Tests for execute()"""

    @pytest.mark.asyncio
    async def test_sends_built_request(self, fake_session_factory):
        session = fake_session_factory(status=200, body=b'{"ok": true}')
        request = put_json_body(OutboundRequest("POST", "https://api.test", "/x"), {"a": 1})
        request = append_query_params(request, {"b": "x y"})

        response = await execute(session, request)

        assert response == Response(status=200, body=b'{"ok": true}')
        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "https://api.test/x?b=x+y"
        assert call["data"] == b'{"a":1}'
        assert call["headers"] == {"Content-Type": "application/json"}
        assert "timeout" not in call

    @pytest.mark.asyncio
    async def test_timeout_is_passed_to_transport(self, fake_session_factory):
        session = fake_session_factory()
        await execute(session, OutboundRequest("GET", "https://api.test", "/x"), timeout=2.5)
        assert session.calls[0]["timeout"].total == 2.5

    @pytest.mark.asyncio
    async def test_client_error_becomes_transport_error(self, fake_session_factory):
        session = fake_session_factory(exc=aiohttp.ClientConnectionError("refused"))
        with pytest.raises(TransportError, match="refused"):
            await execute(session, OutboundRequest("GET", "https://api.test", "/x"))

    @pytest.mark.asyncio
    async def test_timeout_becomes_transport_error(self, fake_session_factory):
        session = fake_session_factory(exc=asyncio.TimeoutError())
        with pytest.raises(TransportError, match="timed out"):
            await execute(session, OutboundRequest("GET", "https://api.test", "/x"))


# ============================================
# Decoding
# ============================================

class TestDecodeResponse:
    """Tests for decode_response()"""

    def test_list_payload_decodes_to_list_in_order(self):
        body = json.dumps({"ok": True, "payload": [{"a": 3}, {"a": 1}, {"a": 2}]}).encode()
        result = decode_response(Response(200, body), Model, ErrorModel, unwrap_ok)
        assert result == [Model(a=3), Model(a=1), Model(a=2)]

    def test_object_payload_decodes_to_single_model(self):
        body = json.dumps({"ok": True, "payload": {"a": 1}}).encode()
        assert decode_response(Response(200, body), Model, ErrorModel, unwrap_ok) == Model(a=1)

    def test_failed_envelope_is_exchange_error_with_whole_body(self):
        body = json.dumps({"ok": False, "code": 7, "msg": "nope"}).encode()
        with pytest.raises(ExchangeError) as exc_info:
            decode_response(Response(200, body), Model, ErrorModel, unwrap_ok)

        assert exc_info.value.status == 200
        assert exc_info.value.error == ErrorModel(code=7, msg="nope")

    def test_non_200_is_exchange_error_even_with_ok_envelope(self):
        body = json.dumps({"ok": True, "payload": {"a": 1}}).encode()
        with pytest.raises(ExchangeError) as exc_info:
            decode_response(Response(503, body), Model, ErrorModel, unwrap_ok)
        assert exc_info.value.status == 503

    def test_unparseable_success_body_is_decode_error(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_response(Response(200, b"not json"), Model, ErrorModel, unwrap_ok)

        assert exc_info.value.status == 200
        assert exc_info.value.raw == "not json"
        assert exc_info.value.reason

    def test_unparseable_error_body_is_decode_error_not_exchange_error(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_response(Response(502, b"<html>Bad Gateway</html>"), Model, ErrorModel, unwrap_ok)
        assert exc_info.value.status == 502

    def test_payload_that_fails_validation_is_decode_error(self):
        body = json.dumps({"ok": True, "payload": {"a": "not-an-int"}}).encode()
        with pytest.raises(DecodeError) as exc_info:
            decode_response(Response(200, body), Model, ErrorModel, unwrap_ok)
        assert exc_info.value.field == "a"
