"""
Unit Tests for endpoint tables and generic API client dispatch

These tests verify that:
- Endpoint names are derived from verb + path unless an alias is given
- The Bybit and BitMEX tables expose the expected endpoints
- call() routes public/private endpoints to the right request function
- Private calls without credentials fail before any network I/O

Run with:
    pytest tests/unit/test_api_client.py -v
"""

import pytest

from core.endpoints import AuthMode, Endpoint, EndpointTable, private, public
from core.errors import ConfigurationError
from core.schemas import TimingOptions
from core.signer import sign
from exchanges.bitmex import BITMEX_ENDPOINTS, BitMEXAPIClient
from exchanges.bitmex.models import UserMargin
from exchanges.bybit import BYBIT_ENDPOINTS, BybitAPIClient
from exchanges.bybit.models import InstrumentsInfo, OrderResponse


# ============================================
# Endpoint Tables
# ============================================

class TestEndpointTable:
    """Tests for Endpoint naming and lookup"""

    def test_name_derived_from_method_and_path(self):
        assert public("GET", "/user/margin", UserMargin).name == "get_user_margin"
        assert public("get", "/v5/market/instruments-info", InstrumentsInfo).name == "get_v5_market_instruments_info"

    def test_alias_wins(self):
        endpoint = private("POST", "/v5/order/create", OrderResponse, alias="create_order")
        assert endpoint.name == "create_order"
        assert endpoint.auth is AuthMode.PRIVATE
        assert endpoint.is_private

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            EndpointTable([
                public("GET", "/stats", UserMargin),
                Endpoint("GET", "/stats", UserMargin, AuthMode.PRIVATE),
            ])

    def test_unknown_name_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="Unknown endpoint"):
            BYBIT_ENDPOINTS.get("get_everything")

    def test_bybit_table(self):
        assert set(BYBIT_ENDPOINTS.names()) == {
            "get_instruments_info",
            "get_open_orders",
            "create_order",
            "create_batch_order",
            "cancel_batch_order",
            "cancel_all_orders",
        }
        assert not BYBIT_ENDPOINTS.get("get_instruments_info").is_private
        assert BYBIT_ENDPOINTS.get("create_order").method == "POST"

    def test_bitmex_table(self):
        assert set(BITMEX_ENDPOINTS.names()) == {
            "get_stats",
            "get_order",
            "get_position",
            "get_wallet_assets",
            "get_wallet_networks",
            "get_user",
            "get_user_margin",
        }
        assert [e.name for e in BITMEX_ENDPOINTS if not e.is_private] == ["get_stats"]


# ============================================
# Dispatch
# ============================================

class TestDispatch:
    """Tests for ExchangeAPIClient.call()"""

    @pytest.mark.asyncio
    async def test_public_call_routes_to_perform_public(self, monkeypatch, fake_session_factory):
        client = BybitAPIClient(base_url="https://api.test/")
        client.session = fake_session_factory()
        calls = []

        async def fake_public(session, method, path, params, model):
            calls.append((method, path, params, model))
            return ["ok"]

        monkeypatch.setattr(client, "perform_public", fake_public)

        result = await client.call("get_instruments_info", {"category": "linear"})

        assert result == ["ok"]
        assert calls == [("GET", "/v5/market/instruments-info", {"category": "linear"}, InstrumentsInfo)]
        assert client.base_url == "https://api.test"

    @pytest.mark.asyncio
    async def test_private_call_passes_credentials_and_timing(self, monkeypatch, fake_session_factory, credentials):
        client = BitMEXAPIClient(credentials=credentials, recv_window=10000)
        client.session = fake_session_factory()
        captured = {}

        async def fake_private(session, method, path, params, model, creds, timing):
            captured.update(method=method, path=path, model=model, creds=creds, timing=timing)
            return "margin"

        monkeypatch.setattr(client, "perform_private", fake_private)

        assert await client.call("get_user_margin") == "margin"
        assert captured["path"] == "/user/margin"
        assert captured["model"] is UserMargin
        assert captured["creds"] is credentials
        assert captured["timing"] == TimingOptions(recv_window=10000)

    @pytest.mark.asyncio
    async def test_explicit_timing_is_forwarded(self, monkeypatch, fake_session_factory, credentials):
        client = BybitAPIClient(credentials=credentials)
        client.session = fake_session_factory()
        timing = TimingOptions(timestamp=1700000000000, recv_window=3000)
        captured = {}

        async def fake_private(session, method, path, params, model, creds, timing):
            captured["timing"] = timing
            return []

        monkeypatch.setattr(client, "perform_private", fake_private)

        await client.call("get_open_orders", {"category": "linear"}, timing=timing)
        assert captured["timing"] is timing

    @pytest.mark.asyncio
    async def test_timestamp_only_timing_keeps_client_recv_window(self, fake_session_factory, credentials):
        client = BybitAPIClient(credentials=credentials, recv_window=20000)
        client.session = fake_session_factory(body=b'{"retCode":0,"result":{"list":[]}}')

        await client.call(
            "get_open_orders", {"category": "linear"},
            timing=TimingOptions(timestamp=1700000000000)
        )

        headers = client.session.calls[0]["headers"]
        assert headers["X-BAPI-RECV-WINDOW"] == "20000"
        assert headers["X-BAPI-TIMESTAMP"] == "1700000000000"
        assert headers["X-BAPI-SIGN"] == sign("1700000000000test-key20000category=linear", "test-secret")

    @pytest.mark.asyncio
    async def test_timestamp_only_timing_keeps_client_recv_window_bitmex(self, fake_session_factory, credentials):
        client = BitMEXAPIClient(credentials=credentials, recv_window=20000)
        client.session = fake_session_factory(body=b"[]")

        await client.call("get_order", timing=TimingOptions(timestamp=1700000000000))

        assert client.session.calls[0]["headers"]["api-expires"] == "1700000020"

    @pytest.mark.asyncio
    async def test_private_call_without_credentials_fails_fast(self, fake_session_factory):
        client = BybitAPIClient()
        session = fake_session_factory()
        client.session = session

        with pytest.raises(ConfigurationError, match="no credentials"):
            await client.call("create_order", {"category": "linear"})
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_call_without_session_raises(self):
        client = BitMEXAPIClient()
        with pytest.raises(RuntimeError, match="not initialized"):
            await client.call("get_stats")

    @pytest.mark.asyncio
    async def test_full_private_call_through_bybit_client(self, fake_session_factory, credentials):
        client = BybitAPIClient(credentials=credentials, base_url="https://api-testnet.bybit.com")
        client.session = fake_session_factory(body=b'{"retCode":0,"result":{"orderId":"abc","orderLinkId":"x"}}')

        order = await client.call("create_order", {"category": "linear", "symbol": "BTCUSDT"})

        assert order == OrderResponse(order_id="abc", order_link_id="x")
        call = client.session.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "https://api-testnet.bybit.com/v5/order/create"
        assert set(call["headers"]) >= {"X-BAPI-API-KEY", "X-BAPI-TIMESTAMP", "X-BAPI-RECV-WINDOW", "X-BAPI-SIGN"}


# ============================================
# Session Lifecycle
# ============================================

class TestSessionLifecycle:
    """Tests for the async context manager"""

    @pytest.mark.asyncio
    async def test_context_manager_creates_and_closes_session(self):
        client = BybitAPIClient()
        assert client.session is None

        async with client:
            assert client.session is not None
            assert not client.session.closed

        assert client.session.closed

    @pytest.mark.asyncio
    async def test_close_is_safe_without_session(self):
        await BitMEXAPIClient().close()

    @pytest.mark.parametrize("kwargs", [{"recv_window": 0}, {"recv_window": -1}, {"timeout": 0}])
    def test_non_positive_options_rejected(self, kwargs):
        with pytest.raises(ConfigurationError, match="must be positive"):
            BybitAPIClient(**kwargs)


# ============================================
# Timing Options
# ============================================

class TestTimingOptions:
    """Tests for TimingOptions.resolve()"""

    def test_fills_missing_recv_window_only(self):
        timing = TimingOptions(timestamp=1700000000000).resolve(7000)
        assert timing == TimingOptions(timestamp=1700000000000, recv_window=7000)

    def test_explicit_values_win(self):
        timing = TimingOptions(timestamp=1, recv_window=3000)
        assert timing.resolve(7000) is timing

    def test_missing_timestamp_is_now_in_milliseconds(self):
        timing = TimingOptions(recv_window=3000).resolve(7000)
        assert timing.recv_window == 3000
        assert len(str(timing.timestamp)) == 13
