"""
Bybit Private Stream

Authenticated WebSocket session for Bybit V5 private topics.

WebSocket Documentation:
    https://bybit-exchange.github.io/docs/v5/ws/connect
    https://bybit-exchange.github.io/docs/v5/websocket/private/order

Frames:
    -> {"op": "auth", "args": [api_key, expires_ms, signature]}
       signature = hex(HMAC_SHA256(secret, "GET/realtime" + expires_ms))
    <- {"op": "auth", "success": true, "ret_msg": "", "conn_id": "..."}
    -> {"op": "subscribe", "args": ["order", "execution", ...]}
    <- {"op": "subscribe", "success": true, ...}
    <- {"topic": "order", "creationTime": ..., "data": [{...}, ...]}
    -> {"op": "ping"}
    <- {"op": "pong", ...}

Supported Topics:
    execution, position, order, wallet, greeks
    (category-specific variants such as "order.linear" are dispatched by their
    base name)

Usage:
    class Printer:
        def handle_event(self, event, count):
            print(event.topic, event.data)
            return count + 1

    session = BybitPrivateStream(settings.bybit_credentials(), ["order"], Printer(), 0)
    total = await session.run()
"""

import json
from typing import Any, Dict, Optional, Sequence, Type

from core.config import settings
from core.decoder import decode_models
from core.errors import ConfigurationError, ProtocolViolation
from core.schemas import Credentials
from core.signer import sign
from core.stream import EventConsumer, Frame, FrameKind, StreamEvent, StreamSession
from core.utils.time import current_utc_timestamp
from exchanges.bybit.models import ExecutionEvent, GreeksEvent, OrderEvent, PositionEvent, WalletEvent


TOPIC_MODELS: Dict[str, Type[Any]] = {
    "execution": ExecutionEvent,
    "position": PositionEvent,
    "order": OrderEvent,
    "wallet": WalletEvent,
    "greeks": GreeksEvent,
}


def base_topic(topic: str) -> str:
    """'order.linear' -> 'order'"""
    return topic.split(".", 1)[0]


class BybitPrivateStream(StreamSession):
    """
    Bybit V5 private stream session.

    Attributes:
        auth_expiry_ms: Milliseconds until the auth signature expires

    Notes:
        - One instance handles one connection; build a new one to reconnect
        - Topics are validated at construction
    """

    exchange = "bybit"

    def __init__(
        self,
        credentials: Optional[Credentials],
        topics: Sequence[str],
        consumer: EventConsumer,
        consumer_state: Any = None,
        url: Optional[str] = None,
        ping_interval: Optional[float] = None,
        auth_expiry_ms: Optional[int] = None
    ):
        super().__init__(
            url or settings.bybit_private_ws_url,
            credentials,
            topics,
            consumer,
            consumer_state=consumer_state,
            ping_interval=ping_interval
        )

        unknown = [t for t in self.topics if base_topic(t) not in TOPIC_MODELS]
        if unknown:
            raise ConfigurationError(
                f"Unsupported Bybit private topics: {', '.join(unknown)}. "
                f"Supported: {', '.join(TOPIC_MODELS)}"
            )

        self.auth_expiry_ms = auth_expiry_ms if auth_expiry_ms is not None else settings.ws_auth_expiry_ms
        if self.auth_expiry_ms <= 0:
            raise ConfigurationError(f"auth_expiry_ms must be positive, got {self.auth_expiry_ms}")

    # ============================================
    # Outbound Frames
    # ============================================

    def auth_frame(self, expires: Optional[int] = None) -> str:
        """
        Build the auth frame.

        Args:
            expires: Expiry in ms (default: now + auth_expiry_ms)
        """
        if expires is None:
            expires = current_utc_timestamp(milliseconds=True) + self.auth_expiry_ms
        signature = sign(f"GET/realtime{expires}", self.credentials.secret_key)
        return json.dumps({"op": "auth", "args": [self.credentials.api_key, expires, signature]})

    def subscribe_frame(self) -> str:
        return json.dumps({"op": "subscribe", "args": self.topics})

    def ping_frame(self) -> str:
        return json.dumps({"op": "ping"})

    # ============================================
    # Inbound Frames
    # ============================================

    def parse_frame(self, data: Any) -> Frame:
        if not isinstance(data, dict):
            raise ProtocolViolation("Bybit frame is not a JSON object", frame=data)

        op = data.get("op")
        if op == "auth":
            return Frame(FrameKind.AUTH, success=data.get("success") is True,
                         message=data.get("ret_msg"), raw=data)
        if op == "subscribe":
            return Frame(FrameKind.SUBSCRIBE, success=data.get("success") is True,
                         message=data.get("ret_msg"), raw=data)
        # Private streams answer "pong", public ones echo "ping" with ret_msg "pong"
        if op in ("pong", "ping"):
            return Frame(FrameKind.PONG, raw=data)

        topic = data.get("topic")
        if isinstance(topic, str) and "data" in data:
            return Frame(FrameKind.DATA, topic=topic, data=data["data"], raw=data)

        raise ProtocolViolation("Unrecognized Bybit frame", frame=data)

    def decode_event(self, frame: Frame) -> StreamEvent:
        topic = base_topic(frame.topic)
        model = TOPIC_MODELS.get(topic)
        if model is None:
            raise ProtocolViolation(f"Unknown Bybit topic '{frame.topic}'", frame=frame.raw)
        if not isinstance(frame.data, list):
            raise ProtocolViolation(f"Bybit '{frame.topic}' data is not a list", frame=frame.raw)

        return StreamEvent(topic=topic, data=decode_models(frame.data, model))
