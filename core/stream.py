"""
Stream Session — Authenticated WebSocket State Machine

One StreamSession is one WebSocket connection's lifecycle:

    CONNECTING --connect/send auth--> AUTHENTICATING
    AUTHENTICATING --auth ok/send subscribe--> SUBSCRIBING   (via AUTHENTICATED)
    AUTHENTICATING --auth rejected--> ERRORED (AuthFailure)
    SUBSCRIBING --subscribe ok--> STREAMING
    SUBSCRIBING --subscribe rejected--> ERRORED (ProtocolViolation)
    STREAMING --topic data--> consumer.handle_event(...) --> STREAMING
    any --transport closed--> CLOSED,  any --transport error--> ERRORED (TransportError)
    any --close()--> CLOSED

Subscribe is sent exactly once, only in reaction to the auth ack. Topic data is
only delivered after the subscribe ack. Frames are handled one at a time in
arrival order, so the consumer is never called concurrently with itself.

Reconnection is not done here: when a session ends, its owner decides whether
to build a new one.

A keepalive task sends the exchange's ping frame every `ping_interval` seconds
while the session is authenticating, subscribing or streaming.

Non-fatal problems (malformed JSON, unknown frames, payloads that fail to
decode) are logged and, once streaming, handed to the consumer as StreamError
events. The session keeps going.

Exchange subclasses provide the frames (auth, subscribe, ping) and the parsing
of inbound frames; everything else lives here.
"""

import asyncio
import inspect
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

import websockets
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from core.config import settings
from core.errors import (
    AuthFailure,
    ConfigurationError,
    DecodeError,
    ExchangeZooError,
    ProtocolViolation,
    TransportError,
)
from core.logging import get_logger, log_websocket_event
from core.schemas import Credentials


# ============================================
# States, Frames & Events
# ============================================

class SessionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    CLOSED = "closed"
    ERRORED = "errored"


KEEPALIVE_STATES = (
    SessionState.AUTHENTICATING,
    SessionState.SUBSCRIBING,
    SessionState.STREAMING,
)


class FrameKind(str, Enum):
    AUTH = "auth"
    SUBSCRIBE = "subscribe"
    PONG = "pong"
    DATA = "data"


@dataclass(frozen=True)
class Frame:
    """An inbound frame classified by the exchange subclass"""

    kind: FrameKind
    success: bool = True
    topic: Optional[str] = None
    data: Any = None
    message: Optional[str] = None
    raw: Any = None


@dataclass(frozen=True)
class StreamEvent:
    """
    Decoded topic data.

    Attributes:
        topic: Base topic name ("order", "execution", ...)
        data: Models decoded from the frame's data list, in frame order
    """

    topic: str
    data: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class StreamError:
    """A non-fatal error delivered through the consumer channel"""

    error: ExchangeZooError


@runtime_checkable
class EventConsumer(Protocol):
    """
    Receives stream events.

    handle_event gets the event and the current consumer state and returns the
    new consumer state. It may be a plain method or a coroutine.
    """

    def handle_event(self, event: Any, consumer_state: Any) -> Any:
        ...


# ============================================
# Stream Session
# ============================================

class StreamSession(ABC):
    """
    Base class for authenticated stream sessions.

    Attributes:
        exchange: Exchange identifier, for logging
        url: WebSocket URL
        credentials: API credentials used for the auth frame
        topics: Topics to subscribe to
        consumer: EventConsumer receiving StreamEvent / StreamError
        consumer_state: Opaque consumer-owned state, replaced after each event
        state: Current SessionState
        error: Terminal error when state is ERRORED
        ping_interval: Seconds between keepalive pings

    Example:
        >>> session = BybitPrivateStream(creds, ["order", "execution"], consumer)
        >>> final_state = await session.run()
    """

    exchange: str = ""

    def __init__(
        self,
        url: str,
        credentials: Optional[Credentials],
        topics: Sequence[str],
        consumer: EventConsumer,
        consumer_state: Any = None,
        ping_interval: Optional[float] = None
    ):
        if credentials is None:
            raise ConfigurationError(f"{self.exchange}: private stream requires credentials")
        if not topics:
            raise ConfigurationError(f"{self.exchange}: at least one topic is required")
        if not isinstance(consumer, EventConsumer):
            raise ConfigurationError(f"{self.exchange}: consumer must implement handle_event(event, state)")

        self.url = url
        self.credentials = credentials
        self.topics = list(topics)
        self.consumer = consumer
        self.consumer_state = consumer_state
        self.ping_interval = ping_interval if ping_interval is not None else settings.ws_ping_interval
        if self.ping_interval <= 0:
            raise ConfigurationError(f"{self.exchange}: ping_interval must be positive, got {self.ping_interval}")

        self.state = SessionState.CONNECTING
        self.error: Optional[ExchangeZooError] = None
        self.ws = None
        self._keepalive_task: Optional[asyncio.Task] = None

        self.logger = get_logger(__name__)

    # ============================================
    # Exchange-specific Frames
    # ============================================

    @abstractmethod
    def auth_frame(self) -> str:
        """Text frame authenticating the connection"""

    @abstractmethod
    def subscribe_frame(self) -> str:
        """Text frame subscribing to self.topics"""

    @abstractmethod
    def ping_frame(self) -> str:
        """Text frame sent by the keepalive task"""

    @abstractmethod
    def parse_frame(self, data: Any) -> Frame:
        """
        Classify a parsed inbound frame.

        Raises:
            ProtocolViolation: If the frame matches no known shape
        """

    @abstractmethod
    def decode_event(self, frame: Frame) -> StreamEvent:
        """
        Decode a DATA frame into a StreamEvent.

        Raises:
            DecodeError: If an item fails to decode
            ProtocolViolation: If the topic is unknown
        """

    # ============================================
    # Context Manager
    # ============================================

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ============================================
    # Lifecycle
    # ============================================

    async def connect(self) -> None:
        """
        Open the transport, send the auth frame and start the keepalive.

        Raises:
            RuntimeError: If this session was already started
            TransportError: If the connection can't be opened
        """
        if self.state is not SessionState.CONNECTING:
            raise RuntimeError(
                f"Session is {self.state.value}; create a new session to reconnect"
            )

        self.logger.info(f"Connecting to {self.url}")
        try:
            # Keepalive is done with application-level pings
            self.ws = await websockets.connect(self.url, ping_interval=None)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise TransportError(f"{self.exchange}: cannot connect to {self.url}: {e}") from e

        log_websocket_event(self.exchange, "connected", self.url)

        for frame in self.on_connect():
            await self._send(frame)

        self._keepalive_task = asyncio.create_task(self._keepalive())

    async def run(self) -> Any:
        """
        Drive the session until the connection ends.

        Returns:
            The final consumer state, when the session ends CLOSED

        Raises:
            AuthFailure, ProtocolViolation, TransportError: The terminal error,
                when the session ends ERRORED
        """
        try:
            if self.state is SessionState.CONNECTING:
                await self.connect()

            async for message in self.ws:
                for reply in await self.handle_message(message):
                    await self._send(reply)
                if self.state in (SessionState.ERRORED, SessionState.CLOSED):
                    break

            if self.state is not SessionState.ERRORED:
                self.state = SessionState.CLOSED
                log_websocket_event(self.exchange, "closed")

        except ConnectionClosedOK:
            self.state = SessionState.CLOSED
            log_websocket_event(self.exchange, "closed")
        except TransportError as e:
            self._fail(e)
        except WebSocketException as e:
            self._fail(TransportError(f"{self.exchange}: connection lost: {e}"))
        except OSError as e:
            self._fail(TransportError(f"{self.exchange}: connection lost: {e}"))
        except BaseException:
            # Cancelled by the owner, or raised by the consumer
            if self.state not in (SessionState.CLOSED, SessionState.ERRORED):
                self.state = SessionState.CLOSED
            raise
        finally:
            await self._release()

        if self.state is SessionState.ERRORED:
            raise self.error
        return self.consumer_state

    async def close(self) -> None:
        """Close the session from any state. Safe to call multiple times."""
        await self._release()
        if self.state is not SessionState.CLOSED:
            self.state = SessionState.CLOSED
            log_websocket_event(self.exchange, "closed", "by owner")

    async def _release(self) -> None:
        task = self._keepalive_task
        self._keepalive_task = None
        if task and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self.ws is not None:
            ws = self.ws
            self.ws = None
            try:
                await ws.close()
            except (OSError, WebSocketException) as e:
                self.logger.debug(f"Error while closing {self.exchange} WebSocket: {e}")

    # ============================================
    # Transitions
    # ============================================

    def on_connect(self) -> List[str]:
        """Transport is open: authenticate"""
        self.state = SessionState.AUTHENTICATING
        return [self.auth_frame()]

    async def handle_message(self, message: Any) -> List[str]:
        """
        Process one inbound message.

        Returns:
            Frames to send in response (at most the subscribe frame)
        """
        if not isinstance(message, str):
            await self._report(ProtocolViolation("Unexpected binary frame", frame=message))
            return []

        try:
            data = json.loads(message)
        except ValueError as e:
            await self._report(DecodeError(str(e), raw=message))
            return []

        try:
            frame = self.parse_frame(data)
        except ProtocolViolation as e:
            await self._report(e)
            return []

        return await self._transition(frame)

    async def _transition(self, frame: Frame) -> List[str]:
        if frame.kind is FrameKind.PONG:
            self.logger.debug(f"{self.exchange} pong")
            return []

        if frame.kind is FrameKind.AUTH:
            return self._on_auth(frame)

        if frame.kind is FrameKind.SUBSCRIBE:
            self._on_subscribe(frame)
            return []

        if self.state is not SessionState.STREAMING:
            self.logger.warning(
                f"Dropping {self.exchange} '{frame.topic}' data received while {self.state.value}"
            )
            return []

        try:
            event = self.decode_event(frame)
        except (DecodeError, ProtocolViolation) as e:
            await self._report(e)
            return []

        await self._deliver(event)
        return []

    def _on_auth(self, frame: Frame) -> List[str]:
        if self.state is not SessionState.AUTHENTICATING:
            self.logger.warning(f"Ignoring {self.exchange} auth ack while {self.state.value}")
            return []

        if not frame.success:
            self._fail(AuthFailure(
                f"{self.exchange}: authentication rejected: {frame.message or 'no reason given'}",
                frame=frame.raw
            ))
            return []

        self.state = SessionState.AUTHENTICATED
        log_websocket_event(self.exchange, "authenticated")

        self.state = SessionState.SUBSCRIBING
        return [self.subscribe_frame()]

    def _on_subscribe(self, frame: Frame) -> None:
        if self.state is not SessionState.SUBSCRIBING:
            self.logger.warning(f"Ignoring {self.exchange} subscribe ack while {self.state.value}")
            return

        if not frame.success:
            self._fail(ProtocolViolation(
                f"{self.exchange}: subscription rejected: {frame.message or 'no reason given'}",
                frame=frame.raw
            ))
            return

        self.state = SessionState.STREAMING
        log_websocket_event(self.exchange, "subscribed", ", ".join(self.topics))

    # ============================================
    # Delivery & Errors
    # ============================================

    async def _deliver(self, event: Any) -> None:
        result = self.consumer.handle_event(event, self.consumer_state)
        if inspect.isawaitable(result):
            result = await result
        self.consumer_state = result

    async def _report(self, error: ExchangeZooError) -> None:
        self.logger.warning(f"{self.exchange} stream: {error}")
        if self.state is SessionState.STREAMING:
            await self._deliver(StreamError(error))

    def _fail(self, error: ExchangeZooError) -> None:
        if self.state is SessionState.CLOSED:
            # Owner closed the session while a send was in flight
            self.logger.debug(f"{self.exchange} session already closed: {error}")
            return
        self.state = SessionState.ERRORED
        self.error = error
        log_websocket_event(self.exchange, "error", str(error))

    # ============================================
    # Transport
    # ============================================

    async def _send(self, text: str) -> None:
        if self.ws is None:
            raise TransportError(f"{self.exchange}: not connected")
        try:
            await self.ws.send(text)
        except (OSError, WebSocketException) as e:
            raise TransportError(f"{self.exchange}: send failed: {e}") from e

    async def _keepalive(self) -> None:
        while True:
            await asyncio.sleep(self.ping_interval)
            if self.state in KEEPALIVE_STATES:
                try:
                    await self._send(self.ping_frame())
                except TransportError as e:
                    self.logger.warning(f"Keepalive stopped: {e}")
                    return
