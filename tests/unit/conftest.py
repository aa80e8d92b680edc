"""
Shared fixtures for unit tests.

Fakes stand in for the aiohttp session and the WebSocket connection so the
request pipeline and stream state machine run without any network.
"""

import asyncio
from typing import Any, List, Optional

import pytest

from core.schemas import Credentials


# ============================================
# HTTP Fakes
# ============================================

class FakeResponse:
    """Minimal aiohttp response: status + read()"""

    def __init__(self, status: int, body: bytes):
        self.status = status
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Records every request and answers with a canned response (or raises)"""

    def __init__(self, status: int = 200, body: bytes = b"{}", exc: Optional[BaseException] = None):
        self.status = status
        self.body = body
        self.exc = exc
        self.calls: List[dict] = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": str(url), **kwargs})
        if self.exc is not None:
            raise self.exc
        return FakeResponse(self.status, self.body)


# ============================================
# WebSocket Fake
# ============================================

class FakeWebSocket:
    """Yields scripted inbound frames and records outbound ones"""

    def __init__(self, frames: Optional[List[Any]] = None, error: Optional[BaseException] = None):
        self.frames = list(frames or [])
        self.error = error
        self.sent: List[str] = []
        self.closed = False

    async def send(self, text: str) -> None:
        self.sent.append(text)

    async def close(self) -> None:
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            await asyncio.sleep(0)
            yield frame
        if self.error is not None:
            raise self.error


# ============================================
# Consumers
# ============================================

class RecordingConsumer:
    """Counts events in its state and keeps them for inspection"""

    def __init__(self):
        self.events: List[Any] = []

    def handle_event(self, event, consumer_state):
        self.events.append(event)
        return consumer_state + 1


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def credentials() -> Credentials:
    return Credentials(api_key="test-key", secret_key="test-secret")


@pytest.fixture
def fake_session_factory():
    """Build a FakeSession answering with the given status/body"""

    def factory(status: int = 200, body: bytes = b"{}", exc: Optional[BaseException] = None) -> FakeSession:
        return FakeSession(status=status, body=body, exc=exc)

    return factory


@pytest.fixture
def fake_websocket_factory():
    """Build a FakeWebSocket yielding the given frames, then raising error if set"""

    def factory(frames: Optional[List[Any]] = None, error: Optional[BaseException] = None) -> FakeWebSocket:
        return FakeWebSocket(frames=frames, error=error)

    return factory


@pytest.fixture
def consumer() -> RecordingConsumer:
    return RecordingConsumer()
