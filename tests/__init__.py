"""
Test Suite

Structure:
- tests/unit/: Offline tests for signing, the request pipeline, endpoint
  tables, model decoding and the stream session state machine. HTTP and
  WebSocket transports are replaced with fakes from tests/unit/conftest.py.

Uses pytest with pytest-asyncio for testing async functionality.
"""
