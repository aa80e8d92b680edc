"""
Time Utilities

Signing needs "now" in exact units: Bybit wants milliseconds in its headers and
auth frames, BitMEX wants seconds in api-expires. Payloads carry millisecond
timestamps (often as strings) that we normalize to UTC datetimes.
"""

import time
from datetime import datetime, timezone
from typing import Union


def to_utc_datetime(timestamp: Union[int, float]) -> datetime:
    """
    Convert a Unix timestamp (seconds or milliseconds) to a UTC datetime.

    Values above 1e12 are treated as milliseconds.

    Args:
        timestamp: Unix timestamp in seconds or milliseconds

    Returns:
        datetime: Timezone-aware datetime in UTC

    Raises:
        ValueError: If timestamp is negative or out of range

    Examples:
        >>> to_utc_datetime(1704110400000)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
        >>> to_utc_datetime(1704110400)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    if timestamp < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp}")

    if timestamp > 1e12:
        timestamp = timestamp / 1000.0

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp}. Error: {e}")


def current_utc_timestamp(milliseconds: bool = False) -> int:
    """
    Get the current Unix timestamp.

    Args:
        milliseconds: If True, return milliseconds; otherwise seconds

    Returns:
        int: Current Unix timestamp
    """
    now = time.time()
    if milliseconds:
        return int(now * 1000)
    return int(now)
