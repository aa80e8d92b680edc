"""
Core Utilities Package

Modules:
    - time: Timestamp conversion and "now" helpers used by signing
"""

from core.utils.time import to_utc_datetime, current_utc_timestamp

__all__ = ["to_utc_datetime", "current_utc_timestamp"]
