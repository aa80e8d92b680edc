"""
Shared Schemas

Pydantic models and field types used by every exchange connector.

Models:
    - Credentials: API key + secret, immutable once built
    - TimingOptions: Per-call overrides for the signing timestamp and recv-window
    - ExchangeModel: Base class for all exchange response/event models

Field Types:
    - OptionalFloat: Numeric string field where "" means "not set"
    - OptionalTimestamp: Millisecond timestamp (int or numeric string) -> UTC datetime
"""

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, SecretStr
from pydantic.alias_generators import to_camel

from core.utils.time import current_utc_timestamp, to_utc_datetime


# ============================================
# Field Types
# ============================================

def _empty_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _ms_to_datetime(value: Any) -> Any:
    value = _empty_to_none(value)
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and not value.isdigit():
        # ISO-8601 strings (BitMEX) are parsed by pydantic itself
        return value
    return to_utc_datetime(int(value))


OptionalFloat = Annotated[Optional[float], BeforeValidator(_empty_to_none)]
OptionalTimestamp = Annotated[Optional[datetime], BeforeValidator(_ms_to_datetime)]


# ============================================
# Credentials & Timing
# ============================================

class Credentials(BaseModel):
    """
    API credentials for private endpoints and private streams.

    The secret is stored as a SecretStr so it never shows up in repr() or
    log output. Instances are frozen.

    Example:
        >>> creds = Credentials(api_key="key", secret_key="secret")
        >>> creds
        Credentials(api_key='key', secret_key=SecretStr('**********'))
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(..., min_length=1, description="Exchange API key")
    secret_key: SecretStr = Field(..., description="Exchange API secret")


class TimingOptions(BaseModel):
    """
    Signing time parameters for a private request.

    Attributes:
        timestamp: Request timestamp in milliseconds (None = now)
        recv_window: Validity window of the signature in milliseconds
            (None = the client's or the configured default)
    """

    model_config = ConfigDict(frozen=True)

    timestamp: Optional[int] = Field(default=None, ge=0)
    recv_window: Optional[int] = Field(default=None, gt=0)

    def resolve(self, recv_window: int) -> "TimingOptions":
        """
        Fill in whatever the caller left unset.

        Args:
            recv_window: Window to use when none was given

        Returns:
            TimingOptions with both timestamp (now, in ms) and recv_window set
        """
        update = {}
        if self.recv_window is None:
            update["recv_window"] = recv_window
        if self.timestamp is None:
            update["timestamp"] = current_utc_timestamp(milliseconds=True)
        return self.model_copy(update=update) if update else self


# ============================================
# Base Exchange Model
# ============================================

class ExchangeModel(BaseModel):
    """
    Base class for models decoded from exchange payloads.

    Exchanges speak camelCase; our attributes are snake_case. Unknown fields
    are ignored so that new fields added by an exchange don't break decoding.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore"
    )
