"""
Error Taxonomy

Every failure the client can report is one of the exceptions below. REST calls
raise them directly to the caller; stream sessions either hand them to the
consumer (wrapped in a StreamError event) or raise them from run() when the
session cannot continue.

Hierarchy:
    ExchangeZooError
    ├── ConfigurationError   missing credentials / bad option, raised before any I/O
    ├── TransportError       connection, IO or timeout failure
    ├── DecodeError          JSON parse failure or model validation failure
    ├── ExchangeError        non-success HTTP status or exchange return code
    ├── AuthFailure          WebSocket auth handshake rejected
    └── ProtocolViolation    unexpected or unknown frame shape

Nothing in this package retries on any of these errors.
"""

from typing import Any, Optional


class ExchangeZooError(Exception):
    """Base class for all client errors"""


class ConfigurationError(ExchangeZooError):
    """Raised when required configuration (e.g. credentials) is missing"""


class TransportError(ExchangeZooError):
    """Raised when the underlying HTTP or WebSocket transport fails"""


class DecodeError(ExchangeZooError):
    """
    Raised when structured data cannot be parsed or decoded into a model.

    Attributes:
        reason: Parser or validator message
        raw: The raw input that failed (body text, frame text or dict)
        status: HTTP status code when the failure happened on a REST response
        field: Dotted location of the failing field, for model decode failures
    """

    def __init__(
        self,
        reason: str,
        raw: Any = None,
        status: Optional[int] = None,
        field: Optional[str] = None
    ):
        self.reason = reason
        self.raw = raw
        self.status = status
        self.field = field

        message = reason
        if field:
            message = f"{field}: {reason}"
        if status is not None:
            message = f"HTTP {status}: {message}"
        super().__init__(message)


class ExchangeError(ExchangeZooError):
    """
    Raised when an exchange answers with a failure.

    Attributes:
        status: HTTP status code of the response
        error: The exchange error model decoded from the whole response body
    """

    def __init__(self, status: int, error: Any):
        self.status = status
        self.error = error
        super().__init__(f"HTTP {status}: {error!r}")


class AuthFailure(ExchangeZooError):
    """Raised when a stream's authentication handshake is rejected"""

    def __init__(self, message: str, frame: Optional[dict] = None):
        self.frame = frame
        super().__init__(message)


class ProtocolViolation(ExchangeZooError):
    """Raised for frames that do not match any shape the session understands"""

    def __init__(self, message: str, frame: Any = None):
        self.frame = frame
        super().__init__(message)
