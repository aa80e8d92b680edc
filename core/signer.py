"""
Request Signer

HMAC-SHA256 over an exchange-supplied canonical string. The signer only hashes:
building the canonical string is the job of each exchange's request module,
because field order and units differ per exchange and must match byte for byte.

Usage:
    from core.signer import sign

    signature = sign(f"{timestamp}{api_key}{recv_window}{query}", secret)
"""

import hashlib
import hmac
from typing import Union

from pydantic import SecretStr

from core.errors import ConfigurationError


Secret = Union[str, bytes, SecretStr]


def _secret_bytes(secret: Secret) -> bytes:
    if isinstance(secret, SecretStr):
        secret = secret.get_secret_value()
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    return secret


def sign(canonical_string: Union[str, bytes], secret: Secret) -> str:
    """
    Sign a canonical string.

    Args:
        canonical_string: Exact byte sequence the exchange expects to be signed
        secret: API secret (str, bytes or pydantic SecretStr)

    Returns:
        Lowercase hex digest of HMAC-SHA256(secret, canonical_string)

    Raises:
        ConfigurationError: If the secret is missing or empty

    Example:
        >>> signature = sign("GET/realtime1700000000000", "secret")
        >>> len(signature)
        64
    """
    if secret is None:
        raise ConfigurationError("Cannot sign request: secret key is not configured")

    key = _secret_bytes(secret)
    if not key:
        raise ConfigurationError("Cannot sign request: secret key is empty")

    if isinstance(canonical_string, str):
        canonical_string = canonical_string.encode("utf-8")

    return hmac.new(key, canonical_string, hashlib.sha256).hexdigest()
