"""
Unit Tests for the Request Signer

Run with:
    pytest tests/unit/test_signer.py -v
"""

import hashlib
import hmac

import pytest
from pydantic import SecretStr

from core.errors import ConfigurationError
from core.signer import sign


class TestSign:
    """Tests for sign()"""

    def test_matches_hmac_sha256_hexdigest(self):
        """Verify the signature is the lowercase hex HMAC-SHA256"""
        expected = hmac.new(b"secret", b"GET/realtime1700000000000", hashlib.sha256).hexdigest()
        assert sign("GET/realtime1700000000000", "secret") == expected

    def test_is_deterministic(self):
        """Verify identical inputs always give identical signatures"""
        canonical = "1700000000000key5000category=linear"
        signatures = {sign(canonical, "secret") for _ in range(20)}
        assert len(signatures) == 1

    def test_different_secrets_give_different_signatures(self):
        assert sign("payload", "secret-a") != sign("payload", "secret-b")

    def test_accepts_str_bytes_and_secretstr(self):
        """Verify every supported secret type signs the same way"""
        canonical = "GET/api/v1/order1700000005"
        from_str = sign(canonical, "secret")
        assert sign(canonical, b"secret") == from_str
        assert sign(canonical, SecretStr("secret")) == from_str
        assert sign(canonical.encode(), "secret") == from_str

    @pytest.mark.parametrize("secret", [None, "", b"", SecretStr("")])
    def test_missing_secret_raises_configuration_error(self, secret):
        with pytest.raises(ConfigurationError):
            sign("payload", secret)
