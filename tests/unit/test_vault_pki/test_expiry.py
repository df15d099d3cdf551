"""
Unit tests for certificate expiry calculation.
"""

from datetime import timedelta

import pytest

from vault_pki.exceptions import ParseError
from vault_pki.expiry import not_after, remaining_seconds


class TestRemainingSeconds:
    """Tests for remaining_seconds."""

    @pytest.mark.parametrize("k", [0, 1, 59, 100, 86400])
    def test_counts_down_to_not_after(self, make_cert, now, k):
        """At notAfter - k the remaining lifetime is k."""
        cert = make_cert(100)
        expiry = not_after(cert)
        assert remaining_seconds(cert, now=expiry - timedelta(seconds=k)) == k

    def test_fractional_seconds_are_floored(self, make_cert, now):
        cert = make_cert(100)
        assert remaining_seconds(cert, now=now + timedelta(milliseconds=500)) == 99

    def test_negative_after_expiry(self, make_cert, now):
        """An expired certificate yields a negative value, not an error."""
        cert = make_cert(100)
        assert remaining_seconds(cert, now=now + timedelta(seconds=130)) == -30

    def test_already_expired_certificate(self, make_cert, now):
        assert remaining_seconds(make_cert(-10), now=now) == -10

    def test_naive_now_is_utc(self, make_cert, now):
        cert = make_cert(100)
        assert remaining_seconds(cert, now=now.replace(tzinfo=None)) == 100

    def test_accepts_bytes(self, make_cert, now):
        assert remaining_seconds(make_cert(100).encode(), now=now) == 100

    def test_defaults_to_current_time(self, make_cert):
        """With the real clock, a certificate minted for 2026-01-01 is long expired or far off."""
        assert isinstance(remaining_seconds(make_cert(100)), int)


class TestParseErrors:
    """Malformed input raises ParseError."""

    @pytest.mark.parametrize(
        "bad",
        [
            "",
            b"",
            "not a certificate",
            "-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n",
            "-----BEGIN CERTIFICATE-----\né\n-----END CERTIFICATE-----\n",
        ],
    )
    def test_malformed(self, bad, now):
        with pytest.raises(ParseError):
            remaining_seconds(bad, now=now)

    def test_error_code(self, now):
        with pytest.raises(ParseError) as exc_info:
            not_after("garbage")
        assert exc_info.value.code == "VAULT_PKI_PARSE_ERROR"
