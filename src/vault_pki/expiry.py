"""
Certificate expiry calculation.

Pure functions over a PEM-encoded certificate and a point in time.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Union

from cryptography import x509

from .exceptions import ParseError


def _load_certificate(certificate_pem: Union[str, bytes]) -> x509.Certificate:
    if isinstance(certificate_pem, str):
        try:
            certificate_pem = certificate_pem.encode("ascii")
        except UnicodeEncodeError as e:
            raise ParseError("Certificate PEM is not ASCII") from e
    if not certificate_pem:
        raise ParseError("Certificate PEM is empty")
    try:
        return x509.load_pem_x509_certificate(certificate_pem)
    except ValueError as e:
        raise ParseError(f"Malformed certificate: {e}") from e


def not_after(certificate_pem: Union[str, bytes]) -> datetime:
    """Return the certificate's "not valid after" instant as an aware UTC datetime."""
    return _load_certificate(certificate_pem).not_valid_after_utc


def remaining_seconds(
    certificate_pem: Union[str, bytes],
    now: Optional[datetime] = None,
) -> int:
    """
    Seconds until the certificate expires, floored.

    Negative once the certificate has expired; callers treat any value
    <= 0 as "renew immediately".

    Args:
        certificate_pem: PEM-encoded certificate
        now: Reference time. Default: current UTC time. Naive values are UTC.

    Raises:
        ParseError: If the input is not a well-formed certificate
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.floor((not_after(certificate_pem) - now).total_seconds())
