"""
Vault PKI client module.

This module provides VaultPKIClient, the transport facade for a Vault PKI
secrets engine mount: issuing certificates, reading the CA chain, and
listing or fetching certificates on record. Requests are never retried
here; retry policy belongs to the renewal loop.
"""

import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .config import VaultPKIConfig, get_config
from .events import EventSink
from .exceptions import ConfigurationError, IssuanceError, ReservedFieldError
from .expiry import remaining_seconds
from .inventory import CertificateInventory
from .logging import get_logger
from .renewal import CancellationToken, RenewalHandle, RenewalSubscription, UpdateCallback, start_renewal
from .schemas import (
    CertificateRecord,
    Credential,
    ErrorResponse,
    GetCertResponse,
    IssueResponse,
    ListCertsResponse,
    build_issue_body,
)
from .trust import build_verify

logger = get_logger(__name__)

API_VERSION = "v1"
RESERVED_FIELDS = ("common_name", "ttl")

_PEM_BLOCK = re.compile(r"-----BEGIN [^-]+-----.*?-----END [^-]+-----", re.DOTALL)


def split_pem_bundle(text: str) -> List[str]:
    """Split a concatenated PEM bundle into its blocks, keeping order."""
    blocks = _PEM_BLOCK.findall(text)
    if blocks:
        return blocks
    text = text.strip()
    return [text] if text else []


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VaultPKIClient:
    """
    Connection to a Vault PKI secrets engine mount.

    Trust material is loaded while the client is constructed, so the
    client is ready for requests as soon as the constructor returns.

    Example:
        >>> client = VaultPKIClient(address="https://vault:8200", token="s.xyz", mountpoint="pki-api")
        >>> cred = client.issue("api", "api.example.org", ttl=60)
        >>> print(cred.serial, cred.expires_in)
    """

    def __init__(
        self,
        config: Optional[VaultPKIConfig] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Optional[Callable[[], datetime]] = None,
        **overrides: Any,
    ):
        """
        Initialize the client.

        Args:
            config: Complete configuration. When omitted, configuration is
                loaded from VAULT_PKI_* environment variables and ``overrides``
            transport: Custom httpx transport (used by tests)
            clock: Source of the current time for expiry computation
            **overrides: Configuration fields (address, token, mountpoint, ...)

        Raises:
            ConfigurationError: If the configuration is invalid, or both
                ``config`` and ``overrides`` are given
            TrustLoadError: If TLS trust material cannot be read
        """
        if config is not None and overrides:
            raise ConfigurationError(
                "Pass either a config or configuration fields, not both",
                details={"fields": sorted(overrides)},
            )
        self._config = config or get_config(**overrides)
        self._clock = clock or _utcnow

        self._http_client = httpx.Client(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            verify=build_verify(self._config.tls),
            transport=transport,
            headers={
                "Authorization": f"Bearer {self._config.token}",
                "User-Agent": "vault-pki/1.0.0",
            },
        )

    @property
    def config(self) -> VaultPKIConfig:
        return self._config

    @property
    def ready(self) -> bool:
        """True once trust material is loaded and until the client is closed."""
        return not self._http_client.is_closed

    def __enter__(self) -> "VaultPKIClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self._http_client.close()

    # ==========================================================================
    # Public API Methods
    # ==========================================================================

    def issue(
        self,
        role: str,
        common_name: str,
        ttl: int,
        extra_fields: Optional[Dict[str, Any]] = None,
    ) -> Credential:
        """
        Issue a single certificate.

        Args:
            role: Role name to issue against
            common_name: CN to issue the certificate for
            ttl: Requested lifetime in seconds
            extra_fields: Additional request fields, e.g. ``alt_names``.
                ``common_name`` and ``ttl`` in here are overridden by the
                arguments above, unless the client was configured with
                ``reject_reserved_fields``.

        Returns:
            The issued Credential, with ``expires_in`` computed at issuance

        Raises:
            IssuanceError: If the request fails or Vault reports an error
            ReservedFieldError: If extra fields collide and collisions are rejected
            ConfigurationError: If a field name or value cannot be sent
            ParseError: If Vault returns a malformed certificate
        """
        if extra_fields and self._config.reject_reserved_fields:
            collisions = [f for f in RESERVED_FIELDS if f in extra_fields]
            if collisions:
                raise ReservedFieldError(collisions)

        body = build_issue_body(common_name, ttl, extra_fields)
        response = self._request("POST", f"/issue/{role}", json=body)
        data = self._parse(response, IssueResponse).data

        logger.debug(f"received certificate {data.serial_number}")

        return Credential(
            serial=data.serial_number,
            certificate=data.certificate,
            private_key=data.private_key,
            issuing_ca=data.issuing_ca,
            chain=data.ca_chain,
            key_type=data.private_key_type,
            expires_in=remaining_seconds(data.certificate, now=self._clock()),
        )

    def get_chain(self) -> List[str]:
        """
        Get the CA chain for the mount.

        Returns:
            PEM blocks in the order Vault returns them
        """
        response = self._request("GET", "/ca_chain")
        return split_pem_bundle(response.text)

    def list_serials(self) -> List[str]:
        """
        List serial numbers of all certificates on record.

        Returns:
            Serials in the order Vault returns them, without duplicates
        """
        try:
            response = self._request("LIST", "/certs")
        except IssuanceError as e:
            # Vault answers 404 with an empty errors list when the mount holds
            # no certificates; a bad mount or route carries an error message
            if e.status_code == 404 and not e.errors:
                return []
            raise
        keys = self._parse(response, ListCertsResponse).data.keys
        return list(dict.fromkeys(keys))

    def get_by_serial(self, serial: str) -> str:
        """
        Get one certificate by serial number.

        Returns:
            PEM-encoded certificate
        """
        response = self._request("GET", f"/cert/{serial}")
        return self._parse(response, GetCertResponse).data.certificate

    def list(self) -> List[CertificateRecord]:
        """List all certificates on record, each with the CA chain."""
        return CertificateInventory(self).list_all()

    def issue_and_renew(
        self,
        role: str,
        common_name: str,
        ttl: int,
        extra_fields: Optional[Dict[str, Any]],
        on_update: UpdateCallback,
        *,
        cancel_token: Optional[CancellationToken] = None,
        event_sink: Optional[EventSink] = None,
    ) -> RenewalHandle:
        """
        Keep a certificate up to date by re-issuing it before expiry.

        ``on_update(error, credential)`` runs after every attempt. The loop
        runs in a background thread until the returned handle (or the
        given token) is cancelled.
        """
        subscription = RenewalSubscription(
            role=role,
            common_name=common_name,
            ttl=ttl,
            extra_fields=dict(extra_fields or {}),
            on_update=on_update,
        )
        return start_renewal(self, subscription, cancel_token=cancel_token, event_sink=event_sink)

    # ==========================================================================
    # HTTP Request Handling
    # ==========================================================================

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._http_client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Network error on {method} {path}: {e}")
            raise IssuanceError(str(e) or type(e).__name__) from e

        if response.is_success:
            return response

        raise self._error_from_response(response)

    @staticmethod
    def _error_from_response(response: httpx.Response) -> IssuanceError:
        """Build an error from Vault's ``errors`` list, or the raw body."""
        errors: List[str] = []
        message = None
        try:
            parsed = ErrorResponse.model_validate(response.json())
            errors = [str(e) for e in parsed.errors or []]
            message = parsed.joined()
        except (ValueError, ValidationError):
            pass

        if message is None:
            message = response.text or f"HTTP {response.status_code}"

        logger.error(f"Vault returned {response.status_code}: {message}")
        return IssuanceError(message, status_code=response.status_code, errors=errors)

    @staticmethod
    def _parse(response: httpx.Response, model):
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise IssuanceError(
                f"Unexpected response from Vault: {e}",
                status_code=response.status_code,
            ) from e

    def __repr__(self) -> str:
        return f"VaultPKIClient(base_url={self._config.base_url!r})"
