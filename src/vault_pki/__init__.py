"""
Vault PKI - Self-renewing certificates from a Vault PKI mount.

Issues short-lived X.509 certificates from a HashiCorp Vault PKI secrets
engine and keeps them renewed in the background, re-issuing at 90% of
each certificate's lifetime and retrying failures every 10 seconds.

Example:
    >>> from vault_pki import VaultPKIClient
    >>>
    >>> client = VaultPKIClient(
    ...     address="https://vault.internal:8200",
    ...     token="s.xyz",
    ...     mountpoint="pki-api",
    ... )
    >>>
    >>> def on_update(error, credential):
    ...     if error is None:
    ...         print(f"new certificate {credential.serial}, {credential.expires_in}s left")
    >>>
    >>> handle = client.issue_and_renew("api", "api.example.org", 3600, None, on_update)
    >>> ...
    >>> handle.cancel()
"""

__version__ = "1.0.0"

# Client
from .client import VaultPKIClient

# Configuration
from .config import LoggingSettings, TLSConfig, VaultPKIConfig, get_config

# Events
from .events import EventSink, LoggingEventSink, RenewalEvent

# Exceptions
from .exceptions import (
    ConfigurationError,
    IssuanceError,
    ParseError,
    ReservedFieldError,
    TrustLoadError,
    VaultPKIError,
)

# Expiry
from .expiry import not_after, remaining_seconds

# Inventory
from .inventory import CertificateInventory

# Renewal
from .renewal import (
    CancellationToken,
    RenewalHandle,
    RenewalLoop,
    RenewalSubscription,
    start_renewal,
)

# Schemas
from .schemas import CertificateRecord, Credential

# Trust
from .trust import load_ca_bundle, read_file_or_folder

__all__ = [
    # Version
    "__version__",
    # Client
    "VaultPKIClient",
    # Config
    "VaultPKIConfig",
    "TLSConfig",
    "LoggingSettings",
    "get_config",
    # Renewal
    "RenewalSubscription",
    "RenewalLoop",
    "RenewalHandle",
    "CancellationToken",
    "start_renewal",
    # Inventory
    "CertificateInventory",
    # Schemas
    "Credential",
    "CertificateRecord",
    # Expiry
    "remaining_seconds",
    "not_after",
    # Trust
    "read_file_or_folder",
    "load_ca_bundle",
    # Events
    "RenewalEvent",
    "EventSink",
    "LoggingEventSink",
    # Exceptions
    "VaultPKIError",
    "ParseError",
    "IssuanceError",
    "TrustLoadError",
    "ConfigurationError",
    "ReservedFieldError",
]
