"""
Vault PKI client configuration.

This module handles environment variables and client configuration.
Every recognised option is an explicit, typed field:

- ``VAULT_PKI_ADDRESS``: Vault base address, e.g. ``https://vault:8200``
- ``VAULT_PKI_TOKEN``: bearer token sent with every request
- ``VAULT_PKI_MOUNTPOINT``: PKI secrets engine mount path (default ``pki``)
- ``VAULT_PKI_TIMEOUT``: per-request timeout in seconds (default 5)
- ``VAULT_PKI_TLS__CA_PATH``: CA bundle file, directory, or inline PEM
- ``VAULT_PKI_TLS__SKIP_VERIFY``: disable server certificate verification
- ``VAULT_PKI_REJECT_RESERVED_FIELDS``: fail instead of overriding colliding
  extra request fields
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from .exceptions import ConfigurationError


class TLSConfig(BaseModel):
    """TLS trust configuration for the connection to Vault."""

    # A plain path from VAULT_PKI_TLS__CA_PATH is not JSON; str keeps it undecoded
    ca_path: Union[str, List[str]] = Field(
        default_factory=list,
        description="CA bundle files, directories, or inline PEM content",
    )
    skip_verify: bool = Field(
        default=False,
        description="Disable server certificate verification",
    )

    @field_validator("ca_path", mode="before")
    @classmethod
    def coerce_single_path(cls, v):
        if isinstance(v, str):
            return [v]
        return v


class VaultPKIConfig(BaseSettings):
    """Configuration for the Vault PKI client."""

    address: str = Field(description="Vault base address")
    token: str = Field(repr=False, description="Bearer token for authentication")
    mountpoint: str = Field(default="pki", description="PKI secrets engine mount path")
    timeout: float = Field(
        default=5.0,
        gt=0,
        description="Request timeout in seconds",
    )
    tls: Optional[TLSConfig] = Field(
        default=None,
        description="Custom TLS trust; system defaults when unset",
    )
    reject_reserved_fields: bool = Field(
        default=False,
        description="Raise instead of overriding extra fields named common_name or ttl",
    )

    model_config = SettingsConfigDict(
        env_prefix="VAULT_PKI_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("address must start with http:// or https://")
        return v

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        if not v:
            raise ValueError("token must not be empty")
        return v

    @field_validator("mountpoint")
    @classmethod
    def validate_mountpoint(cls, v: str) -> str:
        v = v.strip("/")
        if not v:
            raise ValueError("mountpoint must not be empty")
        return v

    @property
    def base_url(self) -> str:
        """API root for the configured mount."""
        return f"{self.address}/v1/{self.mountpoint}"


class LoggingSettings(BaseSettings):
    """Logging settings, read from the same ``VAULT_PKI_`` prefix."""

    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    model_config = SettingsConfigDict(
        env_prefix="VAULT_PKI_",
        env_file=".env",
        extra="ignore",
    )


def get_config(**overrides) -> VaultPKIConfig:
    """
    Get Vault PKI configuration.

    Explicit keyword arguments override environment variables. Overrides
    explicitly set to None fall back to the environment.

    Raises:
        ConfigurationError: If a keyword is not a configuration field, or
            the resulting configuration is invalid
    """
    valid_fields = set(VaultPKIConfig.model_fields.keys())
    unknown = sorted(k for k in overrides if k not in valid_fields)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration field(s): {', '.join(unknown)}",
            details={"fields": unknown},
        )

    updates = {k: v for k, v in overrides.items() if v is not None}
    try:
        return VaultPKIConfig(**updates)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigurationError(
            "Invalid Vault PKI configuration: " + "; ".join(problems),
            details={"errors": problems},
        ) from e
    except SettingsError as e:
        raise ConfigurationError(f"Invalid Vault PKI configuration: {e}") from e
