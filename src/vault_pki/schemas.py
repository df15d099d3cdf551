"""
Vault PKI Pydantic schemas for request/response models.

This module defines the domain types handed to callers and the subset of
the Vault PKI HTTP API response bodies the client reads.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

# ==============================================================================
# Domain Schemas
# ==============================================================================


class Credential(BaseModel):
    """A freshly issued certificate with its key and trust chain.

    Immutable once issued; the next issuance supersedes it.
    """

    model_config = ConfigDict(frozen=True)

    serial: str = Field(..., description="Serial number, unique per mount")
    certificate: str = Field(..., description="PEM-encoded certificate")
    private_key: str = Field(..., repr=False, description="PEM-encoded private key")
    issuing_ca: str = Field(..., description="PEM-encoded issuing CA certificate")
    chain: List[str] = Field(default_factory=list, description="PEM-encoded CA chain")
    key_type: str = Field(..., description="Private key type, e.g. rsa or ec")
    expires_in: int = Field(..., description="Seconds until expiry at issuance time")


class CertificateRecord(BaseModel):
    """A certificate on record with the CA, paired with the shared chain."""

    model_config = ConfigDict(frozen=True)

    certificate: str
    chain: List[str] = Field(default_factory=list)


# ==============================================================================
# Wire Schemas
# ==============================================================================


class IssueRequest(BaseModel):
    """Body of ``POST {mount}/issue/{role}``."""

    model_config = ConfigDict(extra="allow")

    common_name: str
    ttl: str


class IssuedCertificateData(BaseModel):
    certificate: str
    private_key: str
    private_key_type: str = "unknown"
    serial_number: str
    issuing_ca: str = ""
    ca_chain: Optional[List[str]] = None

    @field_validator("ca_chain", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


class IssueResponse(BaseModel):
    data: IssuedCertificateData


class SerialList(BaseModel):
    keys: List[str] = Field(default_factory=list)


class ListCertsResponse(BaseModel):
    data: SerialList


class CertificateData(BaseModel):
    certificate: str


class GetCertResponse(BaseModel):
    data: CertificateData


class ErrorResponse(BaseModel):
    """Vault error body: ``{"errors": [...]}``."""

    errors: Optional[List[Any]] = None

    def joined(self) -> Optional[str]:
        if not self.errors:
            return None
        return "\n".join(str(e) for e in self.errors)


def build_issue_body(
    common_name: str,
    ttl: int,
    extra_fields: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Merge caller fields under the reserved ``common_name``/``ttl`` fields.

    Raises:
        ConfigurationError: If a field name is not a string or a field
            value is rejected
    """
    extra = dict(extra_fields or {})
    bad_keys = [repr(k) for k in extra if not isinstance(k, str)]
    if bad_keys:
        raise ConfigurationError(
            f"Extra field names must be strings: {', '.join(bad_keys)}",
            details={"fields": bad_keys},
        )

    try:
        body = IssueRequest(**{**extra, "common_name": common_name, "ttl": f"{ttl}s"})
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigurationError(
            "Invalid issue request: " + "; ".join(problems),
            details={"errors": problems},
        ) from e
    return body.model_dump(mode="json")
