"""
Vault PKI exceptions.

This module defines all custom exceptions raised by the client.
Every error carries a machine-readable code and structured details that
are safe to log (never certificate keys or tokens).
"""

from typing import Any, Dict, List, Optional


class VaultPKIError(Exception):
    """Base exception for Vault PKI client errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "VAULT_PKI_ERROR"
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ParseError(VaultPKIError):
    """Raised when a certificate cannot be parsed."""

    def __init__(
        self,
        message: str = "Malformed certificate",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="VAULT_PKI_PARSE_ERROR",
            details=details,
        )


class IssuanceError(VaultPKIError):
    """Raised when a request to the CA fails, at transport level or CA-reported."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[List[str]] = None,
    ):
        details: Dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message=message,
            code="VAULT_PKI_ISSUANCE_FAILED",
            details=details,
        )
        self.status_code = status_code
        self.errors = errors or []


class TrustLoadError(VaultPKIError):
    """Raised when TLS trust material cannot be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Failed to load trust material from '{path}': {reason}",
            code="VAULT_PKI_TRUST_LOAD_FAILED",
            details={"path": path},
        )
        self.path = path


class ConfigurationError(VaultPKIError):
    """Raised when the client is misconfigured or called with invalid arguments."""

    def __init__(
        self,
        message: str,
        code: str = "VAULT_PKI_CONFIG_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)


class ReservedFieldError(ConfigurationError):
    """Raised when extra request fields collide with fields the client sets itself."""

    def __init__(self, fields: List[str]):
        super().__init__(
            message=f"Extra fields collide with reserved request fields: {', '.join(fields)}",
            code="VAULT_PKI_RESERVED_FIELD",
            details={"fields": fields},
        )
        self.fields = fields
