"""
Vault PKI Structured Logging Configuration.

Provides consistent logging across the client with:
- Structured JSON output (opt-in via VAULT_PKI_LOG_JSON)
- Human-readable output for development
- Sensitive data filtering (private keys, tokens)

Usage:
    from vault_pki.logging import get_logger, configure_logging

    # At application startup
    configure_logging(level="INFO", json_format=True)

    # In modules
    logger = get_logger(__name__)
    logger.info("Issued certificate", extra={"serial": "1a:2b"})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "vault_pki"

# Sensitive field patterns to filter from logs
SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "token",
        "private_key",
        "privatekey",
        "authorization",
    }
)

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


def _is_sensitive_key(key: str) -> bool:
    """Check if a key name suggests sensitive data."""
    key_lower = key.lower()
    return any(pattern in key_lower for pattern in SENSITIVE_PATTERNS)


def _filter_sensitive(data: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively filter sensitive values from a dictionary."""
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        if _is_sensitive_key(key):
            filtered[key] = "[REDACTED]"
        elif isinstance(value, dict):
            filtered[key] = _filter_sensitive(value)
        elif isinstance(value, list):
            filtered[key] = [_filter_sensitive(item) if isinstance(item, dict) else item for item in value]
        else:
            filtered[key] = value
    return filtered


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES:
                continue
            if _is_sensitive_key(key):
                extra_fields[key] = "[REDACTED]"
            elif isinstance(value, dict):
                extra_fields[key] = _filter_sensitive(value)
            else:
                extra_fields[key] = value

        if extra_fields:
            log_data["extra"] = extra_fields

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        reset = self.RESET if color else ""

        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        level = f"{color}{record.levelname:8}{reset}"
        name = record.name.split(".")[-1][:15].ljust(15)
        formatted = f"{timestamp} {level} {name} {record.getMessage()}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    stream: Any = None,
) -> None:
    """
    Configure logging for the vault_pki namespace.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Default: VAULT_PKI_LOG_LEVEL or INFO
        json_format: Use JSON output. Default: VAULT_PKI_LOG_JSON or False
        stream: Output stream. Default: sys.stderr
    """
    if level is None or json_format is None:
        from .config import LoggingSettings

        settings = LoggingSettings()
        level = level or settings.log_level
        json_format = settings.log_json if json_format is None else json_format

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root_logger.addHandler(handler)
    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a vault_pki module.

    Usage:
        logger = get_logger(__name__)
        logger.info("Message", extra={"serial": "1a:2b"})
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


__all__ = [
    "configure_logging",
    "get_logger",
    "StructuredFormatter",
    "DevelopmentFormatter",
]
