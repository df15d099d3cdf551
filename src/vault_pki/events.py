"""
Structured renewal events.

The renewal loop reports what it does through an injectable sink rather
than writing to a global logger directly. The default sink forwards
events to the ``vault_pki`` logger; tests can pass ``list.append``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .logging import get_logger

ISSUED = "issued"
ISSUE_FAILED = "issue_failed"
RENEWAL_SCHEDULED = "renewal_scheduled"
SUBSCRIBER_FAILED = "subscriber_failed"
RENEWAL_CANCELLED = "renewal_cancelled"


@dataclass(frozen=True)
class RenewalEvent:
    """One thing that happened to a renewal subscription."""
    name: str
    common_name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventSink = Callable[[RenewalEvent], None]


class LoggingEventSink:
    """Forwards events to a logger, failures at WARNING and the rest at the given level."""

    WARNING_EVENTS = frozenset({ISSUE_FAILED, SUBSCRIBER_FAILED})

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self.logger = logger or get_logger("vault_pki.renewal")
        self.level = level

    def __call__(self, event: RenewalEvent) -> None:
        level = logging.WARNING if event.name in self.WARNING_EVENTS else self.level
        details = " ".join(f"{k}={v}" for k, v in event.attributes.items())
        self.logger.log(
            level,
            f"{event.name} for {event.common_name} {details}".rstrip(),
            extra={"event": event.name, "common_name": event.common_name, "attributes": event.attributes},
        )
