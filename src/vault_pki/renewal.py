"""
Renewal Loop - Self-Renewing Certificate Subscription

Keeps one credential fresh: issue, deliver to the subscriber, wait 90% of
the issued certificate's remaining lifetime, repeat. A failed issuance is
delivered as an error and retried after a fixed back-off. The loop runs
in its own daemon thread and never stops on an error; it stops only when
its cancellation token is cancelled.

State per cycle:
    PENDING -> DELIVERING -> SCHEDULED(delay) -> PENDING
    PENDING -> DELIVERING -> FAILED -> SCHEDULED(retry delay) -> PENDING
"""

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from . import events
from .events import EventSink, LoggingEventSink, RenewalEvent
from .exceptions import ConfigurationError
from .logging import get_logger
from .schemas import Credential

if TYPE_CHECKING:
    from .client import VaultPKIClient

logger = get_logger(__name__)

# Fraction of the remaining lifetime to wait before re-issuing
RENEWAL_FRACTION = 0.9
# Fixed delay before retrying a failed issuance
RETRY_DELAY_SECONDS = 10.0

UpdateCallback = Callable[[Optional[BaseException], Optional[Credential]], None]


@dataclass
class RenewalSubscription:
    """What to keep issued, and who to tell about it."""
    role: str
    common_name: str
    ttl: int
    on_update: UpdateCallback
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.role:
            raise ConfigurationError("role must not be empty")
        if not self.common_name:
            raise ConfigurationError("common_name must not be empty")
        if isinstance(self.ttl, bool) or not isinstance(self.ttl, int) or self.ttl <= 0:
            raise ConfigurationError(f"ttl must be a positive number of seconds, got {self.ttl!r}")
        if not callable(self.on_update):
            raise ConfigurationError("on_update must be callable")


class CancellationToken:
    """Stops one or more renewal loops; wakes them if they are waiting."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds; True if cancelled."""
        return self._event.wait(timeout)


def next_delay(error: Optional[BaseException], credential: Optional[Credential]) -> float:
    """Seconds to wait before the next issuance, from the outcome just observed."""
    if error is not None or credential is None:
        return RETRY_DELAY_SECONDS
    return max(0.0, credential.expires_in * RENEWAL_FRACTION)


class RenewalLoop:
    """
    Sequential renewal loop for a single subscription.

    Never two issuances in flight: each cycle is scheduled only after the
    previous one's outcome has been delivered.
    """

    def __init__(
        self,
        client: "VaultPKIClient",
        subscription: RenewalSubscription,
        cancel_token: Optional[CancellationToken] = None,
        event_sink: Optional[EventSink] = None,
    ):
        self.client = client
        self.subscription = subscription
        self.cancel_token = cancel_token or CancellationToken()
        self.event_sink = event_sink or LoggingEventSink()

        self.cycles = 0
        self.last_credential: Optional[Credential] = None
        self.last_error: Optional[BaseException] = None

    def _emit(self, name: str, **attributes) -> None:
        try:
            self.event_sink(RenewalEvent(name=name, common_name=self.subscription.common_name, attributes=attributes))
        except Exception as e:
            logger.error(f"Event sink failed on {name}: {e}")

    def _issue(self):
        sub = self.subscription
        try:
            credential = self.client.issue(sub.role, sub.common_name, sub.ttl, sub.extra_fields)
        except Exception as e:
            self._emit(events.ISSUE_FAILED, error=str(e))
            return e, None
        self._emit(events.ISSUED, serial=credential.serial, expires_in=credential.expires_in)
        return None, credential

    def _deliver(self, error: Optional[BaseException], credential: Optional[Credential]) -> None:
        try:
            self.subscription.on_update(error, credential)
        except Exception as e:
            logger.exception(f"on_update raised for {self.subscription.common_name}")
            self._emit(events.SUBSCRIBER_FAILED, error=str(e))

    def run_cycle(self) -> float:
        """
        Run one issue-and-deliver cycle.

        Returns:
            Delay in seconds before the next cycle should start
        """
        error, credential = self._issue()
        if credential is not None:
            self.last_credential = credential
        self.last_error = error

        self._deliver(error, credential)
        self.cycles += 1

        delay = next_delay(error, credential)
        self._emit(events.RENEWAL_SCHEDULED, delay_seconds=delay, retry=error is not None)
        return delay

    def run(self) -> None:
        """Cycle until cancelled."""
        while not self.cancel_token.cancelled:
            delay = self.run_cycle()
            if self.cancel_token.wait(delay):
                break
        self._emit(events.RENEWAL_CANCELLED, cycles=self.cycles)


class RenewalHandle:
    """Handle to a running renewal loop."""

    def __init__(self, loop: RenewalLoop, thread: threading.Thread):
        self.loop = loop
        self.thread = thread

    def cancel(self) -> None:
        """Stop the loop before its next cycle."""
        self.loop.cancel_token.cancel()

    @property
    def cancelled(self) -> bool:
        return self.loop.cancel_token.cancelled

    def is_alive(self) -> bool:
        return self.thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> None:
        self.thread.join(timeout)


def start_renewal(
    client: "VaultPKIClient",
    subscription: RenewalSubscription,
    *,
    cancel_token: Optional[CancellationToken] = None,
    event_sink: Optional[EventSink] = None,
) -> RenewalHandle:
    """
    Start renewing a certificate in the background.

    Returns immediately. The first issuance happens right away; the loop
    keeps running until the returned handle is cancelled.
    """
    loop = RenewalLoop(client, subscription, cancel_token=cancel_token, event_sink=event_sink)
    thread = threading.Thread(
        target=loop.run,
        name=f"vault-pki-renew-{subscription.common_name}",
        daemon=True,
    )
    thread.start()
    logger.info(f"Started renewal for {subscription.common_name} (role={subscription.role})")
    return RenewalHandle(loop, thread)
