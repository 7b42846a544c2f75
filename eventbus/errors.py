"""
Errors raised by the event bus.

The bus only surfaces errors at subscription time (and when reading from a
subscription that has been closed). Emitting never raises: an event with no
interested subscribers is simply dropped.
"""

from typing import Any, Optional


class EventBusError(Exception):
    """
    Root of the event bus error hierarchy.

    Attributes:
        message: Human-readable description
        code: Machine-readable slug, stable across releases
        detail: Extra context useful for logging
    """
    default_code: str = "event_bus_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        detail: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = detail or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidSubscriberKind(EventBusError):
    """A kind probe passed to subscribe() was not an event class."""
    default_code = "invalid_subscriber_kind"


class OptionRejected(EventBusError):
    """A subscription option refused the settings it was given."""
    default_code = "option_rejected"


class AlreadyClosed(EventBusError):
    """The subscription was already closed."""
    default_code = "already_closed"


class SubscriptionClosed(EventBusError):
    """Raised when reading from a subscription that has been closed and drained."""
    default_code = "subscription_closed"
