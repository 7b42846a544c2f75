"""
Type-indexed in-process event bus.

Publishers emit event objects; subscribers receive the ones whose class they
subscribed to through a bounded queue:
- Multi-class subscriptions share one delivery queue
- Optional per-subscription filters (by field value or predicate)
- Full queues block publishers instead of dropping events
- Closing a subscription releases any publisher blocked on it
"""

from eventbus.bus import EventBus, Subscription, get_event_bus, reset_event_bus
from eventbus.errors import (
    AlreadyClosed,
    EventBusError,
    InvalidSubscriberKind,
    OptionRejected,
    SubscriptionClosed,
)
from eventbus.options import (
    DEFAULT_BUFFER_SIZE,
    SubscriptionSettings,
    buf_size,
    match,
    match_fields,
)

__all__ = [
    "EventBus",
    "Subscription",
    "get_event_bus",
    "reset_event_bus",
    "EventBusError",
    "InvalidSubscriberKind",
    "OptionRejected",
    "AlreadyClosed",
    "SubscriptionClosed",
    "DEFAULT_BUFFER_SIZE",
    "SubscriptionSettings",
    "buf_size",
    "match",
    "match_fields",
]
