"""
Subscription options.

An option is any callable that takes the pending SubscriptionSettings and
either adjusts them or raises to reject the subscription. The bus wraps
whatever an option raises in OptionRejected.

Example:
    sub = bus.subscribe(
        [NewOrder, OrderFunded],
        buf_size(64),
        match_fields({"order_id": "ord-001"}),
    )
"""

from dataclasses import dataclass, field
from typing import Any, Callable

# Capacity of a subscription's delivery queue when no buf_size option is given
DEFAULT_BUFFER_SIZE = 16

# Predicate deciding whether an event should be delivered to a subscription
EventPredicate = Callable[[Any], bool]


@dataclass
class SubscriptionSettings:
    """
    Settings collected while building a subscription.

    Attributes:
        buffer: Capacity of the delivery queue
        filters: Predicates that must all accept an event for it to be delivered
    """
    buffer: int = DEFAULT_BUFFER_SIZE
    filters: list[EventPredicate] = field(default_factory=list)

    def accepts(self, event: Any) -> bool:
        """Check every configured filter against an event."""
        return all(predicate(event) for predicate in self.filters)


SubscriptionOption = Callable[[SubscriptionSettings], None]


def buf_size(n: int) -> SubscriptionOption:
    """
    Set the capacity of the subscription's delivery queue.

    Publishers block once the queue holds n undelivered events.

    Raises (when applied):
        ValueError: If n is not a positive integer
    """
    def apply(settings: SubscriptionSettings) -> None:
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise ValueError(f"buffer size must be a positive integer, got {n!r}")
        settings.buffer = n
    return apply


def field_value(event: Any, name: str) -> str:
    """
    Read a field from an event by name, as a string.

    Missing fields (and fields set to None) read as the empty string.
    """
    value = getattr(event, name, None)
    if value is None:
        return ""
    return str(value)


def match_fields(field_values: dict[str, str]) -> SubscriptionOption:
    """
    Only deliver events whose named fields equal the given string values.

    All pairs must match. Comparison is exact on the string form of the
    field value.
    """
    expected = dict(field_values)

    def predicate(event: Any) -> bool:
        for name, value in expected.items():
            if field_value(event, name) != value:
                return False
        return True

    def apply(settings: SubscriptionSettings) -> None:
        if not all(isinstance(name, str) for name in expected):
            raise TypeError("match_fields keys must be field names")
        settings.filters.append(predicate)
    return apply


def match(predicate: EventPredicate) -> SubscriptionOption:
    """Only deliver events accepted by predicate."""
    def apply(settings: SubscriptionSettings) -> None:
        if not callable(predicate):
            raise TypeError(f"match() needs a callable, got {type(predicate).__name__}")
        settings.filters.append(predicate)
    return apply
