"""
In-process, type-indexed event bus.

Publishers emit plain event objects; subscribers ask for the event classes
they care about and read matching events from a bounded queue.

Design decisions:
- Routing key is the exact runtime class of the event (no subclass matching)
- One subscription can cover several classes; they share a single queue
- Each subscription has a bounded queue. A full queue blocks the publisher
  (backpressure), it never drops the event
- A single bus lock is held for the whole of emit(), so every target of one
  emit receives it before any other emit is dispatched
- close() drains the queue from a helper thread while it detaches the
  subscription, so a publisher blocked on this subscription always completes

Example:
    bus = EventBus()

    with bus.subscribe([NewOrder, OrderFunded]) as sub:
        bus.emit(NewOrder(order_id="ord-001"))
        event = sub.get(timeout=1)
"""

import logging
import queue
import threading
from collections import defaultdict
from typing import Any, Iterator, Optional

from eventbus.errors import InvalidSubscriberKind, OptionRejected, SubscriptionClosed
from eventbus.options import SubscriptionOption, SubscriptionSettings

logger = logging.getLogger("event_bus")

# Marks a closed delivery queue. Every reader that takes it puts it back so
# that all blocked readers wake up.
_CLOSED = object()


class Subscription:
    """
    A live subscription to one or more event classes.

    Events of any of the subscribed classes arrive on one queue in the order
    the bus dispatched them. Consumers are expected to check the class of
    each event they read.

    Example:
        sub = bus.subscribe([ChatMessage, ChatTyping])
        for event in sub:
            if isinstance(event, ChatMessage):
                ...
    """

    def __init__(self, kinds: tuple[type, ...], settings: SubscriptionSettings, drop):
        self.kinds = kinds
        self.buffer_size = settings.buffer
        self._settings = settings
        self._queue: queue.Queue = queue.Queue(maxsize=settings.buffer)
        self._drop = drop
        self._state_lock = threading.Lock()
        self._closed = False

    def __repr__(self) -> str:
        names = ", ".join(kind.__name__ for kind in self.kinds)
        state = "closed" if self._closed else "open"
        return f"Subscription([{names}], buffer={self.buffer_size}, {state})"

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[Any]:
        return self.stream()

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed

    def accepts(self, event: Any) -> bool:
        """Check the subscription's filters against an event."""
        return self._settings.accepts(event)

    def deliver(self, event: Any) -> None:
        """
        Put an event on the delivery queue.

        Blocks while the queue is full. Only the bus calls this, with the bus
        lock held.
        """
        self._queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Any:
        """
        Wait for the next event.

        Args:
            timeout: Seconds to wait, or None to wait forever

        Raises:
            queue.Empty: If no event arrived within the timeout
            SubscriptionClosed: If the subscription has been closed
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._queue.put(item)
            raise SubscriptionClosed(f"{self!r} is closed")
        return item

    def stream(self) -> Iterator[Any]:
        """Yield events until the subscription is closed."""
        while True:
            try:
                event = self.get()
            except SubscriptionClosed:
                return
            yield event

    def close(self) -> None:
        """
        Detach from the bus and close the delivery queue.

        Safe to call more than once; later calls do nothing. Events still
        queued are discarded, and a publisher blocked on this subscription
        is released.
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True

        # Keep consuming until the close marker comes through, so a publisher
        # holding the bus lock while blocked on our queue can finish and the
        # detach below can take the lock.
        threading.Thread(
            target=self._drain,
            name=f"drain-{id(self):x}",
            daemon=True,
        ).start()

        self._drop(self)
        self._queue.put(_CLOSED)
        logger.debug(f"Closed {self!r}")

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                self._queue.put(item)
                return


class EventBus:
    """
    Type-indexed pub/sub bus with bounded, blocking delivery.

    Subscribers are kept per event class in registration order, which is the
    order emit() visits them in.

    Example:
        bus = EventBus()
        sub = bus.subscribe(NewOrder, buf_size(32))

        bus.emit(NewOrder(order_id="ord-001"))   # delivered to sub
        bus.emit(ChatTyping())                   # nobody listening, dropped

        sub.close()
    """

    def __init__(self):
        self._lock = threading.Lock()
        # event class -> live subscriptions, oldest first
        self._subs: dict[type, list[Subscription]] = defaultdict(list)

    def subscribe(self, kinds: Any, *opts: SubscriptionOption) -> Subscription:
        """
        Create a subscription to one event class or a list of them.

        Args:
            kinds: An event class, or a list/tuple of event classes
            *opts: Subscription options such as buf_size() or match_fields()

        Returns:
            The new Subscription. Failing to drain it makes publishers block.

        Raises:
            InvalidSubscriberKind: If kinds is empty or holds something other
                than a class (for example an event instance)
            OptionRejected: If an option raised while being applied
        """
        settings = SubscriptionSettings()
        for opt in opts:
            try:
                opt(settings)
            except Exception as e:
                raise OptionRejected(
                    f"Subscription option rejected: {e}",
                    detail={"option": getattr(opt, "__qualname__", repr(opt))},
                ) from e

        probes = list(kinds) if isinstance(kinds, (list, tuple)) else [kinds]
        if not probes:
            raise InvalidSubscriberKind("subscribe called with no event kinds")
        for probe in probes:
            if not isinstance(probe, type):
                raise InvalidSubscriberKind(
                    f"subscribe called with a {type(probe).__name__} instance; "
                    "pass the event class instead",
                    detail={"probe": repr(probe)},
                )

        # A class listed twice still gets a single queue entry per emit
        unique_kinds = tuple(dict.fromkeys(probes))
        sub = Subscription(unique_kinds, settings, self._drop_subscriber)

        with self._lock:
            for kind in unique_kinds:
                self._subs[kind].append(sub)

        logger.debug(f"Subscribed {sub!r}")
        return sub

    def emit(self, event: Any) -> None:
        """
        Deliver an event to every matching subscription.

        Blocks while any matching subscription's queue is full, holding the
        bus lock, so a stalled consumer stalls every publisher. Events with
        no matching subscription are dropped without error.
        """
        kind = type(event)
        with self._lock:
            sinks = self._subs.get(kind)
            if not sinks:
                logger.debug(f"No subscribers for {kind.__name__}")
                return

            for sub in sinks:
                try:
                    wanted = sub.accepts(event)
                except Exception as e:
                    logger.error(f"Filter raised for {kind.__name__} on {sub!r}: {e}")
                    continue
                if wanted:
                    sub.deliver(event)

    def subscriber_count(self, kind: type) -> int:
        """Get the number of live subscriptions for an event class."""
        with self._lock:
            return len(self._subs.get(kind, []))

    def _drop_subscriber(self, sub: Subscription) -> None:
        with self._lock:
            for kind in sub.kinds:
                sinks = self._subs.get(kind)
                if sinks is None:
                    continue
                for i, existing in enumerate(sinks):
                    if existing is sub:
                        del sinks[i]
                        break
                if not sinks:
                    del self._subs[kind]


# Module-level default bus
# The HTTP API publishes on this bus; tests create their own or call reset_event_bus()
_default_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get the default event bus singleton."""
    global _default_bus
    if _default_bus is None:
        _default_bus = EventBus()
    return _default_bus


def reset_event_bus(bus: Optional[EventBus] = None) -> EventBus:
    """Replace the default event bus with bus, or with a fresh one."""
    global _default_bus
    _default_bus = bus if bus is not None else EventBus()
    return _default_bus
