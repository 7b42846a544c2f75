"""
Notifier: turns bus events into persisted, delivered user notifications.

The notifier holds two subscriptions for its whole lifetime:
- Notification-class events (orders, disputes, follows). Each one gets a
  fresh id and its kind tag written onto it, is stored as a
  NotificationRecord, and is then delivered as {"notification": event}
- Chat events. These are wrapped by kind and delivered straight away, with
  no id and no persistence

Design decisions:
- One loop thread handles every event, so handling is strictly sequential
- Each subscription is pumped by its own thread into a shared bounded inbox;
  the loop waits on that inbox, which also carries the shutdown marker
- Storage happens before delivery. If storing fails the event is not
  delivered
- Failures are logged and the loop moves on. There are no retries

Example:
    sink = CapturingSink()
    notifier = Notifier(bus, store, sink)
    notifier.start()            # runs the loop on a background thread

    bus.emit(NewOrder(order_id="ord-001"))
    ...
    notifier.stop()
"""

import logging
import queue
import secrets
import threading
from typing import Any, Callable, Iterable, Optional

from eventbus import DEFAULT_BUFFER_SIZE, EventBus, EventBusError, Subscription
from notifier.events import (
    CHAT_KINDS,
    NOTIFICATION_KINDS,
    NotifierStarted,
    kind_tag,
)
from notifier.wrappers import NotificationWrapper, wrap_chat
from shared.data_store import NotificationStore
from shared.models import NotificationRecord

logger = logging.getLogger("notifier")

# Delivery function: receives one wrapper, raises on failure
NotifyFunc = Callable[[Any], None]

# Number of random bytes in a notification id (160 bits)
NOTIFICATION_ID_BYTES = 20

_NOTIFICATIONS = "notifications"
_CHATS = "chats"
_SHUTDOWN = object()


def new_notification_id() -> str:
    """Generate a 40 character lowercase hex notification id."""
    return secrets.token_hex(NOTIFICATION_ID_BYTES)


def convert_to_notification(event: Any) -> str:
    """
    Stamp a fresh id and the kind tag onto a notification-class event.

    Events of any other kind are left untouched. The generated id is
    returned either way.
    """
    notification_id = new_notification_id()
    tag = kind_tag(event)
    if tag is not None:
        event.id = notification_id
        event.typ = tag
    return notification_id


class Notifier:
    """
    Bridges bus events to the store and the delivery sink.

    Attributes:
        started: Set once both subscriptions exist and NotifierStarted has
            been emitted
    """

    def __init__(self, bus: EventBus, store: NotificationStore, notify_func: NotifyFunc):
        """
        Args:
            bus: Bus to subscribe to
            store: Store providing update(fn) transactions
            notify_func: Delivery sink called with each wrapper
        """
        self.bus = bus
        self.store = store
        self.notify_func = notify_func

        self.started = threading.Event()
        self._shutdown = threading.Event()
        self._inbox: queue.Queue = queue.Queue(maxsize=DEFAULT_BUFFER_SIZE)
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        """True between readiness and shutdown."""
        return self.started.is_set() and not self._shutdown.is_set()

    def start(self) -> threading.Thread:
        """Run the notifier loop on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Notifier already started")
            return self._thread

        if self._thread is not None:
            # Restart after stop(): the previous loop has exited
            self.started.clear()
            self._shutdown.clear()
            self._inbox = queue.Queue(maxsize=DEFAULT_BUFFER_SIZE)

        self._thread = threading.Thread(target=self.run, name="notifier", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """
        Shut the notifier down.

        The loop sees the signal on its next wait. Events already taken off
        the subscriptions but not yet handled are dropped.
        """
        if self._shutdown.is_set():
            return
        self._shutdown.set()
        try:
            self._inbox.put_nowait((None, _SHUTDOWN))
        except queue.Full:
            # The loop checks the shutdown flag after every event it takes
            pass

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(f"Notifier did not stop within {timeout}s")

    def run(self) -> None:
        """
        Subscribe, announce readiness and handle events until stop().

        Blocks the calling thread; use start() to run it in the background.
        """
        subscriptions: list[tuple[str, Subscription]] = []
        for source, kinds in ((_NOTIFICATIONS, NOTIFICATION_KINDS), (_CHATS, CHAT_KINDS)):
            sub = self._subscribe(kinds)
            if sub is not None:
                subscriptions.append((source, sub))

        for source, sub in subscriptions:
            threading.Thread(
                target=self._pump,
                args=(source, sub),
                name=f"notifier-{source}",
                daemon=True,
            ).start()

        self.bus.emit(NotifierStarted())
        self.started.set()
        logger.info("Notifier started")

        try:
            while not self._shutdown.is_set():
                source, event = self._inbox.get()
                if event is _SHUTDOWN or self._shutdown.is_set():
                    break
                if source == _NOTIFICATIONS:
                    self._handle_notification(event)
                elif source == _CHATS:
                    self._handle_chat(event)
        finally:
            self._shutdown.set()
            for _, sub in subscriptions:
                sub.close()
            logger.info("Notifier stopped")

    # =========================================================================
    # Event Handlers
    # =========================================================================

    def _handle_notification(self, event: Any) -> None:
        """Enrich, store and deliver one notification-class event."""
        notification_id = convert_to_notification(event)

        try:
            record = NotificationRecord.from_event(
                event,
                notification_id,
                tag=kind_tag(event),
            )
        except Exception as e:
            logger.error(f"Error serializing notification {notification_id}: {e}")
            return

        try:
            self.store.update(lambda tx: tx.save(record))
        except Exception as e:
            logger.error(f"Error saving notification to the database: {e}")
            return

        logger.debug(f"Stored {record.type} notification {notification_id}")
        self._deliver(NotificationWrapper(notification=event))

    def _handle_chat(self, event: Any) -> None:
        """Deliver one chat event in its kind-specific wrapper."""
        wrapper = wrap_chat(event)
        if wrapper is None:
            logger.warning(f"Ignoring unexpected event on chat subscription: {type(event).__name__}")
            return
        self._deliver(wrapper)

    def _deliver(self, wrapper: Any) -> None:
        try:
            self.notify_func(wrapper)
        except Exception as e:
            logger.error(f"Error sending notification: {e}")

    # =========================================================================
    # Plumbing
    # =========================================================================

    def _subscribe(self, kinds: Iterable[type]) -> Optional[Subscription]:
        try:
            return self.bus.subscribe(list(kinds))
        except EventBusError as e:
            logger.error(f"Error subscribing to events: {e}")
            return None

    def _pump(self, source: str, sub: Subscription) -> None:
        """Move events from a subscription into the inbox until it closes."""
        for event in sub:
            while not self._shutdown.is_set():
                try:
                    self._inbox.put((source, event), timeout=0.1)
                    break
                except queue.Full:
                    continue
            else:
                return
