"""
Demonstration scripts for the event bus and notifier.

These functions show the bus and the notifier in action. Run them to see
events being emitted, notifications being stored and payloads being
delivered.
"""

import logging
import threading
import time

from eventbus import EventBus, buf_size
from notifier.events import ChatMessage, ChatRead, ChatTyping, DisputeOpen, Follow, NewOrder
from notifier.notifier import Notifier
from shared.channels import CapturingSink
from shared.data_store import NotificationStore

# Configure logging to see what's happening
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)


def _start_notifier() -> tuple[EventBus, NotificationStore, CapturingSink, Notifier]:
    bus = EventBus()
    store = NotificationStore()
    sink = CapturingSink()
    notifier = Notifier(bus, store, sink)
    notifier.start()
    notifier.started.wait(timeout=5)
    return bus, store, sink, notifier


def run_notifications_demo():
    """
    Demonstrate notification-class events.

    This shows:
    1. A publisher emits order, dispute and follow events
    2. The notifier stamps an id and kind tag on each
    3. The notifier stores a record, then delivers {"notification": ...}
    """
    print("\n" + "=" * 70)
    print("DEMO: Order, dispute and follow notifications")
    print("=" * 70 + "\n")

    bus, store, sink, notifier = _start_notifier()

    print("-" * 70)
    print("ACTION: Emitting NewOrder, DisputeOpen and Follow")
    print("-" * 70 + "\n")

    bus.emit(NewOrder(order_id="ord-001", buyer_handle="@alice", title="Wireless Router"))
    bus.emit(DisputeOpen(order_id="ord-001", disputer_handle="@alice"))
    bus.emit(Follow(peer_id="QmPeer"))
    sink.wait_for(3, timeout=5)

    print("\nStored notifications:")
    for record in store.list_notifications():
        print(f"  {record.type:<16} {record.id}")

    print("\nDelivered:")
    for msg in sink.get_successful_sends():
        print(f"  {msg}")

    notifier.stop()
    return sink.get_successful_sends()


def run_chat_demo():
    """
    Demonstrate chat events.

    Chat events are wrapped by kind and delivered without being stored.
    """
    print("\n" + "=" * 70)
    print("DEMO: Chat delivery")
    print("=" * 70 + "\n")

    bus, store, sink, notifier = _start_notifier()

    bus.emit(ChatMessage(peer_id="QmPeer", message="Is this still available?"))
    bus.emit(ChatTyping(peer_id="QmPeer"))
    bus.emit(ChatRead(peer_id="QmPeer", message_id="msg-1"))
    sink.wait_for(3, timeout=5)

    print("\nDelivered:")
    for msg in sink.get_successful_sends():
        print(f"  {msg}")
    print(f"\nStored notifications: {store.count()}")

    notifier.stop()
    return sink.get_successful_sends()


def run_backpressure_demo():
    """
    Demonstrate backpressure and close.

    A subscription with room for one event is never read. The second emit
    blocks until the subscription is closed.
    """
    print("\n" + "=" * 70)
    print("DEMO: Backpressure")
    print("=" * 70 + "\n")

    bus = EventBus()
    sub = bus.subscribe(Follow, buf_size(1))

    bus.emit(Follow(peer_id="first"))
    print("First emit returned (buffer now full)")

    publisher = threading.Thread(target=bus.emit, args=(Follow(peer_id="second"),))
    publisher.start()
    time.sleep(0.2)
    print(f"Second emit blocked: {publisher.is_alive()}")

    sub.close()
    publisher.join(timeout=5)
    print(f"After close, second emit blocked: {publisher.is_alive()}")
    return not publisher.is_alive()


if __name__ == "__main__":
    run_notifications_demo()
    run_chat_demo()
    run_backpressure_demo()
