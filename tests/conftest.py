"""
Shared pytest fixtures for the event bus and notifier tests.

These fixtures provide fresh buses, stores and sinks so tests never share
state.
"""

import pytest

from eventbus import EventBus
from notifier.notifier import Notifier
from shared.channels import CapturingSink
from shared.data_store import NotificationStore


@pytest.fixture
def bus() -> EventBus:
    """Fresh EventBus for each test."""
    return EventBus()


@pytest.fixture
def store() -> NotificationStore:
    """Fresh, empty NotificationStore for each test."""
    return NotificationStore()


@pytest.fixture
def sink() -> CapturingSink:
    """Delivery sink that never fails."""
    return CapturingSink(fail_rate=0.0)


@pytest.fixture
def notifier(bus: EventBus, store: NotificationStore, sink: CapturingSink):
    """
    A running Notifier wired to the bus, store and sink fixtures.

    Waits for readiness so events emitted by the test are not missed, and
    stops the notifier afterwards.
    """
    n = Notifier(bus, store, sink)
    n.start()
    assert n.started.wait(timeout=5), "notifier did not start"
    yield n
    n.stop()


# =============================================================================
# Identity Fixtures
# =============================================================================

@pytest.fixture
def order_id() -> str:
    """Order ID used across order and dispute scenarios."""
    return "ord-001"


@pytest.fixture
def peer_id() -> str:
    """Peer ID of the remote node in chat and follow scenarios."""
    return "QmYwAPJzv5CZsnAzt8auVZRn1pfejnmq6jwZQT8hMtQDpE"
