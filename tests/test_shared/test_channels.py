"""
Tests for the delivery sinks.
"""

import queue
import threading

import pytest

from notifier.events import ChatTyping, NewOrder
from notifier.wrappers import MessageTypingWrapper, NotificationWrapper
from shared.channels import CapturingSink, DeliveryError, to_payload


class TestToPayload:
    """Tests for converting wrappers to payloads."""

    def test_wrapper(self):
        payload = to_payload(MessageTypingWrapper(message_typing=ChatTyping(peer_id="QmPeer")))
        assert payload == {"messageTyping": {"peerID": "QmPeer", "orderID": ""}}

    def test_plain_mapping(self):
        assert to_payload({"wallet": {}}) == {"wallet": {}}


class TestCapturingSink:
    """Tests for CapturingSink."""

    def test_send_success(self, sink: CapturingSink):
        """Test that a delivery is recorded with its key."""
        result = sink.send(NotificationWrapper(notification=NewOrder()))

        assert result.success
        assert result.key == "notification"
        assert sink.get_sent_count() == 1
        assert str(result) == "✓ notification"

    def test_callable(self, sink: CapturingSink):
        """Test that the sink can be used directly as a delivery function."""
        sink(MessageTypingWrapper(message_typing=ChatTyping()))
        assert len(sink.find_by_key("messageTyping")) == 1

    def test_simulated_failure(self):
        """Test that failures are recorded and raised."""
        sink = CapturingSink(fail_rate=1.0)

        with pytest.raises(DeliveryError):
            sink(NotificationWrapper(notification=NewOrder()))

        assert sink.get_sent_count() == 1
        assert sink.get_successful_sends() == []
        assert sink.sent_messages[0].error == "Simulated delivery failure"

    def test_forward_to_queue(self):
        """Test that delivered wrappers are forwarded unchanged."""
        forwarded: queue.Queue = queue.Queue()
        sink = CapturingSink(forward_to=forwarded)
        wrapper = NotificationWrapper(notification=NewOrder())

        sink(wrapper)

        assert forwarded.get_nowait() is wrapper

    def test_wait_for(self, sink: CapturingSink):
        """Test waiting for deliveries made on another thread."""
        sender = threading.Timer(0.05, sink, args=(MessageTypingWrapper(message_typing=ChatTyping()),))
        sender.start()

        assert sink.wait_for(1, timeout=2)
        assert not sink.wait_for(2, timeout=0.05)

    def test_clear_history(self, sink: CapturingSink):
        sink(NotificationWrapper(notification=NewOrder()))
        sink.clear_history()
        assert sink.get_sent_count() == 0
