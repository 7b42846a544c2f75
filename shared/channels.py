"""
Delivery sinks for the notifier.

The notifier hands every wrapped event to a single delivery function. In a
real node that function pushes JSON to connected websocket clients; here the
sinks log the payload and keep it for inspection.

Design decisions:
- A sink is any callable taking one wrapper and raising on failure
- Sinks track what they delivered for test assertions and the /deliveries
  endpoint
- Failures can be simulated for testing error handling
"""

import json
import logging
import queue
import random
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger("delivery")


class DeliveryError(Exception):
    """A sink failed to deliver a payload."""


def to_payload(wrapper: Any) -> dict[str, Any]:
    """Convert a wrapper to the JSON-equivalent dict a client receives."""
    if hasattr(wrapper, "to_payload"):
        return wrapper.to_payload()
    return dict(wrapper)


@dataclass
class DeliveryResult:
    """
    Result of one delivery attempt.

    Attributes:
        success: Whether the payload was accepted
        key: The single top-level key of the payload (e.g. "notification")
        payload: The JSON-equivalent payload
        wrapper: The wrapper object as handed to the sink
        error: Failure description, if any
    """
    success: bool
    key: str
    payload: dict[str, Any]
    wrapper: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        return f"{status} {self.key}"


class CapturingSink:
    """
    Delivery sink that logs and records every payload.

    Can simulate failures for testing error handling, and can forward every
    wrapper to a queue so tests can wait on deliveries.

    Example:
        sink = CapturingSink()
        notifier = Notifier(bus, store, sink)
        ...
        sink.wait_for(3, timeout=5)
        assert sink.find_by_key("chatMessage")
    """

    def __init__(self, fail_rate: float = 0.0, forward_to: Optional[queue.Queue] = None):
        """
        Args:
            fail_rate: Probability of a delivery failure (0.0 to 1.0)
            forward_to: Queue that receives every successfully delivered wrapper
        """
        self.fail_rate = fail_rate
        self.forward_to = forward_to
        self.sent_messages: list[DeliveryResult] = []
        self._cond = threading.Condition()

    def __call__(self, wrapper: Any) -> None:
        self.send(wrapper)

    def send(self, wrapper: Any) -> DeliveryResult:
        """
        Deliver one wrapper.

        Raises:
            DeliveryError: When a failure is simulated
        """
        payload = to_payload(wrapper)
        key = next(iter(payload), "")

        if random.random() < self.fail_rate:
            result = DeliveryResult(
                success=False,
                key=key,
                payload=payload,
                wrapper=wrapper,
                error="Simulated delivery failure",
            )
            self._record(result)
            logger.error(f"[DELIVERY FAILED] {key} | Error: {result.error}")
            raise DeliveryError(result.error)

        result = DeliveryResult(success=True, key=key, payload=payload, wrapper=wrapper)
        self._record(result)
        logger.info(f"[DELIVERY] {key}")
        logger.debug(f"[DELIVERY BODY] {json.dumps(payload, default=str)}")
        if self.forward_to is not None:
            self.forward_to.put(wrapper)
        return result

    def _record(self, result: DeliveryResult) -> None:
        with self._cond:
            self.sent_messages.append(result)
            self._cond.notify_all()

    def get_sent_count(self) -> int:
        """Get the number of delivery attempts (for testing)."""
        with self._cond:
            return len(self.sent_messages)

    def get_successful_sends(self) -> list[DeliveryResult]:
        """Get all successful deliveries."""
        with self._cond:
            return [m for m in self.sent_messages if m.success]

    def find_by_key(self, key: str) -> list[DeliveryResult]:
        """Find deliveries whose payload key matches (e.g. "chatMessage")."""
        with self._cond:
            return [m for m in self.sent_messages if m.key == key]

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        """Wait until at least count delivery attempts were made."""
        deadline = time.monotonic() + timeout
        with self._cond:
            while len(self.sent_messages) < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def clear_history(self):
        """Clear delivery history (useful between tests)."""
        with self._cond:
            self.sent_messages.clear()

