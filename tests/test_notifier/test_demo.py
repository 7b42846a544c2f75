"""
Smoke tests for the demo scenarios.
"""

from notifier.demo import run_backpressure_demo, run_chat_demo, run_notifications_demo


class TestDemos:
    """Each demo runs to completion and reports what it delivered."""

    def test_notifications_demo(self):
        sent = run_notifications_demo()
        assert [m.key for m in sent] == ["notification"] * 3

    def test_chat_demo(self):
        sent = run_chat_demo()
        assert [m.key for m in sent] == ["chatMessage", "messageTyping", "messageRead"]

    def test_backpressure_demo(self):
        assert run_backpressure_demo() is True
