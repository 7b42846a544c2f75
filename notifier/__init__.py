"""
Notifier pipeline.

This package turns selected bus events into user notifications:
- The event catalog published on the bus
- Delivery wrappers (the single-key envelopes clients receive)
- The Notifier loop: enrich, persist, deliver
"""

from notifier.notifier import Notifier, convert_to_notification, new_notification_id
from notifier.wrappers import (
    ChatMessageWrapper,
    MessageReadWrapper,
    MessageTypingWrapper,
    NotificationWrapper,
    WalletWrapper,
    wrap_chat,
    wrap_wallet,
)

__all__ = [
    "Notifier",
    "convert_to_notification",
    "new_notification_id",
    "NotificationWrapper",
    "ChatMessageWrapper",
    "MessageReadWrapper",
    "MessageTypingWrapper",
    "WalletWrapper",
    "wrap_chat",
    "wrap_wallet",
]
