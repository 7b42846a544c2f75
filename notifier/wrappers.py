"""
Envelopes handed to the delivery sink.

Each wrapper has exactly one top-level key naming the class of event it
carries, so clients can dispatch on the key alone:

    {"notification": {...}}    persisted notification-class events
    {"chatMessage": {...}}     ChatMessage
    {"messageRead": {...}}     ChatRead
    {"messageTyping": {...}}   ChatTyping
    {"wallet": {...}}          wallet/chain events
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from notifier.events import (
    BlockReceived,
    ChatMessage,
    ChatRead,
    ChatTyping,
    IncomingTransaction,
    SpendFromPaymentAddress,
    TransactionReceived,
)


class Wrapper(BaseModel):
    """Base for delivery envelopes."""
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    def to_payload(self) -> dict[str, Any]:
        """The JSON-equivalent dict clients receive."""
        return self.model_dump(mode="json", by_alias=True)


class NotificationWrapper(Wrapper):
    notification: Any


class ChatMessageWrapper(Wrapper):
    chat_message: Any = Field(alias="chatMessage")


class MessageReadWrapper(Wrapper):
    message_read: Any = Field(alias="messageRead")


class MessageTypingWrapper(Wrapper):
    message_typing: Any = Field(alias="messageTyping")


class WalletWrapper(Wrapper):
    wallet: Any


_CHAT_WRAPPERS: dict[type, Callable[[Any], Wrapper]] = {
    ChatMessage: lambda event: ChatMessageWrapper(chat_message=event),
    ChatRead: lambda event: MessageReadWrapper(message_read=event),
    ChatTyping: lambda event: MessageTypingWrapper(message_typing=event),
}

# Inner key used inside the wallet envelope
_WALLET_KEYS: dict[type, str] = {
    BlockReceived: "block",
    TransactionReceived: "transaction",
    SpendFromPaymentAddress: "transaction",
    IncomingTransaction: "transaction",
}


def wrap_chat(event: Any) -> Optional[Wrapper]:
    """Wrap a chat event for delivery, or None if it is not a chat event."""
    wrap = _CHAT_WRAPPERS.get(type(event))
    if wrap is None:
        return None
    return wrap(event)


def wrap_wallet(event: Any) -> Optional[WalletWrapper]:
    """
    Wrap a wallet event for delivery, or None if it is not a wallet event.

    Blocks arrive as {"wallet": {"block": ...}}; every kind of transaction
    as {"wallet": {"transaction": ...}}.
    """
    key = _WALLET_KEYS.get(type(event))
    if key is None:
        return None
    return WalletWrapper(wallet={key: event})

