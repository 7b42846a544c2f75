"""
Persistence models for the notifier.

A NotificationRecord wraps one notification-class event with the metadata
the store and clients need. The event itself is kept as pretty-printed JSON
so the record suits the store as-is and can be handed to clients in the same
shape it was delivered in.

Design decisions:
- Using Pydantic for validation and serialization, like the events
- The serialized event is canonical: 4-space indent, fields in declaration
  order, wire aliases
- Records are written once by the notifier; only `read` changes later, and
  that is done by the store replacing the record
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def serialize_event(event: BaseModel) -> bytes:
    """
    Serialize an event to its canonical stored form.

    Raises:
        pydantic_core.PydanticSerializationError: If a field cannot be encoded
    """
    return event.model_dump_json(indent=4, by_alias=True).encode("utf-8")


class NotificationRecord(BaseModel):
    """
    A persisted notification.

    Attributes:
        id: Notification identifier, the same value stamped on the event
        timestamp: When the notifier stored it (UTC)
        read: Whether the user has seen it
        notification: The serialized event
        type: Kind tag of the event, used to decode it again
    """
    id: str = Field(..., min_length=1, description="Notification identifier")
    timestamp: datetime = Field(default_factory=utc_now)
    read: bool = Field(default=False)
    notification: bytes = Field(..., description="Serialized event JSON")
    type: str = Field(default="", description="Kind tag of the event")

    @classmethod
    def from_event(
        cls,
        event: BaseModel,
        notification_id: str,
        tag: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "NotificationRecord":
        """Build an unread record for an (already enriched) event."""
        return cls(
            id=notification_id,
            timestamp=timestamp or utc_now(),
            read=False,
            notification=serialize_event(event),
            type=tag or type(event).__name__,
        )

    def decode(self) -> BaseModel:
        """
        Rebuild the event this record was made from.

        Raises:
            ValueError: If the kind tag is unknown or the payload is invalid
        """
        from notifier.events import kind_for_tag

        kind = kind_for_tag(self.type)
        if kind is None:
            raise ValueError(f"Unknown notification type: {self.type!r}")
        return kind.model_validate_json(self.notification)

    def to_summary(self) -> dict[str, Any]:
        """Metadata without the payload, for listings."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
            "type": self.type,
        }
