"""
Shared infrastructure for the notifier.

This package contains the pieces the notifier and the HTTP API both use:
- NotificationRecord, the persisted form of a notification
- NotificationStore, a transactional in-memory store
- Delivery sinks that record what was sent
"""

from shared.models import NotificationRecord, serialize_event
from shared.data_store import (
    ManagedTransactionError,
    NotificationStore,
    ReadOnlyTransaction,
    StoreError,
    Tx,
)
from shared.channels import CapturingSink, DeliveryError, DeliveryResult

__all__ = [
    "NotificationRecord",
    "serialize_event",
    "NotificationStore",
    "Tx",
    "StoreError",
    "ReadOnlyTransaction",
    "ManagedTransactionError",
    "CapturingSink",
    "DeliveryError",
    "DeliveryResult",
]
