"""
Transactional in-memory store for notification records.

The notifier only needs a narrow contract from its store: run a function
inside a managed read-write transaction, and save a record inside it. This
module provides that contract, plus the reads the HTTP API uses.

Design decisions:
- Managed transactions only: update(fn) commits when fn returns and rolls
  back when it raises (the exception propagates to the caller)
- Writes are staged on the transaction and applied in one step on commit
- One store-wide lock serializes transactions, so every transaction sees a
  consistent snapshot
- view(fn) is the read-only counterpart; writes inside it are rejected

Example:
    store = NotificationStore()
    store.update(lambda tx: tx.save(record))
    unread = store.view(lambda tx: tx.list(unread_only=True))
"""

import logging
import threading
from typing import Callable, Optional, TypeVar

from shared.models import NotificationRecord

logger = logging.getLogger("notification_store")

T = TypeVar("T")


class StoreError(Exception):
    """Base class for store failures."""


class ReadOnlyTransaction(StoreError):
    """A write was attempted inside a read-only transaction."""


class ManagedTransactionError(StoreError):
    """commit() or rollback() was called on a managed transaction."""


class Tx:
    """
    A transaction handed to update() and view() callbacks.

    Reads see the store as of the start of the transaction plus this
    transaction's own staged writes.
    """

    def __init__(self, records: dict[str, NotificationRecord], writable: bool):
        self._records = records
        self.writable = writable
        # id -> staged record, or None for a staged delete
        self._staged: dict[str, Optional[NotificationRecord]] = {}

    def _check_writable(self) -> None:
        if not self.writable:
            raise ReadOnlyTransaction("write attempted in a read-only transaction")

    def commit(self) -> None:
        raise ManagedTransactionError("managed transactions commit when the callback returns")

    def rollback(self) -> None:
        raise ManagedTransactionError("managed transactions roll back when the callback raises")

    # =========================================================================
    # Writes
    # =========================================================================

    def save(self, record: NotificationRecord) -> None:
        """Insert or replace a record."""
        self._check_writable()
        self._staged[record.id] = record

    def mark_read(self, notification_id: str) -> bool:
        """Mark one record read. Returns False if it does not exist."""
        self._check_writable()
        record = self.get(notification_id)
        if record is None:
            return False
        if not record.read:
            self._staged[notification_id] = record.model_copy(update={"read": True})
        return True

    def mark_all_read(self) -> int:
        """Mark every unread record read. Returns how many changed."""
        self._check_writable()
        changed = 0
        for record in self.list(unread_only=True):
            self._staged[record.id] = record.model_copy(update={"read": True})
            changed += 1
        return changed

    def delete(self, notification_id: str) -> bool:
        """Delete a record. Returns False if it does not exist."""
        self._check_writable()
        if self.get(notification_id) is None:
            return False
        self._staged[notification_id] = None
        return True

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, notification_id: str) -> Optional[NotificationRecord]:
        """Get a record by id."""
        if notification_id in self._staged:
            return self._staged[notification_id]
        return self._records.get(notification_id)

    def list(
        self,
        limit: Optional[int] = None,
        unread_only: bool = False,
    ) -> list[NotificationRecord]:
        """
        List records, newest first.

        Args:
            limit: Maximum number of records to return
            unread_only: Skip records already marked read
        """
        merged = dict(self._records)
        for notification_id, record in self._staged.items():
            if record is None:
                merged.pop(notification_id, None)
            else:
                merged[notification_id] = record

        # Ties keep the most recently inserted record first
        records = sorted(reversed(merged.values()), key=lambda r: r.timestamp, reverse=True)
        if unread_only:
            records = [r for r in records if not r.read]
        if limit is not None:
            records = records[:limit]
        return records

    def _apply(self) -> None:
        for notification_id, record in self._staged.items():
            if record is None:
                self._records.pop(notification_id, None)
            else:
                self._records[notification_id] = record
        self._staged.clear()


class NotificationStore:
    """
    Thread-safe in-memory notification store with managed transactions.

    Safe to share between the notifier thread and API request handlers.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._records: dict[str, NotificationRecord] = {}

    def update(self, fn: Callable[[Tx], T]) -> T:
        """
        Run fn inside a read-write transaction.

        The transaction commits when fn returns. If fn raises, every write it
        staged is discarded and the exception is re-raised.
        """
        with self._lock:
            tx = Tx(self._records, writable=True)
            try:
                result = fn(tx)
            except Exception as e:
                logger.debug(f"Rolling back transaction: {e}")
                raise
            tx._apply()
            return result

    def view(self, fn: Callable[[Tx], T]) -> T:
        """Run fn inside a read-only transaction."""
        with self._lock:
            return fn(Tx(self._records, writable=False))

    # =========================================================================
    # Convenience reads
    # =========================================================================

    def get_notification(self, notification_id: str) -> Optional[NotificationRecord]:
        """Get a record by id."""
        return self.view(lambda tx: tx.get(notification_id))

    def list_notifications(
        self,
        limit: Optional[int] = None,
        unread_only: bool = False,
    ) -> list[NotificationRecord]:
        """List records, newest first."""
        return self.view(lambda tx: tx.list(limit=limit, unread_only=unread_only))

    def count(self) -> int:
        """Total number of stored records."""
        with self._lock:
            return len(self._records)

    def unread_count(self) -> int:
        """Number of records not yet marked read."""
        with self._lock:
            return sum(1 for r in self._records.values() if not r.read)


# Module-level default store
# The HTTP API serves this store; tests create their own instances
_default_store: Optional[NotificationStore] = None


def get_data_store() -> NotificationStore:
    """Get the default notification store singleton."""
    global _default_store
    if _default_store is None:
        _default_store = NotificationStore()
    return _default_store


def reset_data_store(store: Optional[NotificationStore] = None) -> NotificationStore:
    """Replace the default store with store, or with an empty one."""
    global _default_store
    _default_store = store if store is not None else NotificationStore()
    return _default_store
