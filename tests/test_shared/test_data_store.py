"""
Tests for the notification store.

These tests verify managed transactions, staged writes and the
convenience readers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from notifier.events import Follow, NewOrder
from shared.data_store import (
    ManagedTransactionError,
    NotificationStore,
    ReadOnlyTransaction,
    get_data_store,
    reset_data_store,
)
from shared.models import NotificationRecord

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _record(notification_id: str, minutes: int = 0, read: bool = False) -> NotificationRecord:
    record = NotificationRecord.from_event(
        NewOrder(order_id=f"ord-{notification_id}"),
        notification_id,
        tag="NewOrder",
        timestamp=BASE_TIME + timedelta(minutes=minutes),
    )
    return record.model_copy(update={"read": read})


@pytest.fixture
def filled_store(store: NotificationStore) -> NotificationStore:
    """Store holding three records, n-2 already read."""
    store.update(lambda tx: [
        tx.save(_record("n-1", minutes=1)),
        tx.save(_record("n-2", minutes=2, read=True)),
        tx.save(_record("n-3", minutes=3)),
    ])
    return store


class TestUpdate:
    """Tests for read-write transactions."""

    def test_save_commits_on_return(self, store: NotificationStore):
        store.update(lambda tx: tx.save(_record("n-1")))

        assert store.count() == 1
        assert store.get_notification("n-1").id == "n-1"

    def test_returns_callback_result(self, store: NotificationStore):
        assert store.update(lambda tx: 42) == 42

    def test_rollback_on_error(self, store: NotificationStore):
        """Test that writes staged before an exception are discarded."""
        def failing(tx):
            tx.save(_record("n-1"))
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            store.update(failing)

        assert store.count() == 0

    def test_reads_see_own_writes(self, store: NotificationStore):
        """Test that a transaction sees what it staged."""
        def save_then_read(tx):
            tx.save(_record("n-1"))
            return tx.get("n-1")

        assert store.update(save_then_read).id == "n-1"

    def test_save_replaces(self, store: NotificationStore):
        store.update(lambda tx: tx.save(_record("n-1")))
        store.update(lambda tx: tx.save(_record("n-1", read=True)))

        assert store.count() == 1
        assert store.get_notification("n-1").read is True

    def test_commit_and_rollback_not_allowed(self, store: NotificationStore):
        """Test that managed transactions cannot be committed by hand."""
        with pytest.raises(ManagedTransactionError):
            store.update(lambda tx: tx.commit())
        with pytest.raises(ManagedTransactionError):
            store.update(lambda tx: tx.rollback())


class TestView:
    """Tests for read-only transactions."""

    def test_writes_rejected(self, store: NotificationStore):
        with pytest.raises(ReadOnlyTransaction):
            store.view(lambda tx: tx.save(_record("n-1")))
        assert store.count() == 0

    def test_reads(self, filled_store: NotificationStore):
        assert filled_store.view(lambda tx: tx.get("n-3")).id == "n-3"
        assert filled_store.view(lambda tx: tx.get("missing")) is None


class TestReadState:
    """Tests for marking records read and deleting them."""

    def test_mark_read(self, filled_store: NotificationStore):
        assert filled_store.update(lambda tx: tx.mark_read("n-1")) is True
        assert filled_store.get_notification("n-1").read is True
        assert filled_store.unread_count() == 1

    def test_mark_read_missing(self, filled_store: NotificationStore):
        assert filled_store.update(lambda tx: tx.mark_read("missing")) is False

    def test_mark_all_read(self, filled_store: NotificationStore):
        """Test that only unread records are counted as changed."""
        assert filled_store.update(lambda tx: tx.mark_all_read()) == 2
        assert filled_store.unread_count() == 0

    def test_delete(self, filled_store: NotificationStore):
        assert filled_store.update(lambda tx: tx.delete("n-2")) is True
        assert filled_store.get_notification("n-2") is None
        assert filled_store.count() == 2

    def test_delete_missing(self, filled_store: NotificationStore):
        assert filled_store.update(lambda tx: tx.delete("missing")) is False
        assert filled_store.count() == 3


class TestListing:
    """Tests for listing records."""

    def test_newest_first(self, filled_store: NotificationStore):
        ids = [r.id for r in filled_store.list_notifications()]
        assert ids == ["n-3", "n-2", "n-1"]

    def test_limit(self, filled_store: NotificationStore):
        ids = [r.id for r in filled_store.list_notifications(limit=2)]
        assert ids == ["n-3", "n-2"]

    def test_unread_only(self, filled_store: NotificationStore):
        ids = [r.id for r in filled_store.list_notifications(unread_only=True)]
        assert ids == ["n-3", "n-1"]

    def test_list_includes_staged_changes(self, filled_store: NotificationStore):
        """Test that listing inside a transaction reflects staged deletes."""
        def delete_and_list(tx):
            tx.delete("n-3")
            tx.save(NotificationRecord.from_event(Follow(), "n-4", timestamp=BASE_TIME))
            return [r.id for r in tx.list()]

        assert filled_store.update(delete_and_list) == ["n-2", "n-1", "n-4"]


class TestDefaultStore:
    """Tests for the module-level store."""

    def test_reset_gives_empty_store(self):
        get_data_store().update(lambda tx: tx.save(_record("n-1")))

        fresh = reset_data_store()

        assert fresh.count() == 0
        assert get_data_store() is fresh

    def test_reset_installs_given_store(self, store: NotificationStore):
        assert reset_data_store(store) is store
        assert get_data_store() is store
