"""
Tests for subscription options.
"""

from dataclasses import dataclass
from typing import Optional

import pytest

from eventbus import DEFAULT_BUFFER_SIZE, SubscriptionSettings, buf_size, match, match_fields
from eventbus.options import field_value


@dataclass
class Order:
    order_id: str = ""
    quantity: int = 0
    note: Optional[str] = None


class TestSettings:
    """Tests for SubscriptionSettings defaults."""

    def test_defaults(self):
        """Test the default buffer and the absence of filters."""
        settings = SubscriptionSettings()
        assert settings.buffer == DEFAULT_BUFFER_SIZE == 16
        assert settings.filters == []
        assert settings.accepts(Order())


class TestBufSize:
    """Tests for the buf_size option."""

    def test_sets_buffer(self):
        settings = SubscriptionSettings()
        buf_size(64)(settings)
        assert settings.buffer == 64

    @pytest.mark.parametrize("bad", [0, -1, 2.5, "8", True])
    def test_rejects_non_positive_integers(self, bad):
        """Test that anything but a positive int raises when applied."""
        with pytest.raises(ValueError):
            buf_size(bad)(SubscriptionSettings())


class TestFieldValue:
    """Tests for reading event fields by name."""

    def test_reads_string_form(self):
        assert field_value(Order(quantity=3), "quantity") == "3"

    def test_missing_field_is_empty(self):
        assert field_value(Order(), "nonexistent") == ""

    def test_none_is_empty(self):
        assert field_value(Order(note=None), "note") == ""


class TestMatchFields:
    """Tests for the match_fields option."""

    def test_all_pairs_must_match(self):
        """Test that every named field must equal its expected value."""
        settings = SubscriptionSettings()
        match_fields({"order_id": "ord-001", "quantity": "2"})(settings)

        assert settings.accepts(Order(order_id="ord-001", quantity=2))
        assert not settings.accepts(Order(order_id="ord-001", quantity=1))
        assert not settings.accepts(Order(order_id="ord-002", quantity=2))

    def test_empty_value_matches_missing_field(self):
        """Test that a field the event lacks compares as the empty string."""
        settings = SubscriptionSettings()
        match_fields({"nonexistent": ""})(settings)
        assert settings.accepts(Order())

    def test_missing_field_never_matches_non_empty_value(self):
        """Test that a field the event lacks cannot equal a non-empty value."""
        settings = SubscriptionSettings()
        match_fields({"nonexistent": "x"})(settings)
        assert not settings.accepts(Order())

    def test_rejects_non_string_keys(self):
        with pytest.raises(TypeError):
            match_fields({1: "x"})(SubscriptionSettings())


class TestMatch:
    """Tests for the match option."""

    def test_predicate_decides(self):
        settings = SubscriptionSettings()
        match(lambda e: e.quantity > 1)(settings)

        assert settings.accepts(Order(quantity=2))
        assert not settings.accepts(Order(quantity=1))

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            match("quantity > 1")(SubscriptionSettings())

    def test_combines_with_match_fields(self):
        """Test that predicate and field filters are AND-composed."""
        settings = SubscriptionSettings()
        match_fields({"order_id": "ord-001"})(settings)
        match(lambda e: e.quantity > 1)(settings)

        assert settings.accepts(Order(order_id="ord-001", quantity=5))
        assert not settings.accepts(Order(order_id="ord-002", quantity=5))
        assert not settings.accepts(Order(order_id="ord-001", quantity=1))
