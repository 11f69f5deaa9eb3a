"""Tests for the weighted recipient registry.

Tests cover:
1. Valid replacement and insertion order
2. Each rejection rule, in the order it is checked
3. A rejected replacement leaves the previous set intact
4. Zero weights and custom scales
"""

import pytest

from prepayment_split.engine import (
    RecipientRegistry,
    InconsistentDataLength,
    NullAddressRecipient,
    DuplicateRecipient,
    InvalidPercentage,
)
from prepayment_split.schemas import NULL_ADDRESS, PERCENTAGE_SCALE


class TestSetRecipients:
    """Test valid recipient sets."""

    def test_set_recipients_keeps_insertion_order(self):
        registry = RecipientRegistry()
        registry.set_recipients(["label", "artist", "producer"], [5_000_000, 3_000_000, 2_000_000])

        assert registry.addresses() == ["label", "artist", "producer"]
        assert registry.percentage_of("artist") == 3_000_000
        assert len(registry) == 3
        assert sum(r.percentage for r in registry) == PERCENTAGE_SCALE

    def test_replacement_is_whole(self):
        """A second call replaces the set; nothing of the old set survives."""
        registry = RecipientRegistry()
        registry.set_recipients(["label", "artist"], [8_000_000, 2_000_000])
        registry.set_recipients(["producer"], [10_000_000])

        assert registry.addresses() == ["producer"]
        assert registry.percentage_of("label") == 0

    def test_unknown_address_has_zero_percentage(self):
        registry = RecipientRegistry()
        registry.set_recipients(["label"], [10_000_000])
        assert registry.percentage_of("nobody") == 0

    def test_zero_weight_entries_are_not_stored(self):
        registry = RecipientRegistry()
        committed = registry.set_recipients(["label", "ghost"], [10_000_000, 0])

        assert [r.address for r in committed] == ["label"]
        assert registry.as_dict() == {"label": 10_000_000}

    def test_custom_scale(self):
        """Weights are checked against the registry's own scale."""
        registry = RecipientRegistry(scale=10_000)
        registry.set_recipients(["label", "artist"], [8_000, 2_000])
        assert registry.percentage_of("label") == 8_000

        with pytest.raises(InvalidPercentage):
            registry.set_recipients(["label", "artist"], [8_000_000, 2_000_000])

    def test_scale_must_be_positive(self):
        with pytest.raises(ValueError):
            RecipientRegistry(scale=0)


class TestRejections:
    """Test each rejection rule and that a failed replacement changes nothing."""

    @pytest.fixture
    def registry(self):
        registry = RecipientRegistry()
        registry.set_recipients(["label", "artist"], [8_000_000, 2_000_000])
        return registry

    def test_inconsistent_lengths(self, registry):
        with pytest.raises(InconsistentDataLength):
            registry.set_recipients(["label", "artist"], [10_000_000])

    def test_null_address(self, registry):
        with pytest.raises(NullAddressRecipient):
            registry.set_recipients([NULL_ADDRESS], [10_000_000])

    def test_duplicate_address(self, registry):
        with pytest.raises(DuplicateRecipient) as exc_info:
            registry.set_recipients(["label", "label"], [5_000_000, 5_000_000])
        assert exc_info.value.address == "label"

    def test_duplicate_rejected_even_with_zero_weight(self, registry):
        with pytest.raises(DuplicateRecipient):
            registry.set_recipients(["label", "label"], [10_000_000, 0])

    def test_negative_weight(self, registry):
        with pytest.raises(InvalidPercentage):
            registry.set_recipients(["label", "artist"], [11_000_000, -1_000_000])

    def test_sum_below_scale(self, registry):
        with pytest.raises(InvalidPercentage):
            registry.set_recipients(["label", "artist"], [5_000_000, 4_999_999])

    def test_sum_above_scale(self, registry):
        with pytest.raises(InvalidPercentage):
            registry.set_recipients(["label", "artist"], [5_000_000, 5_000_001])

    def test_empty_set_rejected(self, registry):
        with pytest.raises(InvalidPercentage):
            registry.set_recipients([], [])

    def test_length_checked_before_sum(self, registry):
        with pytest.raises(InconsistentDataLength):
            registry.set_recipients(["label"], [1, 2])

    def test_failed_replacement_leaves_previous_set(self, registry):
        with pytest.raises(InvalidPercentage):
            registry.set_recipients(["producer"], [9_000_000])

        assert registry.as_dict() == {"label": 8_000_000, "artist": 2_000_000}
        assert sum(registry.as_dict().values()) == PERCENTAGE_SCALE
