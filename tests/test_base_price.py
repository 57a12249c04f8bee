"""
Base Price Resolver tests — tiers, variation adjustments, tier validation.
"""

import pytest

from contractor_quotes.pricing.base_price import (
    TierValidationError, ensure_valid_tiers, resolve_unit_price, tier_for_quantity,
    validate_tiers,
)
from contractor_quotes.pricing.types import AdjustmentType, PricingTier, Variation

from conftest import D, make_product


def _tiers():
    return (
        PricingTier(min_quantity=D(1), max_quantity=D(10), tier_price=D(5), name="Small"),
        PricingTier(min_quantity=D(11), max_quantity=None, tier_price=D(4), name="Bulk"),
    )


def _tiered(unit_price="5"):
    return make_product(unit_price=D(unit_price), uses_tiered_pricing=True, tiers=_tiers())


# --- Tier lookup ---

def test_tier_boundaries_are_inclusive():
    product = _tiered()
    assert resolve_unit_price(product, D(1)) == D(5)
    assert resolve_unit_price(product, D(10)) == D(5)
    assert resolve_unit_price(product, D(11)) == D(4)
    assert resolve_unit_price(product, D(5000)) == D(4)


def test_fractional_quantity_at_tier_edge_uses_lower_tier():
    assert validate_tiers(_tiers()) == []
    assert tier_for_quantity(D("10.5"), _tiers()).name == "Small"
    assert resolve_unit_price(_tiered(unit_price="6"), D("10.5")) == D(5)
    assert resolve_unit_price(_tiered(unit_price="6"), D("10.99")) == D(5)


def test_quantity_in_a_real_gap_uses_flat_price():
    tiers = (
        PricingTier(min_quantity=D(1), max_quantity=D(10), tier_price=D(5)),
        PricingTier(min_quantity=D(20), max_quantity=None, tier_price=D(4)),
    )
    product = make_product(unit_price=D(6), uses_tiered_pricing=True, tiers=tiers)
    assert tier_for_quantity(D(15), tiers) is None
    assert resolve_unit_price(product, D(15)) == D(6)


def test_quantity_below_first_tier_uses_flat_price():
    assert resolve_unit_price(_tiered(unit_price="7"), D("0.5")) == D(7)


def test_overlapping_tiers_resolve_to_lowest_minimum():
    # Listed out of order on purpose; [1,20] has the smaller minimum
    tiers = (
        PricingTier(min_quantity=D(10), max_quantity=D(30), tier_price=D(4), name="Late"),
        PricingTier(min_quantity=D(1), max_quantity=D(20), tier_price=D(5), name="Early"),
    )
    product = make_product(unit_price=D(9), uses_tiered_pricing=True, tiers=tiers)
    assert tier_for_quantity(D(15), tiers).name == "Early"
    assert resolve_unit_price(product, D(15)) == D(5)
    assert resolve_unit_price(product, D(25)) == D(4)


def test_inactive_tiers_are_skipped():
    tiers = (
        PricingTier(min_quantity=D(1), max_quantity=D(10), tier_price=D(5), is_active=False),
        PricingTier(min_quantity=D(11), max_quantity=None, tier_price=D(4)),
    )
    product = make_product(unit_price=D(9), uses_tiered_pricing=True, tiers=tiers)
    assert resolve_unit_price(product, D(3)) == D(9)
    assert resolve_unit_price(product, D(30)) == D(4)


def test_tiers_ignored_when_product_is_not_tiered():
    product = make_product(unit_price=D(9), uses_tiered_pricing=False, tiers=_tiers())
    assert resolve_unit_price(product, D(20)) == D(9)


# --- Variations ---

def test_percentage_and_fixed_variation_at_base_100():
    product = make_product(unit_price=D(100))
    pct = Variation(id="v1", price_adjustment=D(10), adjustment_type=AdjustmentType.PERCENTAGE)
    fixed = Variation(id="v2", price_adjustment=D(10), adjustment_type=AdjustmentType.FIXED)
    assert resolve_unit_price(product, D(1), pct) == D(110)
    assert resolve_unit_price(product, D(1), fixed) == D(110)


def test_percentage_and_fixed_variation_at_base_50():
    product = make_product(unit_price=D(50))
    pct = Variation(id="v1", price_adjustment=D(10), adjustment_type=AdjustmentType.PERCENTAGE)
    fixed = Variation(id="v2", price_adjustment=D(10), adjustment_type=AdjustmentType.FIXED)
    assert resolve_unit_price(product, D(1), pct) == D(55)
    assert resolve_unit_price(product, D(1), fixed) == D(60)


def test_percentage_variation_applies_to_tier_price():
    cedar = Variation(id="v1", price_adjustment=D(50), adjustment_type=AdjustmentType.PERCENTAGE)
    assert resolve_unit_price(_tiered(), D(20), cedar) == D(6)


def test_negative_fixed_adjustment_discounts():
    discount = Variation(id="v1", price_adjustment=D("-0.5"))
    assert resolve_unit_price(make_product(unit_price=D(3)), D(1), discount) == D("2.5")


def test_missing_unit_price_is_zero():
    assert resolve_unit_price(make_product(unit_price=None), D(10)) == 0


# --- Tier validation ---

def test_contiguous_tiers_are_valid():
    assert validate_tiers(_tiers()) == []


def test_gap_between_tiers():
    tiers = (
        PricingTier(min_quantity=D(1), max_quantity=D(10), tier_price=D(5), name="Small"),
        PricingTier(min_quantity=D(20), max_quantity=None, tier_price=D(4), name="Bulk"),
    )
    assert validate_tiers(tiers) == ["Gap between Small and Bulk"]


def test_overlapping_tiers():
    tiers = (
        PricingTier(min_quantity=D(1), max_quantity=D(10), tier_price=D(5), name="Small"),
        PricingTier(min_quantity=D(8), max_quantity=None, tier_price=D(4), name="Bulk"),
    )
    assert validate_tiers(tiers) == ["Overlap between Small and Bulk"]


def test_unbounded_tier_must_be_last():
    tiers = (
        PricingTier(min_quantity=D(1), max_quantity=None, tier_price=D(5), name="Open"),
        PricingTier(min_quantity=D(20), max_quantity=D(30), tier_price=D(4), name="Later"),
    )
    assert validate_tiers(tiers) == ["Open is unbounded but is followed by Later"]


def test_inverted_range_and_negative_price():
    tiers = (PricingTier(min_quantity=D(10), max_quantity=D(5), tier_price=D(-1), name="Bad"),)
    errors = validate_tiers(tiers)
    assert "Bad: tier price must not be negative" in errors
    assert "Bad: max quantity must be greater than min quantity" in errors


def test_ensure_valid_tiers_raises_with_messages():
    tiers = (
        PricingTier(min_quantity=D(1), max_quantity=D(10), tier_price=D(5)),
        PricingTier(min_quantity=D(30), max_quantity=None, tier_price=D(4)),
    )
    with pytest.raises(TierValidationError) as exc:
        ensure_valid_tiers(tiers)
    assert exc.value.errors == ["Gap between Tier 1 and Tier 2"]
