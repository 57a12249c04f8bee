"""
Base Price Resolver — per-unit price for a line.

Tier lookup (when the product uses tiered pricing) happens first, then the
selected variation adjusts that base once: a percentage of the post-tier
base, or a fixed amount per unit.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from .numbers import non_negative, to_decimal
from .types import AdjustmentType, PricingTier, Product, Variation

logger = logging.getLogger(__name__)


def _active_tiers(tiers: Iterable[PricingTier]) -> List[PricingTier]:
    return sorted(
        (t for t in tiers if t.is_active),
        key=lambda t: to_decimal(t.min_quantity),
    )


def tier_for_quantity(quantity, tiers: Iterable[PricingTier]) -> Optional[PricingTier]:
    """
    Active tier containing ``quantity``. Overlapping tiers resolve to the lowest minimum.

    Tier edges are whole units, so a fractional quantity between two contiguous
    tiers (10.5 between [1, 10] and [11, +)) belongs to the lower one.
    """
    qty = to_decimal(quantity)
    ordered = _active_tiers(tiers)
    for tier in ordered:
        if qty < to_decimal(tier.min_quantity):
            continue
        if tier.max_quantity is None or qty <= to_decimal(tier.max_quantity):
            return tier

    for lower, upper in zip(ordered, ordered[1:]):
        if lower.max_quantity is None:
            continue
        high = to_decimal(lower.max_quantity)
        next_low = to_decimal(upper.min_quantity)
        if high < qty < next_low and next_low - high <= 1:
            return lower
    return None


def tier_price_for(quantity, tiers: Iterable[PricingTier], fallback_price) -> Decimal:
    tier = tier_for_quantity(quantity, tiers)
    if tier is None:
        logger.debug("No active tier covers quantity %s, using flat price", quantity)
        return non_negative(fallback_price)
    return non_negative(tier.tier_price)


def apply_variation(base: Decimal, variation: Optional[Variation]) -> Decimal:
    if variation is None:
        return base
    adjustment = to_decimal(variation.price_adjustment)
    if variation.adjustment_type == AdjustmentType.PERCENTAGE:
        return base + base * (adjustment / 100)
    return base + adjustment


def resolve_unit_price(product: Product, quantity, variation: Optional[Variation] = None) -> Decimal:
    """Effective unit price stored on the line item."""
    if product.uses_tiered_pricing and product.tiers:
        base = tier_price_for(quantity, product.tiers, product.unit_price)
    else:
        base = non_negative(product.unit_price)
    return apply_variation(base, variation)


class TierValidationError(ValueError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def validate_tiers(tiers: Iterable[PricingTier]) -> List[str]:
    """
    Check a product's active tiers for gaps, overlaps and inverted ranges.

    Quantities are whole units at the tier edges, so [1, 10] followed by
    [11, None] is contiguous. Returns human-readable messages; empty means valid.
    """
    errors: List[str] = []
    ordered = _active_tiers(tiers)

    for index, tier in enumerate(ordered):
        label = tier.name or f"Tier {index + 1}"
        low = to_decimal(tier.min_quantity)
        high = None if tier.max_quantity is None else to_decimal(tier.max_quantity)

        if low < 0:
            errors.append(f"{label}: min quantity must not be negative")
        if to_decimal(tier.tier_price) < 0:
            errors.append(f"{label}: tier price must not be negative")
        if high is not None and high <= low:
            errors.append(f"{label}: max quantity must be greater than min quantity")

        if index == 0:
            continue
        prev = ordered[index - 1]
        prev_label = prev.name or f"Tier {index}"
        if prev.max_quantity is None:
            errors.append(f"{prev_label} is unbounded but is followed by {label}")
            continue
        prev_high = to_decimal(prev.max_quantity)
        if prev_high >= low:
            errors.append(f"Overlap between {prev_label} and {label}")
        elif prev_high < low - 1:
            errors.append(f"Gap between {prev_label} and {label}")

    return errors


def ensure_valid_tiers(tiers: Iterable[PricingTier]) -> None:
    errors = validate_tiers(tiers)
    if errors:
        raise TierValidationError(errors)
