"""
Unit Resolver — turns a raw measurement into the quantity that gets priced.

Volume products measured as area with a depth in inches are converted to
cubic yards (sq ft x inches / 324, since 12 in/ft x 27 cu ft/cu yd = 324).
Products sold in lots round the quantity up to whole lots, or half lots when
partial lots are allowed. The rounded quantity feeds every later stage.
"""

import logging
from decimal import Decimal, ROUND_CEILING

from .numbers import non_negative, to_decimal
from .types import (
    ZERO, IncrementLot, IncrementsApplied, Measurement, Product, ResolvedQuantity,
)

logger = logging.getLogger(__name__)

CUBIC_YARD_DIVISOR = Decimal("324")
SIGNIFICANT_WASTE_PCT = Decimal("30")

# Multipliers that convert a height unit to feet
HEIGHT_TO_FEET = {
    "ft": Decimal("1"),
    "feet": Decimal("1"),
    "inches": Decimal("1") / Decimal("12"),
    "in": Decimal("1") / Decimal("12"),
    "m": Decimal("3.28084"),
    "cm": Decimal("0.0328084"),
}

UNIT_ABBREVIATIONS = {
    "sq_ft": "SF",
    "linear_ft": "LF",
    "cubic_yard": "cu yd",
    "each": "ea",
    "hour": "hr",
    "pound": "lb",
    "ton": "ton",
    "pallet": "pallet",
}


def unit_abbreviation(unit_type) -> str:
    key = getattr(unit_type, "value", unit_type)
    if not key:
        return "unit"
    return UNIT_ABBREVIATIONS.get(key, str(key).replace("_", " "))


def height_in_feet(height, unit: str = "ft") -> Decimal:
    """Convert a height value to feet. Unknown units are taken as feet."""
    factor = HEIGHT_TO_FEET.get((unit or "ft").strip().lower(), Decimal("1"))
    return non_negative(height) * factor


def _ceil(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_CEILING)


def lots_needed(quantity: Decimal, lot: IncrementLot) -> Decimal:
    """Whole lots covering ``quantity``; half lots when the lot allows partials."""
    size = to_decimal(lot.size)
    if size <= 0 or quantity <= 0:
        return ZERO
    if lot.allow_partial:
        return _ceil(quantity / size * 2) / 2
    return _ceil(quantity / size)


def calculate_increment_quantity(measured, increment_size, allow_partial: bool = False) -> dict:
    """
    Lot breakdown shown to the customer before a rounded measurement is accepted.

    Returns:
        {
            units_needed: Decimal,      # lots to buy
            total_coverage: Decimal,    # lots x size
            extra: Decimal,             # coverage beyond what was measured
            extra_percentage: Decimal,  # extra as % of measured
            is_significant_waste: bool, # extra above 30%
        }
    """
    measured_qty = non_negative(measured)
    lot = IncrementLot(size=to_decimal(increment_size), allow_partial=allow_partial)
    units = lots_needed(measured_qty, lot)
    coverage = units * lot.size if units > 0 else ZERO
    extra = coverage - measured_qty if coverage > measured_qty else ZERO
    extra_pct = (extra / measured_qty * 100) if measured_qty > 0 else ZERO
    return {
        "units_needed": units,
        "total_coverage": coverage,
        "extra": extra,
        "extra_percentage": extra_pct,
        "is_significant_waste": extra_pct > SIGNIFICANT_WASTE_PCT,
    }


def measured_quantity(measurement: Measurement) -> Decimal:
    """Raw magnitude, converted to cubic yards when a depth is given."""
    value = non_negative(measurement.value)
    depth = non_negative(measurement.depth)
    if value > 0 and depth > 0:
        return value * depth / CUBIC_YARD_DIVISOR
    return value


def resolve_quantity(measurement: Measurement, product: Product) -> ResolvedQuantity:
    """Effective quantity for a line, after volume conversion and lot rounding."""
    quantity = measured_quantity(measurement)
    has_depth = non_negative(measurement.depth) > 0
    increments = None

    lot = product.increment_lot
    if lot is not None and to_decimal(lot.size) > 0 and quantity > 0:
        lots = lots_needed(quantity, lot)
        rounded = lots * lot.size
        # Only a forced round-up is recorded; exact lot multiples pass through
        if rounded != quantity:
            increments = IncrementsApplied(
                units_needed=lots,
                increment_size=lot.size,
                increment_label=lot.label or "unit",
            )
            logger.debug(
                "Rounded %s up to %s (%s x %s %s)",
                quantity, rounded, lots, lot.size, lot.label,
            )
        quantity = rounded

    # Area add-ons multiply a linear run by height. Volume lines keep the
    # measured run; everything else uses the (possibly rounded) quantity.
    area_basis = non_negative(measurement.value) if has_depth else quantity

    return ResolvedQuantity(
        quantity=quantity,
        area_basis=area_basis,
        increments_applied=increments,
    )
