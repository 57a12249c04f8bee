"""
Add-on Evaluator — money contributed by each selected add-on on a line.

Three calculation modes:

    total             price x multiplier (flat, independent of quantity)
    per_unit          price x line quantity x multiplier
    area_calculation  price x (linear run x height in ft) x multiplier when the
                      line's variation context supplies a height that affects
                      area; otherwise falls back to per_unit

``price`` is the add-on's price value plus the selected option's adjustment.
Percentage-priced add-ons are a percent of the line's base price instead.

Evaluation is fail-soft: missing numbers count as zero and a contribution is
never negative, so a broken catalog entry cannot block a quote.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from .numbers import non_negative, to_decimal
from .types import (
    ZERO, AdjustmentType, Addon, AddonCharge, CalculationType, Product,
    Variation, VariationContext,
)
from .units import height_in_feet

logger = logging.getLogger(__name__)


def variation_context_for(variation: Optional[Variation],
                          product: Optional[Product] = None) -> Optional[VariationContext]:
    """
    Height context for area-mode add-ons.

    The selected variation's height wins. A product-level base height is used
    only when the variation supplies none and the product opts in.
    """
    if variation is not None and variation.height_value:
        return VariationContext(
            height=to_decimal(variation.height_value),
            unit=variation.unit_of_measurement or "ft",
            affects_area=bool(variation.affects_area_calculation),
        )
    height = product.height if product is not None else None
    if height is not None and height.use_height_in_area_calc and height.base_height:
        return VariationContext(
            height=to_decimal(height.base_height),
            unit=height.height_unit or "ft",
            affects_area=True,
        )
    return None


def effective_price(addon: Addon) -> Decimal:
    price = to_decimal(addon.price_value)
    if addon.selected_option is not None:
        price += to_decimal(addon.selected_option.price_adjustment)
    return price


def derived_area(area_basis, context: Optional[VariationContext]) -> Optional[Decimal]:
    """Square feet for an area add-on, or None when the context has no usable height."""
    if context is None or not context.affects_area or not context.height:
        return None
    height_ft = height_in_feet(context.height, context.unit)
    if height_ft <= 0:
        return None
    return non_negative(area_basis) * height_ft


def evaluate_addon(addon: Addon, quantity, variation_context: Optional[VariationContext] = None,
                   *, area_basis=None, base_price=ZERO) -> Decimal:
    """
    Contribution of one add-on to its line.

    Args:
        addon: add-on with its selection state
        quantity: resolved line quantity (after lot rounding)
        variation_context: height context from variation_context_for()
        area_basis: linear run for area mode; defaults to ``quantity``
        base_price: line base price, used by percentage-priced add-ons
    """
    multiplier = non_negative(addon.quantity)
    if multiplier == 0:
        return ZERO
    price = effective_price(addon)
    qty = non_negative(quantity)

    if addon.price_type == AdjustmentType.PERCENTAGE:
        amount = non_negative(base_price) * price / 100 * multiplier
        return amount if amount > 0 else ZERO

    mode = addon.calculation_type
    if mode == CalculationType.AREA_CALCULATION:
        basis = qty if area_basis is None else area_basis
        area = derived_area(basis, variation_context)
        if area is not None:
            amount = price * area * multiplier
        else:
            if variation_context is not None and variation_context.height:
                logger.debug(
                    "Add-on %s: height %s does not affect area, pricing per unit",
                    addon.name or addon.id, variation_context.height,
                )
            amount = price * qty * multiplier
    elif mode == CalculationType.PER_UNIT:
        amount = price * qty * multiplier
    else:
        amount = price * multiplier

    return amount if amount > 0 else ZERO


def evaluate_addons(addons: Iterable[Addon], quantity,
                    variation_context: Optional[VariationContext] = None,
                    *, area_basis=None, base_price=ZERO) -> List[AddonCharge]:
    """Charges for every selected add-on, in input order."""
    charges = []
    for addon in addons:
        if not addon.is_selected or addon.quantity <= 0:
            continue
        total = evaluate_addon(
            addon, quantity, variation_context,
            area_basis=area_basis, base_price=base_price,
        )
        charges.append(AddonCharge(
            addon_id=addon.id,
            name=addon.name,
            calculation_type=addon.calculation_type,
            quantity=addon.quantity,
            total=total,
        ))
    return charges


def addons_total(addons: Iterable[Addon], quantity,
                 variation_context: Optional[VariationContext] = None,
                 *, area_basis=None, base_price=ZERO) -> Decimal:
    charges = evaluate_addons(
        addons, quantity, variation_context,
        area_basis=area_basis, base_price=base_price,
    )
    return sum((c.total for c in charges), ZERO)
