"""
Pricing Engine — line and quote totals.

Composes the pricing stages leaf-first:
    Unit Resolver -> Base Price Resolver -> Add-on Evaluator -> Line Aggregator

Pure Decimal math. No I/O, no state between calls, no rounding before
aggregation; rounding belongs to the display formatter.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from .pricing.addons import evaluate_addons, variation_context_for
from .pricing.base_price import resolve_unit_price
from .pricing.numbers import non_negative
from .pricing.types import (
    ZERO, Addon, LinePrice, Measurement, Product, QuoteTotals, Variation,
)
from .pricing.units import resolve_quantity

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    The single pricing truth for every surface that shows or stores a price.
    Stateless — one instance can be shared.
    """

    def compute_line_total(self, product: Product, measurement: Measurement,
                           variation: Optional[Variation] = None,
                           addons: Optional[Iterable[Addon]] = None) -> LinePrice:
        """
        Price one line item.

        1. quantity   = Unit Resolver (volume conversion, lot rounding)
        2. unit_price = Base Price Resolver (tier, then variation)
        3. base_price = unit_price x quantity
        4. addons     = sum of selected add-on contributions
        5. line_total = base_price + addons
        """
        resolved = resolve_quantity(measurement, product)
        quantity = resolved.quantity

        unit_price = resolve_unit_price(product, quantity, variation)
        base_price = unit_price * quantity

        context = variation_context_for(variation, product)
        charges = evaluate_addons(
            addons if addons is not None else product.addons,
            quantity,
            context,
            area_basis=resolved.area_basis,
            base_price=base_price,
        )
        addons_sum = sum((c.total for c in charges), ZERO)

        return LinePrice(
            quantity=quantity,
            unit_price=unit_price,
            base_price=base_price,
            addons_total=addons_sum,
            line_total=base_price + addons_sum,
            increments_applied=resolved.increments_applied,
            addon_charges=tuple(charges),
        )

    def compute_quote_totals(self, line_totals: Sequence, tax_rate_pct=ZERO,
                             markup_pct=ZERO) -> QuoteTotals:
        """
        Quote subtotal, markup and tax.

        Markup applies to the subtotal; tax applies once to the marked-up
        subtotal, never per line.
        """
        subtotal = sum((non_negative(t) for t in line_totals), ZERO)
        markup = non_negative(markup_pct)
        tax = non_negative(tax_rate_pct)

        markup_amount = subtotal * markup / 100
        taxable = subtotal + markup_amount
        tax_amount = taxable * tax / 100

        return QuoteTotals(
            subtotal=subtotal,
            markup_pct=markup,
            markup_amount=markup_amount,
            tax_rate_pct=tax,
            tax_amount=tax_amount,
            total=taxable + tax_amount,
        )


def compute_line_total(product: Product, measurement: Measurement,
                       variation: Optional[Variation] = None,
                       addons: Optional[Iterable[Addon]] = None) -> LinePrice:
    return _engine.compute_line_total(product, measurement, variation, addons)


def compute_quote_totals(line_totals: Sequence, tax_rate_pct=ZERO,
                         markup_pct=ZERO) -> QuoteTotals:
    return _engine.compute_quote_totals(line_totals, tax_rate_pct, markup_pct)


def taxed_total(subtotal, tax_rate_pct) -> Decimal:
    return compute_quote_totals([subtotal], tax_rate_pct).total


_engine = PricingEngine()
