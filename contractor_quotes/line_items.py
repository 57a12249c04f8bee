"""
Line pricing shared by the pricing and quote routers.

Takes a product snapshot plus the customer's selections, runs the caller
preconditions and the PricingEngine, and returns everything a route needs to
respond or persist. Routes never do their own arithmetic.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .formatting import FormatSettings, addon_equation, format_exact_price, line_equation
from .pricing.types import LinePrice, Measurement, Product, Variation
from .pricing.validation import check_line_preconditions, default_variation
from .pricing_engine import PricingEngine
from .snapshots import (
    apply_addon_choices, engine_measurement, engine_product, find_variation,
    line_price_to_json, unknown_addon_ids,
)

logger = logging.getLogger(__name__)

engine = PricingEngine()


@dataclass
class PricedLine:
    product: Product
    measurement: Measurement
    variation: Optional[Variation]
    line: LinePrice
    errors: List[str] = field(default_factory=list)

    def outputs(self) -> dict:
        return line_price_to_json(self.line)

    def display(self, settings: FormatSettings) -> dict:
        unit_type = self.product.unit_type
        return {
            "unit_price": format_exact_price(self.line.unit_price, settings),
            "base_price": format_exact_price(self.line.base_price, settings),
            "addons_total": format_exact_price(self.line.addons_total, settings),
            "line_total": format_exact_price(self.line.line_total, settings),
            "equation": line_equation(self.line, unit_type, settings),
            "addons": [
                {"name": c.name, "equation": addon_equation(c, self.line, unit_type, settings)}
                for c in self.line.addon_charges
            ],
        }


def price_line(snapshot: dict, measurement: dict, variation_id: Optional[str] = None,
               addon_choices: Iterable[dict] = (), use_default_variation: bool = True) -> PricedLine:
    """
    Price one line from a product snapshot and selections.

    When no variation is chosen the product's default variation is used.
    Precondition problems are returned in ``errors``; the line is priced
    regardless so callers can decide whether to block or just warn.
    """
    choices = list(addon_choices)
    product = engine_product(snapshot)
    measured = engine_measurement(measurement)

    errors: List[str] = []
    variation = find_variation(product, variation_id)
    if variation_id is not None and variation is None:
        errors.append(f"Variation {variation_id} does not belong to this product")
    if variation is None and variation_id is None and use_default_variation:
        variation = default_variation(product)

    for addon_id in unknown_addon_ids(product, choices):
        errors.append(f"Add-on {addon_id} does not belong to this product")

    errors.extend(check_line_preconditions(product, measured, variation))

    addons = apply_addon_choices(product, choices)
    line = engine.compute_line_total(product, measured, variation, addons)
    logger.debug(
        "Priced %s: qty=%s unit=%s total=%s",
        product.name, line.quantity, line.unit_price, line.line_total,
    )
    return PricedLine(
        product=product,
        measurement=measured,
        variation=variation,
        line=line,
        errors=errors,
    )
