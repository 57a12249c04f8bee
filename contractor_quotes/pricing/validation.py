"""
Caller-side preconditions for adding a line to a quote.

The engine prices whatever selection it is given. These checks belong to the
workflow in front of it and come back as form messages, not exceptions.
"""

from typing import Iterable, List, Optional

from .numbers import non_negative, to_decimal
from .types import Measurement, Product, Variation
from .units import measured_quantity


def check_default_variations(variations: Iterable[Variation]) -> List[str]:
    defaults = [v for v in variations if v.is_default]
    if len(defaults) > 1:
        names = ", ".join(v.name or str(v.id) for v in defaults)
        return [f"Only one variation may be the default (found: {names})"]
    return []


def default_variation(product: Product) -> Optional[Variation]:
    for variation in product.variations:
        if variation.is_default:
            return variation
    return None


def check_line_preconditions(product: Product, measurement: Measurement,
                             variation: Optional[Variation] = None) -> List[str]:
    """
    Messages that should stop a line from being added to a quote.

    - a required variation must be selected
    - the selected variation must belong to the product
    - the measurement must be positive and meet the minimum order quantity
    """
    errors: List[str] = []

    if variation is None and any(v.is_required for v in product.variations):
        errors.append(f"{product.name or 'This product'} requires a variation to be selected")

    if variation is not None and variation.id is not None and product.variations:
        known = {v.id for v in product.variations}
        if variation.id not in known:
            errors.append(f"Variation {variation.id} does not belong to this product")

    raw_value = to_decimal(measurement.value)
    if raw_value <= 0:
        errors.append("Measurement must be greater than zero")
    else:
        minimum = non_negative(product.min_order_quantity)
        quantity = measured_quantity(measurement)
        if minimum > 0 and quantity < minimum:
            errors.append(f"Minimum order quantity is {minimum.normalize():f}")

    return errors
