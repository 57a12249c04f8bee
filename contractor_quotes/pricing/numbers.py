"""Fail-soft numeric coercion shared by the pricing stages."""

import math
from decimal import Decimal, InvalidOperation

from .types import ZERO


def to_decimal(value, default: Decimal = ZERO) -> Decimal:
    """Coerce catalog or form input to Decimal. Missing or junk becomes ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        # repr() keeps 0.1 as 0.1 instead of its binary expansion
        return Decimal(repr(value))
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default
    return result if result.is_finite() else default


def non_negative(value) -> Decimal:
    number = to_decimal(value)
    return number if number > 0 else ZERO


def optional_decimal(value):
    """Like to_decimal but keeps None for absent values."""
    if value is None:
        return None
    return to_decimal(value, default=None)
