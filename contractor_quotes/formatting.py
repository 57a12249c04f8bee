"""
Display formatting for prices, ranges, tiers and line equations.

The engine returns exact Decimals; this is the only place they get rounded.
Every function takes its currency/precision settings explicitly so the
output depends on nothing but its arguments.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from .pricing.numbers import to_decimal
from .pricing.types import AddonCharge, CalculationType, LinePrice, PricingTier
from .pricing.units import unit_abbreviation

# Quotes in these states show a range instead of an exact total
SUBMITTED_STATUSES = ("pending", "accepted", "declined", "expired")


@dataclass(frozen=True)
class FormatSettings:
    currency_symbol: str = "$"
    decimal_precision: int = 2
    use_price_ranges: bool = False
    price_range_lower_percentage: Decimal = Decimal("10")
    price_range_upper_percentage: Decimal = Decimal("20")
    price_range_display_format: str = "percentage"  # 'percentage' | 'dollar_amounts'


@dataclass(frozen=True)
class PriceRange:
    lower: Decimal
    upper: Decimal
    original: Decimal


def _round(value: Decimal, places: int) -> Decimal:
    exponent = Decimal(1).scaleb(-places) if places > 0 else Decimal(1)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def format_number(value, places: int = 2) -> str:
    places = max(int(places), 0)
    return f"{_round(to_decimal(value), places):,.{places}f}"


def format_quantity(value) -> str:
    """Quantity without trailing zeros: 200, 0.93, 1,250.5."""
    number = _round(to_decimal(value), 2).normalize()
    if number == number.to_integral_value():
        return f"{number:,.0f}"
    return f"{number:,f}"


def format_exact_price(price, settings: FormatSettings) -> str:
    return f"{settings.currency_symbol}{format_number(price, settings.decimal_precision)}"


def calculate_price_range(base_price, lower_pct, upper_pct) -> PriceRange:
    """Range around a price, rounded to whole currency units."""
    base = to_decimal(base_price)
    lower = base * (1 - to_decimal(lower_pct) / 100)
    upper = base * (1 + to_decimal(upper_pct) / 100)
    return PriceRange(lower=_round(lower, 0), upper=_round(upper, 0), original=base)


def format_price_range(price_range: PriceRange, settings: FormatSettings) -> str:
    text = (f"{format_exact_price(price_range.lower, settings)} - "
            f"{format_exact_price(price_range.upper, settings)}")
    if settings.price_range_display_format == "percentage":
        text += (f" (-{format_quantity(settings.price_range_lower_percentage)}%"
                 f" / +{format_quantity(settings.price_range_upper_percentage)}%)")
    return text


def display_price(price, settings: FormatSettings) -> str:
    if settings.use_price_ranges:
        price_range = calculate_price_range(
            price,
            settings.price_range_lower_percentage,
            settings.price_range_upper_percentage,
        )
        return format_price_range(price_range, settings)
    return format_exact_price(price, settings)


def display_quote_total(total, settings: FormatSettings, status: str = "draft") -> str:
    """Drafts always show the exact total; submitted quotes may show a range."""
    if settings.use_price_ranges and status in SUBMITTED_STATUSES:
        return display_price(total, settings)
    return format_exact_price(total, settings)


def format_tier_info(tier: PricingTier, settings: FormatSettings) -> str:
    low = format_quantity(tier.min_quantity)
    if tier.max_quantity is None:
        span = f"{low}+"
    else:
        span = f"{low}-{format_quantity(tier.max_quantity)}"
    name = tier.name or "Tier"
    return f"{name}: {span} @ {format_exact_price(tier.tier_price, settings)}"


def line_equation(line: LinePrice, unit_type, settings: FormatSettings) -> str:
    """e.g. '45 LF × $35.00/LF = $1,575.00'"""
    unit = unit_abbreviation(unit_type)
    return (f"{format_quantity(line.quantity)} {unit} × "
            f"{format_exact_price(line.unit_price, settings)}/{unit} = "
            f"{format_exact_price(line.base_price, settings)}")


def addon_equation(charge: AddonCharge, line: LinePrice, unit_type,
                   settings: FormatSettings) -> str:
    """Short explanation of an add-on charge for review screens."""
    multiplier = f"{format_quantity(charge.quantity)} × " if charge.quantity > 1 else ""
    if charge.calculation_type == CalculationType.PER_UNIT:
        unit = unit_abbreviation(unit_type)
        return f"{multiplier}{format_quantity(line.quantity)} {unit} = {format_exact_price(charge.total, settings)}"
    if charge.calculation_type == CalculationType.AREA_CALCULATION:
        return f"{multiplier}area = {format_exact_price(charge.total, settings)}"
    return f"{multiplier}{format_exact_price(charge.total, settings)}"
