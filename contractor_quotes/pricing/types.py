"""
Engine-side records for the pricing stages.

These are read-only snapshots of catalog data and user selections. Routers
build them from pydantic payloads or stored line-item snapshots; the engine
never sees ORM rows.
"""

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple


ZERO = Decimal("0")


class UnitType(str, enum.Enum):
    SQ_FT = "sq_ft"
    LINEAR_FT = "linear_ft"
    CUBIC_YARD = "cubic_yard"
    EACH = "each"
    HOUR = "hour"
    POUND = "pound"
    TON = "ton"
    PALLET = "pallet"


class MeasurementType(str, enum.Enum):
    AREA = "area"
    LINEAR = "linear"
    POINT = "point"


class AdjustmentType(str, enum.Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class CalculationType(str, enum.Enum):
    TOTAL = "total"
    PER_UNIT = "per_unit"
    AREA_CALCULATION = "area_calculation"


@dataclass(frozen=True)
class IncrementLot:
    """Product sold in fixed lots, e.g. 450 sq ft per pallet."""
    size: Decimal
    label: str = "unit"
    allow_partial: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class HeightConfig:
    base_height: Decimal
    height_unit: str = "ft"
    use_height_in_area_calc: bool = False


@dataclass(frozen=True)
class PricingTier:
    min_quantity: Decimal
    max_quantity: Optional[Decimal]
    tier_price: Decimal
    is_active: bool = True
    name: str = ""
    display_order: int = 0


@dataclass(frozen=True)
class Variation:
    id: Optional[str] = None
    name: str = ""
    price_adjustment: Decimal = ZERO
    adjustment_type: AdjustmentType = AdjustmentType.FIXED
    height_value: Optional[Decimal] = None
    unit_of_measurement: str = "ft"
    affects_area_calculation: bool = False
    is_required: bool = False
    is_default: bool = False


@dataclass(frozen=True)
class AddonOption:
    id: Optional[str] = None
    name: str = ""
    price_adjustment: Decimal = ZERO


@dataclass(frozen=True)
class AddonSelection:
    """Selection state of an add-on on one line.

    The wire format keeps a single ``quantity`` field where 0 means "off";
    the engine works with this explicit pair instead.
    """
    selected: bool = False
    multiplier: Decimal = ZERO

    @classmethod
    def from_quantity(cls, quantity: Decimal) -> "AddonSelection":
        if quantity > 0:
            return cls(selected=True, multiplier=quantity)
        return cls(selected=False, multiplier=ZERO)

    @property
    def quantity(self) -> Decimal:
        return self.multiplier if self.selected else ZERO


@dataclass(frozen=True)
class Addon:
    id: Optional[str] = None
    name: str = ""
    price_value: Decimal = ZERO
    price_type: AdjustmentType = AdjustmentType.FIXED
    calculation_type: CalculationType = CalculationType.TOTAL
    selection: AddonSelection = field(default_factory=AddonSelection)
    options: Tuple[AddonOption, ...] = ()
    selected_option: Optional[AddonOption] = None

    @property
    def quantity(self) -> Decimal:
        return self.selection.quantity

    @property
    def is_selected(self) -> bool:
        return self.selection.selected


@dataclass(frozen=True)
class Product:
    id: Optional[str] = None
    name: str = ""
    unit_price: Decimal = ZERO
    unit_type: UnitType = UnitType.SQ_FT
    min_order_quantity: Optional[Decimal] = None
    increment_lot: Optional[IncrementLot] = None
    height: Optional[HeightConfig] = None
    uses_tiered_pricing: bool = False
    variations: Tuple[Variation, ...] = ()
    addons: Tuple[Addon, ...] = ()
    tiers: Tuple[PricingTier, ...] = ()


@dataclass(frozen=True)
class IncrementsApplied:
    units_needed: Decimal
    increment_size: Decimal
    increment_label: str


@dataclass(frozen=True)
class Measurement:
    type: MeasurementType = MeasurementType.AREA
    value: Decimal = ZERO
    depth: Optional[Decimal] = None


@dataclass(frozen=True)
class VariationContext:
    """Height information an area-mode add-on multiplies a linear measure by."""
    height: Optional[Decimal]
    unit: str = "ft"
    affects_area: bool = False


@dataclass(frozen=True)
class ResolvedQuantity:
    quantity: Decimal
    area_basis: Decimal
    increments_applied: Optional[IncrementsApplied] = None


@dataclass(frozen=True)
class AddonCharge:
    addon_id: Optional[str]
    name: str
    calculation_type: CalculationType
    quantity: Decimal
    total: Decimal


@dataclass(frozen=True)
class LinePrice:
    quantity: Decimal
    unit_price: Decimal
    base_price: Decimal
    addons_total: Decimal
    line_total: Decimal
    increments_applied: Optional[IncrementsApplied] = None
    addon_charges: Tuple[AddonCharge, ...] = ()


@dataclass(frozen=True)
class QuoteTotals:
    subtotal: Decimal
    markup_pct: Decimal
    markup_amount: Decimal
    tax_rate_pct: Decimal
    tax_amount: Decimal
    total: Decimal
