from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from .models import QuoteStatus
from .pricing.numbers import to_decimal, optional_decimal
from .pricing.types import AdjustmentType, CalculationType, MeasurementType, UnitType


# --- Catalog snapshot records ---
# Field names double as the keys of stored product snapshots (see snapshots.py).

class PricingTierIn(BaseModel):
    name: str = ""
    min_quantity: Decimal = Field(ge=0)
    max_quantity: Optional[Decimal] = None
    tier_price: Decimal = Field(ge=0)
    is_active: bool = True
    display_order: int = 0


class IncrementLotIn(BaseModel):
    size: Decimal = Field(gt=0)
    label: str = "unit"
    allow_partial: bool = False
    description: Optional[str] = None


class HeightConfigIn(BaseModel):
    base_height: Decimal = Field(ge=0)
    height_unit: str = "ft"
    use_height_in_area_calc: bool = False


class VariationIn(BaseModel):
    id: Optional[str] = None
    name: str = ""
    price_adjustment: Decimal = Decimal("0")
    adjustment_type: AdjustmentType = AdjustmentType.FIXED
    height_value: Optional[Decimal] = None
    unit_of_measurement: str = "ft"
    affects_area_calculation: bool = False
    is_required: bool = False
    is_default: bool = False
    display_order: int = 0

    @field_validator("price_adjustment", mode="before")
    @classmethod
    def _soft_adjustment(cls, value):
        return to_decimal(value)


class AddonOptionIn(BaseModel):
    id: Optional[str] = None
    name: str = ""
    price_adjustment: Decimal = Decimal("0")

    @field_validator("price_adjustment", mode="before")
    @classmethod
    def _soft_adjustment(cls, value):
        return to_decimal(value)


class AddonIn(BaseModel):
    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    price_value: Decimal = Decimal("0")
    price_type: AdjustmentType = AdjustmentType.FIXED
    calculation_type: CalculationType = CalculationType.TOTAL
    quantity: Decimal = Decimal("0")  # 0 = not selected
    options: List[AddonOptionIn] = []
    selected_option_id: Optional[str] = None
    display_order: int = 0

    @field_validator("price_value", "quantity", mode="before")
    @classmethod
    def _soft_number(cls, value):
        number = to_decimal(value)
        return number if number > 0 else Decimal("0")


class ProductIn(BaseModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    unit_type: UnitType = UnitType.SQ_FT
    min_order_quantity: Optional[Decimal] = None
    increment_lot: Optional[IncrementLotIn] = None
    height: Optional[HeightConfigIn] = None
    uses_tiered_pricing: bool = False
    variations: List[VariationIn] = []
    addons: List[AddonIn] = []
    tiers: List[PricingTierIn] = []


class ProductUpdate(BaseModel):
    """Partial product edit. Lists given here replace the stored ones."""
    name: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    unit_type: Optional[UnitType] = None
    min_order_quantity: Optional[Decimal] = None
    increment_lot: Optional[IncrementLotIn] = None
    height: Optional[HeightConfigIn] = None
    uses_tiered_pricing: Optional[bool] = None
    variations: Optional[List[VariationIn]] = None
    addons: Optional[List[AddonIn]] = None
    tiers: Optional[List[PricingTierIn]] = None
    is_active: Optional[bool] = None


class MeasurementIn(BaseModel):
    type: MeasurementType = MeasurementType.AREA
    value: Decimal = Decimal("0")
    depth: Optional[Decimal] = None
    unit: Optional[str] = None
    manual_entry: bool = False

    # Junk or negative measurements price as zero instead of failing the request
    @field_validator("value", mode="before")
    @classmethod
    def _soft_value(cls, value):
        number = to_decimal(value)
        return number if number > 0 else Decimal("0")

    @field_validator("depth", mode="before")
    @classmethod
    def _soft_depth(cls, value):
        number = optional_decimal(value)
        return number if number is not None and number > 0 else None


class AddonChoice(BaseModel):
    addon_id: str
    quantity: Decimal = Decimal("1")
    option_id: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def _soft_quantity(cls, value):
        number = to_decimal(value)
        return number if number > 0 else Decimal("0")


# --- Pricing requests ---

class LinePriceRequest(BaseModel):
    product: ProductIn
    measurement: MeasurementIn
    variation_id: Optional[str] = None
    addons: List[AddonChoice] = []


class QuoteTotalRequest(BaseModel):
    line_totals: List[Decimal] = []
    tax_rate_pct: Decimal = Decimal("0")
    markup_pct: Decimal = Decimal("0")


class IncrementRequest(BaseModel):
    measured: Decimal
    increment_size: Decimal = Field(gt=0)
    allow_partial: bool = False


class TierValidationRequest(BaseModel):
    tiers: List[PricingTierIn] = []


# --- Quotes ---

class QuoteCreate(BaseModel):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    project_address: Optional[str] = None
    notes: Optional[str] = None
    tax_rate_pct: Optional[Decimal] = Field(default=None, ge=0)
    markup_pct: Optional[Decimal] = Field(default=None, ge=0)


class QuoteUpdate(BaseModel):
    status: Optional[QuoteStatus] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    project_address: Optional[str] = None
    notes: Optional[str] = None
    tax_rate_pct: Optional[Decimal] = Field(default=None, ge=0)
    markup_pct: Optional[Decimal] = Field(default=None, ge=0)


class LineItemCreate(BaseModel):
    product_id: int
    measurement: MeasurementIn
    variation_id: Optional[str] = None
    addons: List[AddonChoice] = []
    notes: Optional[str] = None


class LineItemUpdate(BaseModel):
    measurement: Optional[MeasurementIn] = None
    variation_id: Optional[str] = None
    addons: Optional[List[AddonChoice]] = None
    notes: Optional[str] = None


class ProductSummary(BaseModel):
    id: int
    name: str
    unit_type: str
    unit_price: Decimal
    use_tiered_pricing: bool
    is_active: bool
    created_at: datetime
    class Config:
        from_attributes = True
