"""
Conversions between catalog rows, JSON snapshots and engine records.

A quote line stores the product exactly as it was priced (JSON, decimals as
strings). Re-pricing a line always starts from that snapshot, never from the
live catalog.
"""

from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from . import models
from .schemas import ProductIn
from .pricing.numbers import non_negative, optional_decimal, to_decimal
from .pricing.types import (
    Addon, AddonOption, AddonSelection, AdjustmentType, CalculationType,
    HeightConfig, IncrementLot, LinePrice, Measurement, MeasurementType,
    PricingTier, Product, UnitType, Variation,
)


# --- ORM -> snapshot ---

def product_snapshot_from_model(product: models.Product) -> dict:
    """JSON-safe product snapshot in the ProductIn shape."""
    data = {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "unit_price": product.unit_price or 0,
        "unit_type": product.unit_type or UnitType.SQ_FT.value,
        "min_order_quantity": product.min_order_quantity,
        "increment_lot": None,
        "height": None,
        "uses_tiered_pricing": bool(product.use_tiered_pricing),
        "variations": [
            {
                "id": str(v.id),
                "name": v.name,
                "price_adjustment": v.price_adjustment or 0,
                "adjustment_type": v.adjustment_type or "fixed",
                "height_value": v.height_value,
                "unit_of_measurement": v.unit_of_measurement or "ft",
                "affects_area_calculation": bool(v.affects_area_calculation),
                "is_required": bool(v.is_required),
                "is_default": bool(v.is_default),
                "display_order": v.display_order or 0,
            }
            for v in product.variations
        ],
        "addons": [
            {
                "id": str(a.id),
                "name": a.name,
                "description": a.description,
                "price_value": a.price_value or 0,
                "price_type": a.price_type or "fixed",
                "calculation_type": a.calculation_type or "total",
                "quantity": 0,
                "options": [
                    {"id": str(o.id), "name": o.name, "price_adjustment": o.price_adjustment or 0}
                    for o in a.options if o.is_active
                ],
                "display_order": a.display_order or 0,
            }
            for a in product.addons if a.is_active
        ],
        "tiers": [
            {
                "name": t.tier_name or "",
                "min_quantity": t.min_quantity,
                "max_quantity": t.max_quantity,
                "tier_price": t.tier_price,
                "is_active": bool(t.is_active),
                "display_order": t.display_order or 0,
            }
            for t in product.tiers
        ],
    }
    if product.sold_in_increments_of:
        data["increment_lot"] = {
            "size": product.sold_in_increments_of,
            "label": product.increment_unit_label or "unit",
            "allow_partial": bool(product.allow_partial_increments),
            "description": product.increment_description,
        }
    if product.base_height is not None:
        data["height"] = {
            "base_height": product.base_height,
            "height_unit": product.base_height_unit or "ft",
            "use_height_in_area_calc": bool(product.use_height_in_calculation),
        }
    return ProductIn.model_validate(data).model_dump(mode="json")


CHILD_LISTS = ("variations", "addons", "tiers")


def product_model_from_schema(product: ProductIn) -> models.Product:
    """New catalog rows for a validated ProductIn payload."""
    return apply_product_schema(models.Product(), product)


def apply_product_schema(db_product: models.Product, product: ProductIn,
                         children: Iterable[str] = CHILD_LISTS) -> models.Product:
    """
    Copy a validated ProductIn onto a catalog row.

    Scalar columns are always written. Child lists named in ``children`` are
    replaced wholesale; quotes keep their own snapshot, so old rows can go.
    """
    lot = product.increment_lot
    height = product.height
    db_product.name = product.name
    db_product.description = product.description
    db_product.unit_price = product.unit_price
    db_product.unit_type = product.unit_type.value
    db_product.min_order_quantity = product.min_order_quantity
    db_product.sold_in_increments_of = lot.size if lot else None
    db_product.increment_unit_label = lot.label if lot else None
    db_product.increment_description = lot.description if lot else None
    db_product.allow_partial_increments = lot.allow_partial if lot else False
    db_product.base_height = height.base_height if height else None
    db_product.base_height_unit = height.height_unit if height else "ft"
    db_product.use_height_in_calculation = height.use_height_in_area_calc if height else False
    db_product.use_tiered_pricing = product.uses_tiered_pricing

    if "variations" in children:
        db_product.variations = [
            models.ProductVariation(
                name=v.name,
                price_adjustment=v.price_adjustment,
                adjustment_type=v.adjustment_type.value,
                height_value=v.height_value,
                unit_of_measurement=v.unit_of_measurement,
                affects_area_calculation=v.affects_area_calculation,
                is_required=v.is_required,
                is_default=v.is_default,
                display_order=v.display_order or index,
            )
            for index, v in enumerate(product.variations)
        ]
    if "addons" in children:
        db_product.addons = [
            models.ProductAddon(
                name=a.name,
                description=a.description,
                price_value=a.price_value,
                price_type=a.price_type.value,
                calculation_type=a.calculation_type.value,
                display_order=a.display_order or index,
                options=[
                    models.AddonOption(
                        name=o.name, price_adjustment=o.price_adjustment, display_order=opt_index,
                    )
                    for opt_index, o in enumerate(a.options)
                ],
            )
            for index, a in enumerate(product.addons)
        ]
    if "tiers" in children:
        db_product.tiers = [
            models.PricingTier(
                tier_name=t.name,
                min_quantity=t.min_quantity,
                max_quantity=t.max_quantity,
                tier_price=t.tier_price,
                is_active=t.is_active,
                display_order=t.display_order or index,
            )
            for index, t in enumerate(product.tiers)
        ]
    return db_product


# --- snapshot -> engine ---

def _variation(data: dict) -> Variation:
    return Variation(
        id=data.get("id"),
        name=data.get("name") or "",
        price_adjustment=to_decimal(data.get("price_adjustment")),
        adjustment_type=AdjustmentType(data.get("adjustment_type") or "fixed"),
        height_value=optional_decimal(data.get("height_value")),
        unit_of_measurement=data.get("unit_of_measurement") or "ft",
        affects_area_calculation=bool(data.get("affects_area_calculation")),
        is_required=bool(data.get("is_required")),
        is_default=bool(data.get("is_default")),
    )


def _addon(data: dict) -> Addon:
    options = tuple(
        AddonOption(
            id=o.get("id"),
            name=o.get("name") or "",
            price_adjustment=to_decimal(o.get("price_adjustment")),
        )
        for o in data.get("options") or []
    )
    selected_id = data.get("selected_option_id")
    selected = next((o for o in options if selected_id and o.id == selected_id), None)
    return Addon(
        id=data.get("id"),
        name=data.get("name") or "",
        price_value=non_negative(data.get("price_value")),
        price_type=AdjustmentType(data.get("price_type") or "fixed"),
        calculation_type=CalculationType(data.get("calculation_type") or "total"),
        selection=AddonSelection.from_quantity(non_negative(data.get("quantity"))),
        options=options,
        selected_option=selected,
    )


def _tier(data: dict) -> PricingTier:
    return PricingTier(
        min_quantity=to_decimal(data.get("min_quantity")),
        max_quantity=optional_decimal(data.get("max_quantity")),
        tier_price=non_negative(data.get("tier_price")),
        is_active=data.get("is_active", True) is not False,
        name=data.get("name") or "",
        display_order=int(data.get("display_order") or 0),
    )


def engine_product(data: dict) -> Product:
    """Engine Product from a snapshot or a ProductIn.model_dump()."""
    lot_data = data.get("increment_lot")
    height_data = data.get("height")
    lot = None
    if lot_data and to_decimal(lot_data.get("size")) > 0:
        lot = IncrementLot(
            size=to_decimal(lot_data.get("size")),
            label=lot_data.get("label") or "unit",
            allow_partial=bool(lot_data.get("allow_partial")),
            description=lot_data.get("description"),
        )
    height = None
    if height_data:
        height = HeightConfig(
            base_height=non_negative(height_data.get("base_height")),
            height_unit=height_data.get("height_unit") or "ft",
            use_height_in_area_calc=bool(height_data.get("use_height_in_area_calc")),
        )
    return Product(
        id=data.get("id"),
        name=data.get("name") or "",
        unit_price=non_negative(data.get("unit_price")),
        unit_type=UnitType(data.get("unit_type") or "sq_ft"),
        min_order_quantity=optional_decimal(data.get("min_order_quantity")),
        increment_lot=lot,
        height=height,
        uses_tiered_pricing=bool(data.get("uses_tiered_pricing")),
        variations=tuple(_variation(v) for v in data.get("variations") or []),
        addons=tuple(_addon(a) for a in data.get("addons") or []),
        tiers=tuple(_tier(t) for t in data.get("tiers") or []),
    )


def engine_measurement(data: dict) -> Measurement:
    return Measurement(
        type=MeasurementType(data.get("type") or "area"),
        value=to_decimal(data.get("value")),
        depth=optional_decimal(data.get("depth")),
    )


def find_variation(product: Product, variation_id: Optional[str]) -> Optional[Variation]:
    if variation_id is None:
        return None
    for variation in product.variations:
        if variation.id == str(variation_id):
            return variation
    return None


def apply_addon_choices(product: Product, choices: Iterable[dict]) -> Tuple[Addon, ...]:
    """
    Product add-ons with the customer's choices applied.

    Add-ons without a choice keep their snapshot quantity (0 unless the
    snapshot pre-selected them). Choices for unknown add-ons are ignored here;
    validation reports them.
    """
    by_id = {str(c["addon_id"]): c for c in choices}
    result: List[Addon] = []
    for addon in product.addons:
        choice = by_id.get(str(addon.id))
        if choice is None:
            result.append(addon)
            continue
        option_id = choice.get("option_id")
        option = next((o for o in addon.options if option_id and o.id == str(option_id)), None)
        result.append(replace(
            addon,
            selection=AddonSelection.from_quantity(non_negative(choice.get("quantity"))),
            selected_option=option if option_id else addon.selected_option,
        ))
    return tuple(result)


def unknown_addon_ids(product: Product, choices: Iterable[dict]) -> List[str]:
    known = {str(a.id) for a in product.addons}
    return [str(c["addon_id"]) for c in choices if str(c["addon_id"]) not in known]


# --- engine -> JSON ---

def line_price_to_json(line: LinePrice) -> dict:
    """Exact engine output, decimals as strings."""
    increments = line.increments_applied
    return {
        "quantity": str(line.quantity),
        "unit_price": str(line.unit_price),
        "base_price": str(line.base_price),
        "addons_total": str(line.addons_total),
        "line_total": str(line.line_total),
        "increments_applied": {
            "units_needed": str(increments.units_needed),
            "increment_size": str(increments.increment_size),
            "increment_label": increments.increment_label,
        } if increments else None,
        "addons": [
            {
                "addon_id": c.addon_id,
                "name": c.name,
                "calculation_type": c.calculation_type.value,
                "quantity": str(c.quantity),
                "total": str(c.total),
            }
            for c in line.addon_charges
        ],
    }
