"""
Quote review grouping.

Lines for the same product and variation are shown as one group with summed
quantity and total. Inside a group, selected add-ons are grouped again by
add-on id and chosen option. Works on the line dicts the quote router
returns; nothing is re-priced here.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .pricing.numbers import to_decimal
from .pricing.types import ZERO


@dataclass
class ConsolidatedAddon:
    addon_id: str
    name: str
    calculation_type: str
    option_id: Optional[str]
    instances: int = 0
    total_quantity: Decimal = ZERO
    total: Decimal = ZERO
    line_item_ids: List[int] = field(default_factory=list)


@dataclass
class ConsolidatedProduct:
    product_id: Optional[int]
    product_name: str
    unit_type: Optional[str]
    variation_id: Optional[str]
    unit_price: Decimal
    total_quantity: Decimal = ZERO
    total_line_total: Decimal = ZERO
    line_item_ids: List[int] = field(default_factory=list)
    addons: List[ConsolidatedAddon] = field(default_factory=list)


def _selected_options(item: dict) -> Dict[str, Optional[str]]:
    return {
        str(choice.get("addon_id")): choice.get("option_id")
        for choice in item.get("addons") or []
    }


def consolidate_line_items(items: Iterable[dict]) -> List[ConsolidatedProduct]:
    """
    Group quote lines for review, keeping first-seen order.

    Products group on (product_id, variation_id); add-ons group on
    (addon_id, option_id). Only add-ons that produced a charge are counted,
    so toggled-off add-ons do not show up.
    """
    groups: Dict[Tuple, ConsolidatedProduct] = {}
    addon_groups: Dict[Tuple, Dict[Tuple, ConsolidatedAddon]] = {}

    for item in items:
        key = (item.get("product_id"), item.get("variation_id"))
        group = groups.get(key)
        if group is None:
            group = ConsolidatedProduct(
                product_id=item.get("product_id"),
                product_name=item.get("product_name") or "",
                unit_type=item.get("unit_type"),
                variation_id=item.get("variation_id"),
                unit_price=to_decimal(item.get("unit_price")),
            )
            groups[key] = group
            addon_groups[key] = {}
        group.total_quantity += to_decimal(item.get("quantity"))
        group.total_line_total += to_decimal(item.get("line_total"))
        group.line_item_ids.append(item.get("id"))

        options = _selected_options(item)
        for charge in item.get("addon_charges") or []:
            addon_id = str(charge.get("addon_id"))
            option_id = options.get(addon_id)
            addon = addon_groups[key].get((addon_id, option_id))
            if addon is None:
                addon = ConsolidatedAddon(
                    addon_id=addon_id,
                    name=charge.get("name") or "",
                    calculation_type=charge.get("calculation_type") or "total",
                    option_id=option_id,
                )
                addon_groups[key][(addon_id, option_id)] = addon
                group.addons.append(addon)
            addon.instances += 1
            addon.total_quantity += to_decimal(charge.get("quantity"))
            addon.total += to_decimal(charge.get("total"))
            addon.line_item_ids.append(item.get("id"))

    return list(groups.values())


def consolidated_to_json(groups: Iterable[ConsolidatedProduct]) -> List[dict]:
    """Review groups with decimals as strings."""
    return [
        {
            "product_id": g.product_id,
            "product_name": g.product_name,
            "unit_type": g.unit_type,
            "variation_id": g.variation_id,
            "unit_price": str(g.unit_price),
            "total_quantity": str(g.total_quantity),
            "total_line_total": str(g.total_line_total),
            "line_item_ids": g.line_item_ids,
            "addons": [
                {
                    "addon_id": a.addon_id,
                    "name": a.name,
                    "calculation_type": a.calculation_type,
                    "option_id": a.option_id,
                    "instances": a.instances,
                    "total_quantity": str(a.total_quantity),
                    "total": str(a.total),
                    "line_item_ids": a.line_item_ids,
                }
                for a in g.addons
            ],
        }
        for g in groups
    ]
