"""
Pricing API — stateless line and quote pricing.

POST /api/pricing/line         — Price a product snapshot + selections
POST /api/pricing/quote-total  — Subtotal, markup and tax for a set of line totals
POST /api/pricing/increments   — Lot breakdown for a measurement on a lot-sold product

Nothing here touches the database. Precondition problems are returned as
warnings; the line is still priced.
"""

from fastapi import APIRouter

from .. import schemas
from ..config import format_settings
from ..formatting import display_quote_total, format_exact_price
from ..line_items import engine, price_line
from ..pricing.units import calculate_increment_quantity

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/line")
def price_line_item(request: schemas.LinePriceRequest):
    priced = price_line(
        request.product.model_dump(mode="json"),
        request.measurement.model_dump(mode="json"),
        variation_id=request.variation_id,
        addon_choices=[c.model_dump(mode="json") for c in request.addons],
    )
    result = priced.outputs()
    result["variation_id"] = priced.variation.id if priced.variation else None
    result["warnings"] = priced.errors
    result["display"] = priced.display(format_settings())
    return result


@router.post("/quote-total")
def price_quote_total(request: schemas.QuoteTotalRequest):
    totals = engine.compute_quote_totals(
        request.line_totals, request.tax_rate_pct, request.markup_pct,
    )
    fmt = format_settings()
    return {
        "subtotal": str(totals.subtotal),
        "markup_pct": str(totals.markup_pct),
        "markup_amount": str(totals.markup_amount),
        "tax_rate_pct": str(totals.tax_rate_pct),
        "tax_amount": str(totals.tax_amount),
        "total": str(totals.total),
        "display": {
            "subtotal": format_exact_price(totals.subtotal, fmt),
            "tax_amount": format_exact_price(totals.tax_amount, fmt),
            "total": display_quote_total(totals.total, fmt),
        },
    }


@router.post("/increments")
def price_increments(request: schemas.IncrementRequest):
    breakdown = calculate_increment_quantity(
        request.measured, request.increment_size, request.allow_partial,
    )
    return {
        key: value if isinstance(value, bool) else str(value)
        for key, value in breakdown.items()
    }
