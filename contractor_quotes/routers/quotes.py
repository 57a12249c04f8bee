import logging
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from .. import models, schemas
from ..config import settings, format_settings
from ..consolidation import consolidate_line_items, consolidated_to_json
from ..database import get_db
from ..formatting import display_quote_total, format_exact_price
from ..line_items import engine, price_line
from ..pricing.numbers import to_decimal
from ..snapshots import product_snapshot_from_model

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])


def generate_quote_number(db: Session) -> str:
    """Next number after the highest quote id, so remaining quotes never collide."""
    last_id = db.query(func.max(models.Quote.id)).scalar() or 0
    year = datetime.utcnow().year
    return f"{settings.QUOTE_NUMBER_PREFIX}-{year}-{str(last_id + 1).zfill(4)}"


def calculate_totals(quote: models.Quote, db: Session):
    """
    Recalculate quote totals from the stored line outputs.

    subtotal = sum of line totals (exact, from outputs_json)
    markup   = subtotal * markup_pct / 100
    tax      = (subtotal + markup) * tax_rate_pct / 100, applied once
    """
    line_totals = [
        to_decimal((item.outputs_json or {}).get("line_total"))
        for item in quote.line_items
    ]
    totals = engine.compute_quote_totals(line_totals, quote.tax_rate_pct, quote.markup_pct)
    quote.subtotal = totals.subtotal
    quote.markup_amount = totals.markup_amount
    quote.tax_amount = totals.tax_amount
    quote.total = totals.total
    quote.updated_at = datetime.utcnow()
    db.commit()


def _get_quote(quote_id: int, db: Session) -> models.Quote:
    quote = db.query(models.Quote).filter(models.Quote.id == quote_id).first()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


def _get_item(quote: models.Quote, item_id: int) -> models.QuoteLineItem:
    for item in quote.line_items:
        if item.id == item_id:
            return item
    raise HTTPException(status_code=404, detail="Line item not found")


def _store_line(item: models.QuoteLineItem, priced, measurement: dict, selections: dict):
    """Copy engine output onto the line item row."""
    line = priced.line
    item.measurement_type = measurement.get("type") or "area"
    item.measurement_value = to_decimal(measurement.get("value"))
    item.depth = priced.measurement.depth
    item.quantity = line.quantity
    item.unit_price = line.unit_price
    item.addons_total = line.addons_total
    item.line_total = line.line_total
    item.selections_json = {
        "measurement": measurement,
        "variation_id": priced.variation.id if priced.variation else None,
        "addons": selections.get("addons", []),
    }
    item.outputs_json = priced.outputs()


def _merge_choices(existing: list, updates: list) -> list:
    """Apply add-on updates by id; add-ons are toggled by quantity, never dropped."""
    merged = {str(c["addon_id"]): dict(c) for c in existing}
    for choice in updates:
        merged[str(choice["addon_id"])] = dict(choice)
    return list(merged.values())


# --- Endpoints ---

@router.post("/")
def create_quote(quote: schemas.QuoteCreate, db: Session = Depends(get_db)):
    db_quote = models.Quote(
        quote_number=generate_quote_number(db),
        customer_name=quote.customer_name,
        customer_email=quote.customer_email,
        project_address=quote.project_address,
        notes=quote.notes,
        tax_rate_pct=quote.tax_rate_pct if quote.tax_rate_pct is not None
        else Decimal(str(settings.TAX_RATE_DEFAULT)),
        markup_pct=quote.markup_pct if quote.markup_pct is not None
        else Decimal(str(settings.MARKUP_DEFAULT)),
    )
    db.add(db_quote)
    db.flush()
    calculate_totals(db_quote, db)
    db.refresh(db_quote)
    logger.info("Created quote %s", db_quote.quote_number)
    return _quote_to_dict(db_quote)


@router.get("/")
def list_quotes(skip: int = 0, limit: int = 50, db: Session = Depends(get_db)):
    quotes = db.query(models.Quote).order_by(models.Quote.created_at.desc()).offset(skip).limit(limit).all()
    return [_quote_summary(q) for q in quotes]


@router.get("/{quote_id}")
def get_quote(quote_id: int, db: Session = Depends(get_db)):
    return _quote_to_dict(_get_quote(quote_id, db))


@router.get("/{quote_id}/review")
def review_quote(quote_id: int, db: Session = Depends(get_db)):
    """Quote lines grouped by product and variation, add-ons by add-on and option."""
    quote = _get_quote(quote_id, db)
    groups = consolidate_line_items(_item_to_dict(i) for i in quote.line_items)
    return {
        "id": quote.id,
        "quote_number": quote.quote_number,
        "total": str(to_decimal(quote.total)),
        "groups": consolidated_to_json(groups),
    }


@router.patch("/{quote_id}")
def update_quote(quote_id: int, update: schemas.QuoteUpdate, db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    for field, value in update.model_dump(exclude_unset=True).items():
        if field in ("tax_rate_pct", "markup_pct") and value is None:
            continue
        setattr(quote, field, value)
    calculate_totals(quote, db)
    db.refresh(quote)
    return _quote_to_dict(quote)


@router.delete("/{quote_id}")
def delete_quote(quote_id: int, db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    db.delete(quote)
    db.commit()
    return {"ok": True}


@router.post("/{quote_id}/items")
def add_line_item(quote_id: int, request: schemas.LineItemCreate, db: Session = Depends(get_db)):
    """
    Add a catalog product to a quote.

    The product is copied into a snapshot first; the line is priced from the
    snapshot so it stays reproducible after catalog edits.
    """
    quote = _get_quote(quote_id, db)
    product = db.query(models.Product).filter(models.Product.id == request.product_id).first()
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")

    snapshot = product_snapshot_from_model(product)
    measurement = request.measurement.model_dump(mode="json")
    choices = [c.model_dump(mode="json") for c in request.addons]
    priced = price_line(snapshot, measurement, request.variation_id, choices)
    if priced.errors:
        raise HTTPException(status_code=422, detail=priced.errors)

    item = models.QuoteLineItem(
        quote_id=quote.id,
        product_id=product.id,
        product_name=product.name,
        unit_type=snapshot["unit_type"],
        product_snapshot=snapshot,
        notes=request.notes,
    )
    _store_line(item, priced, measurement, {"addons": choices})
    db.add(item)
    db.flush()
    db.refresh(quote)
    calculate_totals(quote, db)
    db.refresh(item)
    logger.info("Quote %s: added %s, line total %s", quote.quote_number, item.product_name, item.line_total)
    return _item_to_dict(item)


@router.patch("/{quote_id}/items/{item_id}")
def update_line_item(quote_id: int, item_id: int, update: schemas.LineItemUpdate,
                     db: Session = Depends(get_db)):
    """Change measurement, variation or add-ons and re-price from the stored snapshot."""
    quote = _get_quote(quote_id, db)
    item = _get_item(quote, item_id)
    stored = item.selections_json or {}
    changes = update.model_dump(mode="json", exclude_unset=True)

    measurement = changes.get("measurement") or stored.get("measurement") or {}
    variation_id = changes["variation_id"] if "variation_id" in changes else stored.get("variation_id")
    choices = stored.get("addons", [])
    if changes.get("addons") is not None:
        choices = _merge_choices(choices, changes["addons"])

    priced = price_line(
        item.product_snapshot, measurement, variation_id, choices,
        use_default_variation=False,
    )
    if priced.errors:
        raise HTTPException(status_code=422, detail=priced.errors)

    _store_line(item, priced, measurement, {"addons": choices})
    if "notes" in changes:
        item.notes = changes["notes"]
    calculate_totals(quote, db)
    db.refresh(item)
    return _item_to_dict(item)


@router.delete("/{quote_id}/items/{item_id}")
def delete_line_item(quote_id: int, item_id: int, db: Session = Depends(get_db)):
    quote = _get_quote(quote_id, db)
    item = _get_item(quote, item_id)
    db.delete(item)
    db.flush()
    db.refresh(quote)
    calculate_totals(quote, db)
    return {"ok": True, "subtotal": str(quote.subtotal), "total": str(quote.total)}


def _quote_summary(q: models.Quote) -> dict:
    return {
        "id": q.id,
        "quote_number": q.quote_number,
        "status": q.status.value if q.status else "draft",
        "customer_name": q.customer_name,
        "total": str(q.total),
        "item_count": len(q.line_items),
        "created_at": q.created_at.isoformat() if q.created_at else None,
    }


def _quote_to_dict(q: models.Quote) -> dict:
    status = q.status.value if q.status else "draft"
    fmt = format_settings()
    return {
        "id": q.id,
        "quote_number": q.quote_number,
        "status": status,
        "customer_name": q.customer_name,
        "customer_email": q.customer_email,
        "project_address": q.project_address,
        "notes": q.notes,
        "tax_rate_pct": str(to_decimal(q.tax_rate_pct)),
        "markup_pct": str(to_decimal(q.markup_pct)),
        "subtotal": str(to_decimal(q.subtotal)),
        "markup_amount": str(to_decimal(q.markup_amount)),
        "tax_amount": str(to_decimal(q.tax_amount)),
        "total": str(to_decimal(q.total)),
        "display": {
            "subtotal": format_exact_price(to_decimal(q.subtotal), fmt),
            "tax_amount": format_exact_price(to_decimal(q.tax_amount), fmt),
            "total": display_quote_total(to_decimal(q.total), fmt, status),
        },
        "created_at": q.created_at.isoformat() if q.created_at else None,
        "updated_at": q.updated_at.isoformat() if q.updated_at else None,
        "line_items": [_item_to_dict(i) for i in q.line_items],
    }


def _item_to_dict(i: models.QuoteLineItem) -> dict:
    outputs = i.outputs_json or {}
    selections = i.selections_json or {}
    return {
        "id": i.id,
        "quote_id": i.quote_id,
        "product_id": i.product_id,
        "product_name": i.product_name,
        "unit_type": i.unit_type,
        "measurement": selections.get("measurement"),
        "variation_id": selections.get("variation_id"),
        "addons": selections.get("addons", []),
        "quantity": outputs.get("quantity"),
        "unit_price": outputs.get("unit_price"),
        "base_price": outputs.get("base_price"),
        "addons_total": outputs.get("addons_total"),
        "line_total": outputs.get("line_total"),
        "increments_applied": outputs.get("increments_applied"),
        "addon_charges": outputs.get("addons", []),
        "notes": i.notes,
    }
