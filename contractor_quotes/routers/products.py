import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..database import get_db
from ..pricing.base_price import validate_tiers
from ..pricing.validation import check_default_variations
from ..snapshots import (
    CHILD_LISTS, apply_product_schema, engine_product, product_model_from_schema,
    product_snapshot_from_model,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

# Starter catalog for a new contractor; edit via the API afterwards
DEFAULT_PRODUCTS = [
    {
        "name": "Sod Installation",
        "unit_price": Decimal("1.85"),
        "unit_type": "sq_ft",
        "min_order_quantity": Decimal("100"),
        "increment_lot": {"size": Decimal("450"), "label": "pallet",
                          "description": "Sod ships on pallets of 450 sq ft"},
        "addons": [
            {"name": "Starter fertilizer", "price_value": Decimal("0.08"), "calculation_type": "per_unit"},
            {"name": "Old lawn removal", "price_value": Decimal("250"), "calculation_type": "total"},
        ],
    },
    {
        "name": "Wood Privacy Fence",
        "unit_price": Decimal("32.00"),
        "unit_type": "linear_ft",
        "variations": [
            {"name": "4 ft", "height_value": Decimal("4"), "affects_area_calculation": True},
            {"name": "6 ft", "price_adjustment": Decimal("8.00"), "height_value": Decimal("6"),
             "affects_area_calculation": True, "is_default": True},
            {"name": "Cedar upgrade", "price_adjustment": Decimal("15"), "adjustment_type": "percentage"},
        ],
        "addons": [
            {"name": "Stain & seal", "price_value": Decimal("1.25"), "calculation_type": "area_calculation",
             "options": [{"name": "Natural"}, {"name": "Redwood tint", "price_adjustment": Decimal("0.15")}]},
            {"name": "Walk gate", "price_value": Decimal("425"), "calculation_type": "total"},
        ],
    },
    {
        "name": "Mulch Delivery",
        "unit_price": Decimal("45.00"),
        "unit_type": "cubic_yard",
        "uses_tiered_pricing": True,
        "tiers": [
            {"name": "Small load", "min_quantity": Decimal("0"), "max_quantity": Decimal("10"),
             "tier_price": Decimal("45.00")},
            {"name": "Bulk", "min_quantity": Decimal("11"), "max_quantity": None,
             "tier_price": Decimal("38.00")},
        ],
        "addons": [
            {"name": "Spreading", "price_value": Decimal("20"), "calculation_type": "per_unit"},
        ],
    },
]

# Fields that cannot be cleared; an explicit null leaves them unchanged
NOT_NULLABLE = ("name", "unit_price", "unit_type", "uses_tiered_pricing") + CHILD_LISTS


def _get_product(product_id: int, db: Session) -> models.Product:
    product = db.query(models.Product).filter(models.Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def catalog_errors(product: schemas.ProductIn) -> List[str]:
    """Save-time checks: tier layout and a single default variation."""
    snapshot = engine_product(product.model_dump(mode="json"))
    errors = validate_tiers(snapshot.tiers)
    errors.extend(check_default_variations(snapshot.variations))
    return errors


def seed_default_products(db: Session) -> int:
    """Insert the starter catalog when the products table is empty."""
    if db.query(models.Product).count() > 0:
        return 0
    for data in DEFAULT_PRODUCTS:
        db.add(product_model_from_schema(schemas.ProductIn.model_validate(data)))
    db.commit()
    logger.info("Seeded %d default products", len(DEFAULT_PRODUCTS))
    return len(DEFAULT_PRODUCTS)


@router.get("/seed")
def seed_products(db: Session = Depends(get_db)):
    """Seed the starter catalog. Safe to run multiple times — skips when products exist."""
    return {"ok": True, "seeded": seed_default_products(db)}


@router.post("/validate-tiers")
def check_tiers(request: schemas.TierValidationRequest):
    snapshot = engine_product({"tiers": [t.model_dump(mode="json") for t in request.tiers]})
    errors = validate_tiers(snapshot.tiers)
    return {"valid": not errors, "errors": errors}


@router.post("/")
def create_product(product: schemas.ProductIn, db: Session = Depends(get_db)):
    errors = catalog_errors(product)
    if errors:
        raise HTTPException(status_code=422, detail=errors)
    db_product = product_model_from_schema(product)
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    logger.info("Created product %s (%s)", db_product.id, db_product.name)
    return product_snapshot_from_model(db_product)


@router.get("/", response_model=List[schemas.ProductSummary])
def list_products(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return db.query(models.Product).filter(
        models.Product.is_active.is_(True)
    ).order_by(models.Product.name).offset(skip).limit(limit).all()


@router.get("/{product_id}")
def get_product(product_id: int, db: Session = Depends(get_db)):
    return product_snapshot_from_model(_get_product(product_id, db))


@router.patch("/{product_id}")
def update_product(product_id: int, update: schemas.ProductUpdate, db: Session = Depends(get_db)):
    """
    Edit a catalog product. Existing quote lines keep the snapshot they were
    priced from; only lines added afterwards see the change.
    """
    db_product = _get_product(product_id, db)
    changes = update.model_dump(mode="json", exclude_unset=True)
    is_active = changes.pop("is_active", None)
    for field in NOT_NULLABLE:
        if field in changes and changes[field] is None:
            del changes[field]

    merged = schemas.ProductIn.model_validate({**product_snapshot_from_model(db_product), **changes})
    errors = catalog_errors(merged)
    if errors:
        raise HTTPException(status_code=422, detail=errors)

    apply_product_schema(db_product, merged, children=[c for c in CHILD_LISTS if c in changes])
    if is_active is not None:
        db_product.is_active = is_active
    db.commit()
    db.refresh(db_product)
    logger.info("Updated product %s (%s)", db_product.id, db_product.name)
    return product_snapshot_from_model(db_product)


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Soft delete: the product leaves the catalog but quoted snapshots stay intact."""
    db_product = _get_product(product_id, db)
    db_product.is_active = False
    db.commit()
    logger.info("Deactivated product %s (%s)", db_product.id, db_product.name)
    return {"ok": True}
