from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, Enum, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


# Money and quantities are stored as Numeric for listing and reporting.
# Exact engine output lives in QuoteLineItem.outputs_json as decimal strings.
Money = Numeric(14, 4)


# --- Catalog ---

class Product(Base):
    """A sellable catalog entry. Quotes copy what they need into a snapshot."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    unit_price = Column(Money, default=0)
    unit_type = Column(String, default="sq_ft")  # see pricing.types.UnitType
    min_order_quantity = Column(Money, nullable=True)

    # Sold in lots, e.g. 450 sq ft per pallet
    sold_in_increments_of = Column(Money, nullable=True)
    increment_unit_label = Column(String, nullable=True)
    increment_description = Column(Text, nullable=True)
    allow_partial_increments = Column(Boolean, default=False)

    # Fallback height for area add-ons when the variation has none
    base_height = Column(Money, nullable=True)
    base_height_unit = Column(String, default="ft")
    use_height_in_calculation = Column(Boolean, default=False)

    use_tiered_pricing = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    variations = relationship("ProductVariation", back_populates="product",
                              cascade="all, delete-orphan", order_by="ProductVariation.display_order")
    addons = relationship("ProductAddon", back_populates="product",
                          cascade="all, delete-orphan", order_by="ProductAddon.display_order")
    tiers = relationship("PricingTier", back_populates="product",
                         cascade="all, delete-orphan", order_by="PricingTier.display_order")


class ProductVariation(Base):
    __tablename__ = "product_variations"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    name = Column(String, nullable=False)
    price_adjustment = Column(Money, default=0)
    adjustment_type = Column(String, default="fixed")  # 'fixed' | 'percentage'
    height_value = Column(Money, nullable=True)
    unit_of_measurement = Column(String, default="ft")
    affects_area_calculation = Column(Boolean, default=False)
    is_required = Column(Boolean, default=False)
    is_default = Column(Boolean, default=False)
    display_order = Column(Integer, default=0)

    product = relationship("Product", back_populates="variations")


class ProductAddon(Base):
    __tablename__ = "product_addons"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price_value = Column(Money, default=0)
    price_type = Column(String, default="fixed")  # 'fixed' | 'percentage'
    calculation_type = Column(String, default="total")  # 'total' | 'per_unit' | 'area_calculation'
    is_active = Column(Boolean, default=True)
    display_order = Column(Integer, default=0)

    product = relationship("Product", back_populates="addons")
    options = relationship("AddonOption", back_populates="addon",
                           cascade="all, delete-orphan", order_by="AddonOption.display_order")


class AddonOption(Base):
    """Named sub-choice of an add-on (color, material) with its own adjustment."""
    __tablename__ = "addon_options"

    id = Column(Integer, primary_key=True, index=True)
    addon_id = Column(Integer, ForeignKey("product_addons.id"), nullable=False)
    name = Column(String, nullable=False)
    price_adjustment = Column(Money, default=0)
    is_active = Column(Boolean, default=True)
    display_order = Column(Integer, default=0)

    addon = relationship("ProductAddon", back_populates="options")


class PricingTier(Base):
    __tablename__ = "pricing_tiers"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    tier_name = Column(String, default="")
    min_quantity = Column(Money, nullable=False)
    max_quantity = Column(Money, nullable=True)  # NULL = unbounded
    tier_price = Column(Money, nullable=False)
    is_active = Column(Boolean, default=True)
    display_order = Column(Integer, default=0)

    product = relationship("Product", back_populates="tiers")


# --- Quotes ---

class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    quote_number = Column(String, unique=True, nullable=False)
    status = Column(Enum(QuoteStatus), default=QuoteStatus.DRAFT)
    customer_name = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    project_address = Column(Text, nullable=True)
    notes = Column(Text)
    # Rates
    tax_rate_pct = Column(Money, default=0)
    markup_pct = Column(Money, default=0)
    # Totals
    subtotal = Column(Money, default=0)
    markup_amount = Column(Money, default=0)
    tax_amount = Column(Money, default=0)
    total = Column(Money, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    line_items = relationship("QuoteLineItem", back_populates="quote",
                              cascade="all, delete-orphan", order_by="QuoteLineItem.id")


class QuoteLineItem(Base):
    """
    One priced product on a quote.

    product_snapshot and selections_json hold everything the engine needs to
    re-price the line, so later catalog edits never change it.
    """
    __tablename__ = "quote_line_items"

    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False)
    product_id = Column(Integer, nullable=True)  # catalog reference, informational only
    product_name = Column(String, nullable=False)
    unit_type = Column(String, default="sq_ft")

    # Measurement as entered
    measurement_type = Column(String, default="area")
    measurement_value = Column(Money, default=0)
    depth = Column(Money, nullable=True)

    # Engine output
    quantity = Column(Money, default=0)
    unit_price = Column(Money, default=0)
    addons_total = Column(Money, default=0)
    line_total = Column(Money, default=0)

    product_snapshot = Column(JSON, nullable=False)
    selections_json = Column(JSON, default=dict)  # {variation_id, addons: [{addon_id, quantity, option_id}]}
    outputs_json = Column(JSON, nullable=True)  # LinePrice as decimal strings
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    quote = relationship("Quote", back_populates="line_items")
