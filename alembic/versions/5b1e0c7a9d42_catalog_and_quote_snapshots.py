"""catalog and quote snapshots

Revision ID: 5b1e0c7a9d42
Revises:
Create Date: 2026-10-19 09:12:40.118204

Product catalog (variations, add-ons with options, pricing tiers) and quotes
whose line items carry a product snapshot plus exact engine output.
Skips tables that Base.metadata.create_all() already made.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5b1e0c7a9d42'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(14, 4)


def _table_exists(table_name):
    """Check if a table exists."""
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("products"):
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("unit_price", MONEY, nullable=True),
            sa.Column("unit_type", sa.String(), nullable=True),
            sa.Column("min_order_quantity", MONEY, nullable=True),
            sa.Column("sold_in_increments_of", MONEY, nullable=True),
            sa.Column("increment_unit_label", sa.String(), nullable=True),
            sa.Column("increment_description", sa.Text(), nullable=True),
            sa.Column("allow_partial_increments", sa.Boolean(), nullable=True),
            sa.Column("base_height", MONEY, nullable=True),
            sa.Column("base_height_unit", sa.String(), nullable=True),
            sa.Column("use_height_in_calculation", sa.Boolean(), nullable=True),
            sa.Column("use_tiered_pricing", sa.Boolean(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("product_variations"):
        op.create_table(
            "product_variations",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("price_adjustment", MONEY, nullable=True),
            sa.Column("adjustment_type", sa.String(), nullable=True),
            sa.Column("height_value", MONEY, nullable=True),
            sa.Column("unit_of_measurement", sa.String(), nullable=True),
            sa.Column("affects_area_calculation", sa.Boolean(), nullable=True),
            sa.Column("is_required", sa.Boolean(), nullable=True),
            sa.Column("is_default", sa.Boolean(), nullable=True),
            sa.Column("display_order", sa.Integer(), nullable=True),
        )

    if not _table_exists("product_addons"):
        op.create_table(
            "product_addons",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("price_value", MONEY, nullable=True),
            sa.Column("price_type", sa.String(), nullable=True),
            sa.Column("calculation_type", sa.String(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("display_order", sa.Integer(), nullable=True),
        )

    if not _table_exists("addon_options"):
        op.create_table(
            "addon_options",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("addon_id", sa.Integer(), sa.ForeignKey("product_addons.id"), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("price_adjustment", MONEY, nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("display_order", sa.Integer(), nullable=True),
        )

    if not _table_exists("pricing_tiers"):
        op.create_table(
            "pricing_tiers",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
            sa.Column("tier_name", sa.String(), nullable=True),
            sa.Column("min_quantity", MONEY, nullable=False),
            sa.Column("max_quantity", MONEY, nullable=True),
            sa.Column("tier_price", MONEY, nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("display_order", sa.Integer(), nullable=True),
        )

    if not _table_exists("quotes"):
        op.create_table(
            "quotes",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("quote_number", sa.String(), nullable=False, unique=True),
            sa.Column("status", sa.Enum("DRAFT", "PENDING", "ACCEPTED", "DECLINED", "EXPIRED",
                                        name="quotestatus"), nullable=True),
            sa.Column("customer_name", sa.String(), nullable=True),
            sa.Column("customer_email", sa.String(), nullable=True),
            sa.Column("project_address", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("tax_rate_pct", MONEY, nullable=True),
            sa.Column("markup_pct", MONEY, nullable=True),
            sa.Column("subtotal", MONEY, nullable=True),
            sa.Column("markup_amount", MONEY, nullable=True),
            sa.Column("tax_amount", MONEY, nullable=True),
            sa.Column("total", MONEY, nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("quote_line_items"):
        op.create_table(
            "quote_line_items",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("quote_id", sa.Integer(), sa.ForeignKey("quotes.id"), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=True),
            sa.Column("product_name", sa.String(), nullable=False),
            sa.Column("unit_type", sa.String(), nullable=True),
            sa.Column("measurement_type", sa.String(), nullable=True),
            sa.Column("measurement_value", MONEY, nullable=True),
            sa.Column("depth", MONEY, nullable=True),
            sa.Column("quantity", MONEY, nullable=True),
            sa.Column("unit_price", MONEY, nullable=True),
            sa.Column("addons_total", MONEY, nullable=True),
            sa.Column("line_total", MONEY, nullable=True),
            sa.Column("product_snapshot", sa.JSON(), nullable=False),
            sa.Column("selections_json", sa.JSON(), nullable=True),
            sa.Column("outputs_json", sa.JSON(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )


def downgrade() -> None:
    for table in ("quote_line_items", "quotes", "pricing_tiers", "addon_options",
                  "product_addons", "product_variations", "products"):
        if _table_exists(table):
            op.drop_table(table)
