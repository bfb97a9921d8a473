"""Initial schema: classification, lookup history, landed cost history, ESG scores.

Revision ID: initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


revision = "initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "product_hs_codes",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("product_id", sa.String(), nullable=False),
        sa.Column("shop_domain", sa.String(), nullable=False),
        sa.Column("product_name", sa.String(), nullable=False),
        sa.Column("product_description", sa.Text(), nullable=True),
        sa.Column("product_category", sa.String(), nullable=True),
        sa.Column("hs_code", sa.String(), nullable=False),
        sa.Column("confidence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("alternative_codes", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "shop_domain", name="product_hs_codes_product_shop_unique"),
    )
    op.create_index("ix_product_hs_codes_product_id", "product_hs_codes", ["product_id"])
    op.create_index("ix_product_hs_codes_shop_domain", "product_hs_codes", ["shop_domain"])

    op.create_table(
        "hs_lookups",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("product_name", sa.String(), nullable=False),
        sa.Column("product_description", sa.Text(), nullable=True),
        sa.Column("product_category", sa.String(), nullable=True),
        sa.Column("suggestions", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_hs_lookups_created_at", "hs_lookups", ["created_at"])

    op.create_table(
        "landed_cost_calculations",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("product_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("shipping_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("insurance", sa.Float(), nullable=False, server_default="0"),
        sa.Column("origin_country", sa.String(2), nullable=True),
        sa.Column("destination_country", sa.String(2), nullable=False),
        sa.Column("hs_code", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("product_title", sa.String(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("input_currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("source", sa.String(), nullable=False, server_default="dutify"),
        sa.Column("total_landed_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_duties", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_taxes", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_fees", sa.Float(), nullable=False, server_default="0"),
        sa.Column("item_duty_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("item_duty_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("item_vat_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("item_vat_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("margin", sa.Float(), nullable=False, server_default="0"),
        sa.Column("full_response", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_landed_cost_calculations_created_at", "landed_cost_calculations", ["created_at"])

    op.create_table(
        "product_esg_scores",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("product_id", sa.String(), nullable=False),
        sa.Column("shop_domain", sa.String(), nullable=False),
        sa.Column("product_title", sa.String(), nullable=True),
        sa.Column("vendor", sa.String(), nullable=True),
        sa.Column("vendor_symbol", sa.String(), nullable=True),
        sa.Column("esg_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("environment_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("social_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("governance_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("risk_level", sa.String(), nullable=False, server_default="medium"),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "shop_domain", name="product_esg_scores_product_shop_unique"),
    )
    op.create_index("ix_product_esg_scores_product_id", "product_esg_scores", ["product_id"])
    op.create_index("ix_product_esg_scores_shop_domain", "product_esg_scores", ["shop_domain"])
    op.create_index("ix_product_esg_scores_last_updated", "product_esg_scores", ["last_updated"])


def downgrade() -> None:
    op.drop_table("product_esg_scores")
    op.drop_table("landed_cost_calculations")
    op.drop_table("hs_lookups")
    op.drop_table("product_hs_codes")
