"""initial pipeline schema

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROCESS_STATUS_VALUES = ("ordered", "preparing", "out_for_delivery", "in_transit")


def _pk() -> sa.Column:
    return sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    process_status = postgresql.ENUM(*PROCESS_STATUS_VALUES, name="process_status", create_type=False)
    process_status.create(op.get_bind(), checkfirst=True)

    # ---------- MASTER DATA ----------
    op.create_table(
        "catalog_records",
        _pk(),
        sa.Column("substance", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("company", sa.String(255), nullable=False, server_default=""),
        sa.Column("units_per_box_a", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("units_per_box_b", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("image_blob_id", sa.String(128)),
        *_timestamps(),
        sa.UniqueConstraint("substance", name="uq_catalog_records_substance"),
        sa.CheckConstraint("units_per_box_a >= 0", name="ck_catalog_units_a_nonneg"),
        sa.CheckConstraint("units_per_box_b >= 0", name="ck_catalog_units_b_nonneg"),
        sa.CheckConstraint("price >= 0", name="ck_catalog_price_nonneg"),
    )

    # ---------- ORDER LEDGER ----------
    op.create_table(
        "order_rows",
        _pk(),
        sa.Column("row_number", sa.Integer(), nullable=False),
        sa.Column("substance", sa.String(255), nullable=False),
        sa.Column("current_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quantity_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("real_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit_quantity_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit_real_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("row_number", name="uq_order_rows_row_number"),
        sa.CheckConstraint("quantity_order >= 0", name="ck_order_qty_nonneg"),
        sa.CheckConstraint("real_order >= 0", name="ck_order_real_nonneg"),
    )
    op.create_index("ix_order_rows_substance", "order_rows", ["substance"])

    # ---------- DAMAS ----------
    op.create_table(
        "fulfillment_rows",
        _pk(),
        sa.Column(
            "order_id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            sa.ForeignKey("order_rows.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("final_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bonus", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_package_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("order_id", name="uq_fulfillment_rows_order_id"),
        sa.CheckConstraint("final_order >= 0", name="ck_fulfillment_final_order_nonneg"),
        sa.CheckConstraint("bonus >= 0", name="ck_fulfillment_bonus_nonneg"),
    )

    # ---------- PROCESS ----------
    op.create_table(
        "process_rows",
        _pk(),
        sa.Column(
            "fulfillment_id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            sa.ForeignKey("fulfillment_rows.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "order_id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            sa.ForeignKey("order_rows.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("box_number", sa.String(64), nullable=False, server_default=""),
        sa.Column("status", process_status, nullable=False, server_default="ordered"),
        *_timestamps(),
        sa.UniqueConstraint("fulfillment_id", name="uq_process_rows_fulfillment_id"),
    )
    op.create_index("ix_process_rows_order_id", "process_rows", ["order_id"])

    # ---------- ARCHIVE ----------
    op.create_table(
        "archive_bundles",
        _pk(),
        sa.Column("bundle_id", sa.String(64), nullable=False),
        sa.Column("total_cost", sa.Numeric(16, 2), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(128), nullable=False, server_default="system"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("bundle_id", name="uq_archive_bundles_bundle_id"),
    )
    op.create_index("ix_archive_bundles_created_at", "archive_bundles", ["created_at"])

    def bundle_fk() -> sa.Column:
        return sa.Column(
            "bundle_pk",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            sa.ForeignKey("archive_bundles.id", ondelete="CASCADE"),
            nullable=False,
        )

    op.create_table(
        "archived_orders",
        _pk(),
        bundle_fk(),
        sa.Column("source_order_id", sa.BigInteger(), nullable=False),
        sa.Column("row_number", sa.Integer(), nullable=False),
        sa.Column("substance", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("company", sa.String(255), nullable=False, server_default=""),
        sa.Column("units_per_box_a", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("current_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quantity_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("real_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit_quantity_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit_real_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("image_blob_id", sa.String(128)),
        sa.Column("image_url", sa.String(2048)),
    )
    op.create_index("ix_archived_orders_bundle_pk", "archived_orders", ["bundle_pk"])

    op.create_table(
        "archived_fulfillments",
        _pk(),
        bundle_fk(),
        sa.Column("source_fulfillment_id", sa.BigInteger(), nullable=False),
        sa.Column("source_order_id", sa.BigInteger()),
        sa.Column("row_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("substance", sa.String(255), nullable=False, server_default=""),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("company", sa.String(255), nullable=False, server_default=""),
        sa.Column("unit_real_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("units_per_box_b", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("final_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bonus", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("final_package_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_unit_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_price", sa.Numeric(16, 2), nullable=False, server_default="0"),
        sa.Column("urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_archived_fulfillments_bundle_pk", "archived_fulfillments", ["bundle_pk"])

    op.create_table(
        "archived_processes",
        _pk(),
        bundle_fk(),
        sa.Column("source_process_id", sa.BigInteger(), nullable=False),
        sa.Column("source_fulfillment_id", sa.BigInteger(), nullable=False),
        sa.Column("source_order_id", sa.BigInteger(), nullable=False),
        sa.Column("row_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("substance", sa.String(255), nullable=False, server_default=""),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("box_number", sa.String(64), nullable=False, server_default=""),
        sa.Column("status", process_status, nullable=False),
        sa.Column("final_package_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("units_per_box_b", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_unit_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("image_url", sa.String(2048)),
        sa.UniqueConstraint("bundle_pk", "source_process_id", name="uq_archived_process_bundle_source"),
    )
    op.create_index("ix_archived_processes_bundle_pk", "archived_processes", ["bundle_pk"])


def downgrade() -> None:
    op.drop_index("ix_archived_processes_bundle_pk", table_name="archived_processes")
    op.drop_table("archived_processes")
    op.drop_index("ix_archived_fulfillments_bundle_pk", table_name="archived_fulfillments")
    op.drop_table("archived_fulfillments")
    op.drop_index("ix_archived_orders_bundle_pk", table_name="archived_orders")
    op.drop_table("archived_orders")
    op.drop_index("ix_archive_bundles_created_at", table_name="archive_bundles")
    op.drop_table("archive_bundles")
    op.drop_index("ix_process_rows_order_id", table_name="process_rows")
    op.drop_table("process_rows")
    op.drop_table("fulfillment_rows")
    op.drop_index("ix_order_rows_substance", table_name="order_rows")
    op.drop_table("order_rows")
    op.drop_table("catalog_records")

    postgresql.ENUM(name="process_status").drop(op.get_bind(), checkfirst=True)
