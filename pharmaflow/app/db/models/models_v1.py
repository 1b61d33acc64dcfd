from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    BigInteger,
    DateTime,
    Boolean,
    ForeignKey,
    Numeric,
    Enum,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pharmaflow.app.db.base import Base
from pharmaflow.app.db.models.core_types import ProcessStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- MASTER DATA ----------
class CatalogRecord(Base):
    __tablename__ = "catalog_records"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    substance: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    company: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    units_per_box_a: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # pills per BL pack
    units_per_box_b: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # pills per SY pack
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    image_blob_id: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("units_per_box_a >= 0", name="ck_catalog_units_a_nonneg"),
        CheckConstraint("units_per_box_b >= 0", name="ck_catalog_units_b_nonneg"),
        CheckConstraint("price >= 0", name="ck_catalog_price_nonneg"),
    )


# ---------- ORDER LEDGER ----------
class OrderRow(Base):
    __tablename__ = "order_rows"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    row_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    # Soft reference to catalog_records.substance (enriched at read time)
    substance: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    current_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    real_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Derived, always rewritten by recompute()
    final_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_quantity_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_real_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    urgent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("quantity_order >= 0", name="ck_order_qty_nonneg"),
        CheckConstraint("real_order >= 0", name="ck_order_real_nonneg"),
    )

    def recompute(self, units_per_box_a: int) -> None:
        """final balance = balance + requested; unit quantities = packs x pills per BL pack."""
        self.final_balance = (self.current_balance or 0) + (self.quantity_order or 0)
        self.unit_quantity_order = (self.quantity_order or 0) * (units_per_box_a or 0)
        self.unit_real_order = (self.real_order or 0) * (units_per_box_a or 0)


# ---------- DAMAS (FULFILLMENT) ----------
class FulfillmentRow(Base):
    __tablename__ = "fulfillment_rows"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("order_rows.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    final_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bonus: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    final_package_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("final_order >= 0", name="ck_fulfillment_final_order_nonneg"),
        CheckConstraint("bonus >= 0", name="ck_fulfillment_bonus_nonneg"),
    )


# ---------- PROCESS ----------
class ProcessRow(Base):
    __tablename__ = "process_rows"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    fulfillment_id: Mapped[int] = mapped_column(
        ForeignKey("fulfillment_rows.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    order_id: Mapped[int] = mapped_column(
        ForeignKey("order_rows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    box_number: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    status: Mapped[ProcessStatus] = mapped_column(
        Enum(ProcessStatus, name="process_status"),
        default=ProcessStatus.ordered,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


# ---------- ARCHIVE (LAST ORDER) ----------
class ArchiveBundle(Base):
    __tablename__ = "archive_bundles"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    bundle_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0, nullable=False)
    created_by: Mapped[str] = mapped_column(String(128), default="system", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    orders: Mapped[list["ArchivedOrder"]] = relationship(
        back_populates="bundle",
        cascade="all, delete-orphan",
        order_by="ArchivedOrder.row_number",
    )
    fulfillments: Mapped[list["ArchivedFulfillment"]] = relationship(
        back_populates="bundle",
        cascade="all, delete-orphan",
        order_by="ArchivedFulfillment.row_number",
    )
    processes: Mapped[list["ArchivedProcess"]] = relationship(
        back_populates="bundle",
        cascade="all, delete-orphan",
        order_by="ArchivedProcess.row_number",
    )

    __table_args__ = (Index("ix_archive_bundles_created_at", "created_at"),)


class ArchivedOrder(Base):
    __tablename__ = "archived_orders"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    bundle_pk: Mapped[int] = mapped_column(
        ForeignKey("archive_bundles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_order_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    substance: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    company: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    units_per_box_a: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    current_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    real_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    final_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_quantity_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_real_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    urgent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    image_blob_id: Mapped[str | None] = mapped_column(String(128))
    image_url: Mapped[str | None] = mapped_column(String(2048))

    bundle: Mapped[ArchiveBundle] = relationship(back_populates="orders")


class ArchivedFulfillment(Base):
    __tablename__ = "archived_fulfillments"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    bundle_pk: Mapped[int] = mapped_column(
        ForeignKey("archive_bundles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_fulfillment_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    source_order_id: Mapped[int | None] = mapped_column(BigInteger)
    row_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    substance: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    company: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    unit_real_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    units_per_box_b: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    final_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bonus: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    final_package_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    final_unit_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0, nullable=False)
    urgent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    bundle: Mapped[ArchiveBundle] = relationship(back_populates="fulfillments")


class ArchivedProcess(Base):
    __tablename__ = "archived_processes"
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    bundle_pk: Mapped[int] = mapped_column(
        ForeignKey("archive_bundles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_process_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    source_fulfillment_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    source_order_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    row_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    substance: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    box_number: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    status: Mapped[ProcessStatus] = mapped_column(
        Enum(ProcessStatus, name="process_status"),
        nullable=False,
    )
    final_package_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    units_per_box_b: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    final_unit_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    urgent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(2048))

    bundle: Mapped[ArchiveBundle] = relationship(back_populates="processes")

    __table_args__ = (UniqueConstraint("bundle_pk", "source_process_id", name="uq_archived_process_bundle_source"),)
