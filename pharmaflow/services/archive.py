"""
Move the current process stage to the archive ("last order").

archive_and_clear() freezes every live process row, together with the
fulfillment and order rows it points at, into one ArchiveBundle with fully
denormalized children, then deletes the live rows leaf to root.

It never commits. Run it inside one transaction (see db.session.transaction):
either the bundle exists and the three stages are cleared, or nothing
changed. Large stages are read and deleted in chunks of `chunk_size`, all
inside that same transaction.
"""
from __future__ import annotations

import logging
import time
import uuid
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy import select, delete
from sqlalchemy.orm import Session, selectinload

from pharmaflow.app.db.models.models_v1 import (
    ArchiveBundle,
    ArchivedFulfillment,
    ArchivedOrder,
    ArchivedProcess,
    CatalogRecord,
    FulfillmentRow,
    OrderRow,
    ProcessRow,
)
from pharmaflow.services.blob_store import BlobStore
from pharmaflow.services.catalog import DEFAULT_CHUNK_SIZE, chunked, load_catalog
from pharmaflow.services.costs import total_price
from pharmaflow.services.enrichment import project_fulfillment, project_order
from pharmaflow.services.errors import EmptyPipelineError
from pharmaflow.services.processes import resolve_processes

logger = logging.getLogger(__name__)


class ArchiveResult(NamedTuple):
    moved: int
    bundle_id: str


def new_bundle_id() -> str:
    return f"bundle_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def _lock_processes(db: Session) -> list[ProcessRow]:
    return list(
        db.execute(select(ProcessRow).order_by(ProcessRow.id).with_for_update()).scalars().all()
    )


def _snapshot_order(order: OrderRow, rec: CatalogRecord | None, blobs: BlobStore | None) -> ArchivedOrder:
    view = project_order(order, rec, blobs)
    return ArchivedOrder(
        source_order_id=view.id,
        row_number=view.row_number,
        substance=view.substance,
        name=view.name,
        company=view.company,
        units_per_box_a=view.units_per_box_a,
        price=rec.price if rec else Decimal("0"),
        current_balance=view.current_balance,
        quantity_order=view.quantity_order,
        real_order=view.real_order,
        final_balance=view.final_balance,
        unit_quantity_order=view.unit_quantity_order,
        unit_real_order=view.unit_real_order,
        urgent=view.urgent,
        image_blob_id=view.image_blob_id,
        image_url=view.image_url,
    )


def _snapshot_fulfillment(
    f: FulfillmentRow,
    order: OrderRow | None,
    rec: CatalogRecord | None,
    blobs: BlobStore | None,
) -> ArchivedFulfillment:
    view = project_fulfillment(f, order, rec, blobs)
    price = rec.price if (rec and order) else Decimal("0")
    return ArchivedFulfillment(
        source_fulfillment_id=view.id,
        source_order_id=view.order_id,
        row_number=view.row_number,
        substance=view.substance,
        name=view.name,
        company=view.company,
        unit_real_order=view.unit_real_order,
        units_per_box_b=view.units_per_box_b,
        price=price,
        final_order=view.final_order,
        bonus=view.bonus,
        confirmed=view.confirmed,
        final_package_amount=view.final_package_amount,
        final_unit_amount=view.final_unit_amount,
        total_price=total_price(f.final_order, price) if order else Decimal("0"),
        urgent=view.urgent,
    )


def archive_and_clear(
    db: Session,
    *,
    blobs: BlobStore | None = None,
    actor: str = "system",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> ArchiveResult:
    processes = _lock_processes(db)
    if not processes:
        raise EmptyPipelineError()

    # 1) resolve process -> fulfillment -> order (gaps tolerated)
    resolved = resolve_processes(db, processes, blobs=blobs)

    fulfillments: dict[int, FulfillmentRow] = {}
    orders: dict[int, OrderRow] = {}
    for _, f, o, _ in resolved:
        if f is not None:
            fulfillments[f.id] = f
        if o is not None:
            orders[o.id] = o
    # a fulfillment's own order (normally the same one the process points at)
    for f in fulfillments.values():
        if f.order_id not in orders:
            o = db.get(OrderRow, f.order_id)
            if o is not None:
                orders[o.id] = o

    # 2) enrich exactly like the live read side
    catalog = load_catalog(db, (o.substance for o in orders.values()), chunk_size=chunk_size)

    bundle = ArchiveBundle(bundle_id=new_bundle_id(), created_by=actor)

    total_cost = Decimal("0")
    for f in fulfillments.values():
        order = orders.get(f.order_id)
        rec = catalog.get(order.substance) if order else None
        snap = _snapshot_fulfillment(f, order, rec, blobs)
        bundle.fulfillments.append(snap)
        # 3) total cost over resolvable fulfillment rows only
        if order is not None:
            total_cost += snap.total_price

    for o in orders.values():
        bundle.orders.append(_snapshot_order(o, catalog.get(o.substance), blobs))

    for p, _, _, view in resolved:
        bundle.processes.append(
            ArchivedProcess(
                source_process_id=p.id,
                source_fulfillment_id=p.fulfillment_id,
                source_order_id=p.order_id,
                row_number=view.row_number,
                substance=view.substance,
                name=view.name,
                box_number=view.box_number,
                status=view.status,
                final_package_amount=view.final_package_amount,
                units_per_box_b=view.units_per_box_b,
                final_unit_amount=view.final_unit_amount,
                urgent=view.urgent,
                image_url=view.image_url,
            )
        )

    # 4) bundle
    bundle.total_cost = total_cost
    db.add(bundle)
    db.flush()

    # 5) clear live stages, leaf to root
    process_ids = [p.id for p in processes]
    fulfillment_ids = sorted({p.fulfillment_id for p in processes})
    order_ids = sorted({p.order_id for p in processes} | set(orders))

    for part in chunked(process_ids, chunk_size):
        db.execute(delete(ProcessRow).where(ProcessRow.id.in_(part)))
    for part in chunked(fulfillment_ids, chunk_size):
        db.execute(delete(FulfillmentRow).where(FulfillmentRow.id.in_(part)))
    for part in chunked(order_ids, chunk_size):
        db.execute(delete(OrderRow).where(OrderRow.id.in_(part)))
    db.flush()

    logger.info(
        "archived bundle=%s processes=%d fulfillment=%d orders=%d total_cost=%s by=%s",
        bundle.bundle_id,
        len(process_ids),
        len(fulfillment_ids),
        len(order_ids),
        total_cost,
        actor,
    )
    return ArchiveResult(moved=len(processes), bundle_id=bundle.bundle_id)


def _bundle_query():
    return select(ArchiveBundle).options(
        selectinload(ArchiveBundle.orders),
        selectinload(ArchiveBundle.fulfillments),
        selectinload(ArchiveBundle.processes),
    )


def list_archive_bundles(db: Session, limit: int = 100) -> list[ArchiveBundle]:
    """Newest first."""
    stmt = _bundle_query().order_by(ArchiveBundle.created_at.desc(), ArchiveBundle.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_latest_archive_bundle(db: Session) -> ArchiveBundle | None:
    bundles = list_archive_bundles(db, limit=1)
    return bundles[0] if bundles else None


def get_archive_bundle(db: Session, bundle_id: str) -> ArchiveBundle | None:
    return db.execute(_bundle_query().where(ArchiveBundle.bundle_id == bundle_id)).scalar_one_or_none()
