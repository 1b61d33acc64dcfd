"""
Damas stage: supplier-side confirmation of the order rows.

send -> one fulfillment row per order row (never recreated)
edit -> final_order / bonus, package amount recomputed on write
confirm -> every unconfirmed row gets its process row, then confirmed=True
"""
from __future__ import annotations

import logging

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pharmaflow.app.db.models.core_types import ProcessStatus
from pharmaflow.app.db.models.models_v1 import FulfillmentRow, OrderRow, ProcessRow
from pharmaflow.app.schemas.fulfillment import FulfillmentRead
from pharmaflow.services.blob_store import BlobStore
from pharmaflow.services.catalog import (
    DEFAULT_CHUNK_SIZE,
    chunked,
    get_by_substance,
    load_catalog,
    rows_by_id,
)
from pharmaflow.services.costs import final_package_amount
from pharmaflow.services.enrichment import project_fulfillment
from pharmaflow.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def list_fulfillment(
    db: Session,
    *,
    blobs: BlobStore | None = None,
    limit: int = 1000,
) -> list[FulfillmentRead]:
    rows = db.execute(select(FulfillmentRow).order_by(FulfillmentRow.id).limit(limit)).scalars().all()
    orders = rows_by_id(db, OrderRow, (f.order_id for f in rows))
    catalog = load_catalog(db, (o.substance for o in orders.values()))

    out = []
    for f in rows:
        order = orders.get(f.order_id)
        if order is None:
            logger.warning("fulfillment row %s references missing order %s", f.id, f.order_id)
        out.append(project_fulfillment(f, order, catalog.get(order.substance) if order else None, blobs))
    out.sort(key=lambda r: (r.row_number == 0, r.row_number, r.id))
    return out


def get_fulfillment(db: Session, fulfillment_id: int, *, blobs: BlobStore | None = None) -> FulfillmentRead:
    f = db.get(FulfillmentRow, fulfillment_id)
    if not f:
        raise NotFoundError("Damas order not found")
    order = db.get(OrderRow, f.order_id)
    rec = get_by_substance(db, order.substance) if order else None
    return project_fulfillment(f, order, rec, blobs)


def send_to_fulfillment(db: Session) -> int:
    """Forward every order row that has no fulfillment row yet. Returns the number created."""
    orders = db.execute(select(OrderRow).order_by(OrderRow.row_number).with_for_update()).scalars().all()
    forwarded = set(db.execute(select(FulfillmentRow.order_id)).scalars().all())

    created = 0
    for order in orders:
        if order.id in forwarded:
            continue
        db.add(
            FulfillmentRow(
                order_id=order.id,
                final_order=0,
                bonus=0,
                final_package_amount=0,
                confirmed=False,
            )
        )
        created += 1
    db.flush()

    logger.info("sent to fulfillment: created=%d already=%d", created, len(orders) - created)
    return created


def update_fulfillment(
    db: Session,
    fulfillment_id: int,
    *,
    final_order: int,
    bonus: int,
    blobs: BlobStore | None = None,
) -> FulfillmentRead:
    if final_order is None or final_order < 0:
        raise ValidationError("final_order must be >= 0")
    if bonus is None or bonus < 0:
        raise ValidationError("bonus must be >= 0")

    f = db.get(FulfillmentRow, fulfillment_id, with_for_update=True)
    if not f:
        raise NotFoundError("Damas order not found")

    f.final_order = final_order
    f.bonus = bonus
    f.final_package_amount = final_package_amount(final_order, bonus)
    db.flush()

    order = db.get(OrderRow, f.order_id)
    rec = get_by_substance(db, order.substance) if order else None
    return project_fulfillment(f, order, rec, blobs)


def confirm_fulfillment(db: Session) -> int:
    """
    Confirm every unconfirmed fulfillment row, creating its process row first.
    Returns the number of rows confirmed by this call (0 on a repeat call).
    """
    pending = (
        db.execute(
            select(FulfillmentRow)
            .where(FulfillmentRow.confirmed.is_(False))
            .order_by(FulfillmentRow.id)
            .with_for_update()
        )
        .scalars()
        .all()
    )
    if not pending:
        return 0

    ids = [f.id for f in pending]
    has_process: set[int] = set()
    for part in chunked(ids, DEFAULT_CHUNK_SIZE):
        has_process.update(
            db.execute(select(ProcessRow.fulfillment_id).where(ProcessRow.fulfillment_id.in_(part)))
            .scalars()
            .all()
        )

    created = 0
    for f in pending:
        if f.id not in has_process:
            db.add(
                ProcessRow(
                    fulfillment_id=f.id,
                    order_id=f.order_id,
                    box_number="",
                    status=ProcessStatus.ordered,
                )
            )
            created += 1
        f.confirmed = True

    try:
        db.flush()
    except IntegrityError:
        # a concurrent confirm created the same process row; let the caller retry
        logger.warning("confirm raced with another confirm")
        raise

    logger.info("fulfillment confirmed=%d process created=%d", len(pending), created)
    return len(pending)


def delete_fulfillment(db: Session, fulfillment_id: int) -> None:
    f = db.get(FulfillmentRow, fulfillment_id, with_for_update=True)
    if not f:
        raise NotFoundError("Damas order not found")

    db.execute(delete(ProcessRow).where(ProcessRow.fulfillment_id == fulfillment_id))
    db.delete(f)
    db.flush()
    logger.info("fulfillment row deleted id=%s", fulfillment_id)
