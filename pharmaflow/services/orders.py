"""
Order ledger: one row per requested substance.

final_balance and the unit quantities are derived; every write goes through
OrderRow.recompute() with the catalog's pills-per-BL-pack factor.
"""
from __future__ import annotations

import logging

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session

from pharmaflow.app.db.models.models_v1 import OrderRow, FulfillmentRow, ProcessRow
from pharmaflow.app.schemas.orders import OrderRowRead
from pharmaflow.services.blob_store import BlobStore
from pharmaflow.services.catalog import get_by_substance, load_catalog, normalize_substance
from pharmaflow.services.enrichment import project_order
from pharmaflow.services.errors import NotFoundError, ValidationError
from pharmaflow.services.reorder import lock_live_orders, reorder_by_urgency

logger = logging.getLogger(__name__)


def list_orders(db: Session, *, blobs: BlobStore | None = None, limit: int = 1000) -> list[OrderRowRead]:
    rows = db.execute(select(OrderRow).order_by(OrderRow.row_number.asc()).limit(limit)).scalars().all()
    catalog = load_catalog(db, (o.substance for o in rows))
    return [project_order(o, catalog.get(o.substance), blobs) for o in rows]


def next_row_number(db: Session) -> int:
    current = db.execute(select(func.max(OrderRow.row_number))).scalar()
    return int(current or 0) + 1


def save_order_row(
    db: Session,
    *,
    row_number: int,
    substance: str,
    current_balance: int = 0,
    quantity_order: int = 0,
    real_order: int = 0,
    urgent: bool = False,
) -> int:
    """Create or replace the order row holding `row_number`. Returns its id."""
    substance = normalize_substance(substance)
    if not substance:
        raise ValidationError("substance is required")
    if row_number is None or row_number < 1:
        raise ValidationError("row_number must be >= 1")
    if quantity_order < 0 or real_order < 0:
        raise ValidationError("quantities must be >= 0")

    # The row may exist before its substance is in the catalog: factor 0 until then
    rec = get_by_substance(db, substance)
    units_a = rec.units_per_box_a if rec else 0

    order = db.execute(
        select(OrderRow).where(OrderRow.row_number == row_number).with_for_update()
    ).scalar_one_or_none()

    created = order is None
    urgency_changed = bool(urgent) if created else order.urgent != bool(urgent)
    if created:
        order = OrderRow(row_number=row_number)
        db.add(order)

    order.substance = substance
    order.current_balance = current_balance
    order.quantity_order = quantity_order
    order.real_order = real_order
    order.urgent = bool(urgent)
    order.recompute(units_a)
    db.flush()  # get order.id

    if urgency_changed:
        reorder_by_urgency(db)

    logger.info(
        "order row %s id=%s row=%s substance=%s",
        "created" if created else "replaced",
        order.id,
        order.row_number,
        substance,
    )
    return int(order.id)


def set_urgent(db: Session, order_id: int, urgent: bool) -> list[OrderRow]:
    """Flip one row's urgency and renumber every live row (urgent first)."""
    orders = lock_live_orders(db)
    target = next((o for o in orders if o.id == order_id), None)
    if target is None:
        raise NotFoundError("Order not found")

    target.urgent = bool(urgent)
    db.flush()
    return reorder_by_urgency(db, orders)


def delete_order_row(db: Session, order_id: int) -> None:
    """
    Delete an order row and everything downstream of it, leaf to root:
    process rows -> fulfillment rows -> order row.
    """
    order = db.get(OrderRow, order_id, with_for_update=True)
    if not order:
        raise NotFoundError("Order not found")

    fulfillment_ids = (
        db.execute(select(FulfillmentRow.id).where(FulfillmentRow.order_id == order_id)).scalars().all()
    )

    removed_processes = 0
    if fulfillment_ids:
        removed_processes += db.execute(
            delete(ProcessRow).where(ProcessRow.fulfillment_id.in_(fulfillment_ids))
        ).rowcount
    # process rows can also point straight at the order
    removed_processes += db.execute(delete(ProcessRow).where(ProcessRow.order_id == order_id)).rowcount

    if fulfillment_ids:
        db.execute(delete(FulfillmentRow).where(FulfillmentRow.id.in_(fulfillment_ids)))

    db.delete(order)
    db.flush()

    logger.info(
        "order row deleted id=%s fulfillment=%d process=%d",
        order_id,
        len(fulfillment_ids),
        removed_processes,
    )
