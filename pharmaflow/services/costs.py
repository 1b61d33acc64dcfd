"""
Cost projection (READ ONLY).

Every value here is recomputed from fulfillment inputs and the catalog on
each read; nothing is ever written back to fulfillment_rows.
"""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from pharmaflow.app.db.models.models_v1 import CatalogRecord, FulfillmentRow, OrderRow
from pharmaflow.app.schemas.costs import CostLine, CostTotal
from pharmaflow.services.catalog import load_catalog, rows_by_id


def final_package_amount(final_order: int, bonus: int) -> int:
    return (final_order or 0) + (bonus or 0)


def final_unit_amount(package_amount: int, units_per_box_b: int | None) -> int:
    if not units_per_box_b:
        return 0
    return package_amount * units_per_box_b


def total_price(final_order: int, price: Decimal | None) -> Decimal:
    return Decimal(final_order or 0) * (price or Decimal("0"))


def bonus_percentage(final_order: int, bonus: int) -> float:
    # 0 when nothing was ordered (no division by zero)
    if not final_order or final_order <= 0:
        return 0.0
    return round((bonus or 0) / final_order * 100, 2)


def project_cost(
    fulfillment: FulfillmentRow,
    order: OrderRow,
    record: CatalogRecord | None,
) -> CostLine:
    price = record.price if record else Decimal("0")
    return CostLine(
        fulfillment_id=fulfillment.id,
        row_number=order.row_number,
        substance=order.substance,
        name=record.name if record else "",
        company=record.company if record else "",
        final_package_amount=final_package_amount(fulfillment.final_order, fulfillment.bonus),
        bonus=fulfillment.bonus,
        bonus_percentage=bonus_percentage(fulfillment.final_order, fulfillment.bonus),
        price=float(price),
        total_price=float(total_price(fulfillment.final_order, price)),
        urgent=order.urgent,
    )


def _load_fulfillment_with_orders(
    db: Session,
    *,
    limit: int | None = None,
) -> list[tuple[FulfillmentRow, OrderRow | None]]:
    stmt = select(FulfillmentRow).order_by(FulfillmentRow.id)
    if limit is not None:
        stmt = stmt.limit(limit)
    fulfillments = db.execute(stmt).scalars().all()

    orders = rows_by_id(db, OrderRow, (f.order_id for f in fulfillments))
    return [(f, orders.get(f.order_id)) for f in fulfillments]


def list_costs(db: Session, *, limit: int = 1000) -> list[CostLine]:
    pairs = _load_fulfillment_with_orders(db, limit=limit)
    catalog = load_catalog(db, (o.substance for _, o in pairs if o is not None))

    lines = [
        project_cost(f, o, catalog.get(o.substance))
        for f, o in pairs
        if o is not None  # order gone -> no cost line
    ]
    lines.sort(key=lambda c: c.row_number)
    return lines


def cost_total(db: Session) -> CostTotal:
    pairs = _load_fulfillment_with_orders(db)
    catalog = load_catalog(db, (o.substance for _, o in pairs if o is not None))

    total = Decimal("0")
    for f, o in pairs:
        if o is None:
            continue
        rec = catalog.get(o.substance)
        total += total_price(f.final_order, rec.price if rec else None)
    return CostTotal(total=float(total), count=len(pairs))
