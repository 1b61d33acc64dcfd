"""
Urgent-first row numbering.

Urgent rows come first, each class keeps its current relative order (stable
partition, not a sort on any other key), then every row is renumbered
1..n. All live rows are rewritten in the same transaction.
"""
from __future__ import annotations

import logging
from typing import Callable, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from pharmaflow.app.db.models.models_v1 import OrderRow

logger = logging.getLogger(__name__)

T = TypeVar("T")


def stable_urgent_partition(rows: Sequence[T], is_urgent: Callable[[T], bool]) -> list[T]:
    urgent = [r for r in rows if is_urgent(r)]
    normal = [r for r in rows if not is_urgent(r)]
    return urgent + normal


def lock_live_orders(db: Session) -> list[OrderRow]:
    return list(
        db.execute(select(OrderRow).order_by(OrderRow.row_number.asc()).with_for_update())
        .scalars()
        .all()
    )


def renumber(db: Session, ordered: Sequence[OrderRow]) -> None:
    """
    Assign row numbers 1..n in the given order.

    row_number is UNIQUE: rows are first parked above every current number,
    then moved to their final slot, so no intermediate flush collides.
    """
    if not ordered:
        return

    ceiling = max(max(o.row_number for o in ordered), len(ordered))
    for i, order in enumerate(ordered, start=1):
        order.row_number = ceiling + i
    db.flush()

    for i, order in enumerate(ordered, start=1):
        order.row_number = i
    db.flush()


def reorder_by_urgency(db: Session, orders: Sequence[OrderRow] | None = None) -> list[OrderRow]:
    """Partition + renumber every live order row. Idempotent for a given urgency assignment."""
    if orders is None:
        orders = lock_live_orders(db)
    ordered = stable_urgent_partition(list(orders), lambda o: bool(o.urgent))

    if [o.row_number for o in ordered] != list(range(1, len(ordered) + 1)):
        renumber(db, ordered)

    logger.info("orders renumbered count=%d urgent=%d", len(ordered), sum(1 for o in ordered if o.urgent))
    return ordered
