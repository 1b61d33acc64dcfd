"""
Bulk clears, per stage and for the whole store.

Stage clears cascade leaf to root so no live row is left pointing at a
deleted parent: clearing orders also clears fulfillment and processes,
clearing fulfillment also clears processes. Archives are independent of
the live stages. Image blobs are never deleted here; the ids are returned
and the caller removes them once the transaction has committed.
"""
from __future__ import annotations

import enum
import logging
from typing import NamedTuple

from sqlalchemy import select, delete, update
from sqlalchemy.orm import Session

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
from pharmaflow.services.errors import ValidationError

logger = logging.getLogger(__name__)


class ClearStage(str, enum.Enum):
    catalog = "catalog"
    orders = "orders"
    fulfillment = "fulfillment"
    processes = "processes"
    archives = "archives"


class ClearResult(NamedTuple):
    counts: dict[str, int]
    blob_ids: list[str]


def _delete_all(db: Session, models, counts: dict[str, int]) -> None:
    for model in models:
        counts[model.__tablename__] = db.execute(delete(model)).rowcount or 0


def clear_processes(db: Session) -> dict[str, int]:
    counts: dict[str, int] = {}
    _delete_all(db, (ProcessRow,), counts)
    db.flush()
    return counts


def clear_fulfillment(db: Session) -> dict[str, int]:
    counts: dict[str, int] = {}
    _delete_all(db, (ProcessRow, FulfillmentRow), counts)
    db.flush()
    return counts


def clear_orders(db: Session) -> dict[str, int]:
    counts: dict[str, int] = {}
    _delete_all(db, (ProcessRow, FulfillmentRow, OrderRow), counts)
    db.flush()
    return counts


def clear_archives(db: Session) -> dict[str, int]:
    counts: dict[str, int] = {}
    _delete_all(db, (ArchivedProcess, ArchivedFulfillment, ArchivedOrder, ArchiveBundle), counts)
    db.flush()
    return counts


def clear_catalog(db: Session) -> ClearResult:
    """Delete every catalog record; orders left behind get zero unit quantities."""
    blob_ids = [b for b in db.execute(select(CatalogRecord.image_blob_id)).scalars().all() if b]

    counts: dict[str, int] = {}
    _delete_all(db, (CatalogRecord,), counts)
    db.execute(update(OrderRow).values(unit_quantity_order=0, unit_real_order=0))
    db.flush()
    return ClearResult(counts, blob_ids)


def clear_stage(db: Session, stage: ClearStage | str) -> ClearResult:
    try:
        stage = ClearStage(stage)
    except ValueError:
        raise ValidationError(f"Unknown stage {stage!r}") from None

    if stage == ClearStage.catalog:
        result = clear_catalog(db)
    else:
        clear = {
            ClearStage.orders: clear_orders,
            ClearStage.fulfillment: clear_fulfillment,
            ClearStage.processes: clear_processes,
            ClearStage.archives: clear_archives,
        }[stage]
        result = ClearResult(clear(db), [])

    logger.warning("stage cleared stage=%s %s", stage.value, result.counts)
    return result


def clear_all_tables(db: Session) -> ClearResult:
    """
    Wipe every pipeline table, archives and catalog included.
    Returns deleted row counts per table and the catalog image blob ids.
    """
    counts: dict[str, int] = {}
    counts.update(clear_orders(db))
    counts.update(clear_archives(db))
    catalog = clear_catalog(db)
    counts.update(catalog.counts)

    logger.warning("all tables cleared %s blobs=%d", counts, len(catalog.blob_ids))
    return ClearResult(counts, catalog.blob_ids)
