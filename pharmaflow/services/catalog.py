"""
Master catalog (substance -> name, company, pack sizes, unit price, image).

The catalog is the only owner of name/price data. Stage rows reference a
substance and are joined to the catalog at read time through load_catalog().
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from pharmaflow.app.db.models.models_v1 import CatalogRecord, OrderRow
from pharmaflow.app.schemas.catalog import CatalogRecordRead
from pharmaflow.services.blob_store import BlobStore, blob_url
from pharmaflow.services.errors import NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CHUNK_SIZE = 500


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), max(1, size)):
        yield items[start:start + size]


def rows_by_id(
    db: Session,
    model: type[T],
    ids: Iterable[int],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> dict[int, T]:
    """id -> row of `model` for every id that still exists."""
    table: Any = model
    found: dict[int, T] = {}
    for part in chunked(sorted(set(ids)), chunk_size):
        for row in db.execute(select(model).where(table.id.in_(part))).scalars().all():
            found[row.id] = row
    return found


def normalize_substance(value: str | None) -> str:
    return (value or "").strip()


def load_catalog(
    db: Session,
    substances: Iterable[str],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> dict[str, CatalogRecord]:
    """substance -> CatalogRecord for every known substance in `substances`."""
    wanted = sorted({s for s in substances if s})
    found: dict[str, CatalogRecord] = {}
    for part in chunked(wanted, chunk_size):
        rows = db.execute(select(CatalogRecord).where(CatalogRecord.substance.in_(part))).scalars().all()
        for rec in rows:
            found[rec.substance] = rec
    return found


def get_by_substance(db: Session, substance: str) -> CatalogRecord | None:
    return db.execute(
        select(CatalogRecord).where(CatalogRecord.substance == normalize_substance(substance))
    ).scalar_one_or_none()


def to_read(rec: CatalogRecord, blobs: BlobStore | None = None) -> CatalogRecordRead:
    out = CatalogRecordRead.model_validate(rec)
    out.image_url = blob_url(blobs, rec.image_blob_id)
    return out


def list_catalog(db: Session, *, blobs: BlobStore | None = None, limit: int = 1000) -> list[CatalogRecordRead]:
    rows = (
        db.execute(
            select(CatalogRecord)
            .order_by(CatalogRecord.created_at.desc(), CatalogRecord.id.desc())
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return [to_read(r, blobs) for r in rows]


def refresh_orders_for_substance(db: Session, substance: str, units_per_box_a: int) -> int:
    """Recompute derived unit quantities of every order row pointing at `substance`."""
    orders = (
        db.execute(select(OrderRow).where(OrderRow.substance == substance).with_for_update())
        .scalars()
        .all()
    )
    for order in orders:
        order.recompute(units_per_box_a)
    db.flush()
    return len(orders)


def delete_catalog_record(db: Session, record_id: int) -> str | None:
    """
    Delete a catalog record and zero the unit quantities of its orders.
    Returns the image blob id; the caller removes the blob once the
    transaction has committed.
    """
    rec = db.get(CatalogRecord, record_id)
    if not rec:
        raise NotFoundError("Catalog record not found")

    image_blob_id, substance = rec.image_blob_id, rec.substance
    db.delete(rec)
    db.flush()
    refresh_orders_for_substance(db, substance, 0)

    logger.info("catalog record deleted id=%s substance=%s", record_id, substance)
    return image_blob_id
