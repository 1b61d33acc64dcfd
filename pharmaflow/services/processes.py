from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from pharmaflow.app.db.models.core_types import ProcessStatus
from pharmaflow.app.db.models.models_v1 import FulfillmentRow, OrderRow, ProcessRow
from pharmaflow.app.schemas.processes import ProcessRead
from pharmaflow.services.blob_store import BlobStore
from pharmaflow.services.catalog import load_catalog, rows_by_id
from pharmaflow.services.enrichment import project_process
from pharmaflow.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def resolve_processes(
    db: Session,
    processes: list[ProcessRow],
    *,
    blobs: BlobStore | None = None,
) -> list[tuple[ProcessRow, FulfillmentRow | None, OrderRow | None, ProcessRead]]:
    """
    Join each process row to its fulfillment row, order row and catalog record.
    Missing upstream rows are tolerated (zero/empty enrichment).
    """
    fulfillments = rows_by_id(db, FulfillmentRow, (p.fulfillment_id for p in processes))
    orders = rows_by_id(db, OrderRow, (p.order_id for p in processes))
    catalog = load_catalog(db, (o.substance for o in orders.values()))

    out = []
    for p in processes:
        f = fulfillments.get(p.fulfillment_id)
        o = orders.get(p.order_id)
        if f is None or o is None:
            logger.warning(
                "process row %s has a referential gap (fulfillment=%s order=%s)",
                p.id,
                "ok" if f else "missing",
                "ok" if o else "missing",
            )
        rec = catalog.get(o.substance) if o else None
        out.append((p, f, o, project_process(p, f, o, rec, blobs)))
    return out


def list_processes(
    db: Session,
    *,
    blobs: BlobStore | None = None,
    limit: int = 1000,
) -> list[ProcessRead]:
    rows = list(db.execute(select(ProcessRow).order_by(ProcessRow.id).limit(limit)).scalars().all())
    views = [view for _, _, _, view in resolve_processes(db, rows, blobs=blobs)]
    views.sort(key=lambda r: (r.row_number == 0, r.row_number, r.id))
    return views


def get_process(db: Session, process_id: int, *, blobs: BlobStore | None = None) -> ProcessRead:
    p = db.get(ProcessRow, process_id)
    if not p:
        raise NotFoundError("Process not found")
    ((_, _, _, view),) = resolve_processes(db, [p], blobs=blobs)
    return view


def update_process(
    db: Session,
    process_id: int,
    *,
    box_number: str | None = None,
    status: ProcessStatus | str | None = None,
) -> ProcessRow:
    """
    Partial update: only the given fields are written.
    Any status may follow any other (no transition graph).
    """
    if status is not None:
        try:
            status = ProcessStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown process status {status!r}") from None

    p = db.get(ProcessRow, process_id, with_for_update=True)
    if not p:
        raise NotFoundError("Process not found")

    if box_number is not None:
        p.box_number = box_number
    if status is not None:
        p.status = status
    db.flush()

    logger.info("process updated id=%s box=%r status=%s", p.id, p.box_number, p.status.value)
    return p
