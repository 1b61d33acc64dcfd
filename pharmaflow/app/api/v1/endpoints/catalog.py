from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Header, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pharmaflow.app.api.deps import get_db, get_blob_store
from pharmaflow.app.db.models.core_types import UpsertAction
from pharmaflow.app.db.models.models_v1 import CatalogRecord
from pharmaflow.app.db.session import transaction
from pharmaflow.app.schemas.catalog import CatalogRecordRead
from pharmaflow.app.settings import settings
from pharmaflow.services.blob_store import BlobStore, delete_blobs
from pharmaflow.services.bulk_upsert import CatalogCandidate, UpsertReport, upsert_catalog_batch
from pharmaflow.services.catalog import (
    delete_catalog_record,
    get_by_substance,
    list_catalog,
    to_read,
)

router = APIRouter(prefix="/catalog")

IMAGE_SUFFIXES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class CatalogRecordIn(BaseModel):
    substance: str = Field(min_length=1, max_length=255)
    name: str = Field(default="", max_length=255)
    company: str = Field(default="", max_length=255)
    # negatives are reported as "rejected" outcomes, not 422
    units_per_box_a: int = 0
    units_per_box_b: int = 0
    price: float = 0
    image_blob_id: str | None = None
    current_id: int | None = None


class CatalogBatchIn(BaseModel):
    records: list[CatalogRecordIn] = Field(default_factory=list)


def _candidate(rec: CatalogRecordIn) -> CatalogCandidate:
    return CatalogCandidate(**rec.model_dump())


def _report_json(report: UpsertReport) -> dict:
    s = report.summary
    return {
        "results": [
            {
                "substance": r.substance,
                "action": r.action.value,
                "id": r.id,
                "reason": r.reason.value if r.reason else None,
                "message": r.message,
                "duplicate": r.duplicate,
            }
            for r in report.results
        ],
        "summary": {
            "created": s.created,
            "updated": s.updated,
            "duplicates": s.duplicates,
            "rejected": s.rejected,
            "duplicate_substances": s.duplicate_substances,
        },
    }


@router.get("", response_model=list[CatalogRecordRead])
def get_catalog(
    limit: int = settings.READ_LIMIT,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return list_catalog(db, blobs=blobs, limit=limit)


@router.get("/by-substance/{substance}", response_model=CatalogRecordRead)
def get_catalog_record(
    substance: str,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    rec = get_by_substance(db, substance)
    if not rec:
        raise HTTPException(status_code=404, detail="Catalog record not found")
    return to_read(rec, blobs)


@router.post("")
def save_catalog_record(payload: CatalogRecordIn, db: Session = Depends(get_db)):
    """Single save = batch of one (same duplicate policy)."""
    with transaction(db):
        report = upsert_catalog_batch(db, [_candidate(payload)], chunk_size=settings.BATCH_CHUNK_SIZE)

    if not report.results:
        raise HTTPException(status_code=422, detail="substance is required")
    outcome = report.results[0]
    if outcome.action == UpsertAction.rejected:
        raise HTTPException(status_code=422, detail=outcome.message)
    return {
        "id": outcome.id,
        "action": outcome.action.value,
        "duplicate": outcome.duplicate,
        "reason": outcome.reason.value if outcome.reason else None,
    }


@router.post("/batch")
def save_catalog_batch(payload: CatalogBatchIn, db: Session = Depends(get_db)):
    with transaction(db):
        report = upsert_catalog_batch(
            db,
            [_candidate(r) for r in payload.records],
            chunk_size=settings.BATCH_CHUNK_SIZE,
        )
    return _report_json(report)


@router.put("/{record_id}/image", response_model=CatalogRecordRead)
def upload_catalog_image(
    record_id: int,
    data: bytes = Body(..., media_type="application/octet-stream"),
    content_type: str | None = Header(default=None),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    if not data:
        raise HTTPException(status_code=422, detail="Empty image body")

    rec = db.get(CatalogRecord, record_id)
    if not rec:
        raise HTTPException(status_code=404, detail="Catalog record not found")

    media_type = (content_type or "").split(";")[0].strip()
    blob_id = blobs.put_blob(data, suffix=IMAGE_SUFFIXES.get(media_type, ""))
    previous = rec.image_blob_id
    try:
        with transaction(db):
            rec.image_blob_id = blob_id
    except Exception:
        blobs.delete_blob(blob_id)
        raise

    if previous and previous != blob_id:
        blobs.delete_blob(previous)
    db.refresh(rec)
    return to_read(rec, blobs)


@router.delete("/{record_id}")
def remove_catalog_record(
    record_id: int,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    with transaction(db):
        image_blob_id = delete_catalog_record(db, record_id)
    delete_blobs(blobs, [image_blob_id])
    return {"id": record_id, "deleted": True}
