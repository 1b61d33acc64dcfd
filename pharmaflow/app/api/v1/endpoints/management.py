from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmaflow.app.api.deps import get_db, get_blob_store, get_actor
from pharmaflow.app.db.session import transaction
from pharmaflow.services.blob_store import BlobStore, delete_blobs
from pharmaflow.services.management import ClearStage, clear_all_tables, clear_stage

router = APIRouter(prefix="/management")


@router.post("/clear")
def clear_everything(
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    actor: str = Depends(get_actor),
):
    with transaction(db):
        result = clear_all_tables(db)
    delete_blobs(blobs, result.blob_ids)
    return {"cleared": result.counts, "by": actor}


@router.post("/clear/{stage}")
def clear_one_stage(
    stage: ClearStage,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    actor: str = Depends(get_actor),
):
    with transaction(db):
        result = clear_stage(db, stage)
    delete_blobs(blobs, result.blob_ids)
    return {"stage": stage.value, "cleared": result.counts, "by": actor}
