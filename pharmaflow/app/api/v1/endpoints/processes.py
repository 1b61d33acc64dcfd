from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pharmaflow.app.api.deps import get_db, get_blob_store
from pharmaflow.app.db.models.core_types import ProcessStatus
from pharmaflow.app.db.session import transaction
from pharmaflow.app.schemas.processes import ProcessRead
from pharmaflow.app.settings import settings
from pharmaflow.services.blob_store import BlobStore
from pharmaflow.services.processes import get_process, list_processes, update_process

router = APIRouter(prefix="/processes")


class ProcessUpdate(BaseModel):
    box_number: str | None = Field(default=None, max_length=64)
    status: ProcessStatus | None = None


@router.get("", response_model=list[ProcessRead])
def get_processes(
    limit: int = settings.READ_LIMIT,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return list_processes(db, blobs=blobs, limit=limit)


@router.get("/{process_id}", response_model=ProcessRead)
def read_process(
    process_id: int,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return get_process(db, process_id, blobs=blobs)


@router.patch("/{process_id}")
def edit_process(process_id: int, payload: ProcessUpdate, db: Session = Depends(get_db)):
    with transaction(db):
        p = update_process(db, process_id, box_number=payload.box_number, status=payload.status)
        out = {"id": p.id, "box_number": p.box_number, "status": p.status.value}
    return out
