from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pharmaflow.app.api.deps import get_db, get_blob_store, get_actor
from pharmaflow.app.db.session import transaction
from pharmaflow.app.schemas.archives import ArchiveBundleRead
from pharmaflow.app.settings import settings
from pharmaflow.services.archive import (
    archive_and_clear,
    get_archive_bundle,
    get_latest_archive_bundle,
    list_archive_bundles,
)
from pharmaflow.services.blob_store import BlobStore

router = APIRouter(prefix="/archives")


@router.get("", response_model=list[ArchiveBundleRead])
def get_archives(limit: int = settings.ARCHIVE_LIST_LIMIT, db: Session = Depends(get_db)):
    return list_archive_bundles(db, limit=limit)


@router.get("/latest", response_model=ArchiveBundleRead)
def get_latest_archive(db: Session = Depends(get_db)):
    bundle = get_latest_archive_bundle(db)
    if not bundle:
        raise HTTPException(status_code=404, detail="No archive yet")
    return bundle


@router.get("/{bundle_id}", response_model=ArchiveBundleRead)
def get_archive(bundle_id: str, db: Session = Depends(get_db)):
    bundle = get_archive_bundle(db, bundle_id)
    if not bundle:
        raise HTTPException(status_code=404, detail="Archive bundle not found")
    return bundle


@router.post("/move")
def move_to_archive(
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    actor: str = Depends(get_actor),
):
    """Snapshot process + fulfillment + order rows into one bundle and clear them."""
    with transaction(db):
        moved, bundle_id = archive_and_clear(
            db,
            blobs=blobs,
            actor=actor,
            chunk_size=settings.ARCHIVE_CHUNK_SIZE,
        )
    return {"moved": moved, "bundle_id": bundle_id}
