from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pharmaflow.app.api.deps import get_db, get_blob_store
from pharmaflow.app.db.session import transaction
from pharmaflow.app.schemas.fulfillment import FulfillmentRead
from pharmaflow.app.settings import settings
from pharmaflow.services.blob_store import BlobStore
from pharmaflow.services.fulfillment import (
    confirm_fulfillment,
    delete_fulfillment,
    get_fulfillment,
    list_fulfillment,
    send_to_fulfillment,
    update_fulfillment,
)

router = APIRouter(prefix="/fulfillment")


class FulfillmentUpdate(BaseModel):
    final_order: int = Field(ge=0)
    bonus: int = Field(default=0, ge=0)


@router.get("", response_model=list[FulfillmentRead])
def get_fulfillment_rows(
    limit: int = settings.READ_LIMIT,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return list_fulfillment(db, blobs=blobs, limit=limit)


@router.get("/{fulfillment_id}", response_model=FulfillmentRead)
def read_fulfillment(
    fulfillment_id: int,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return get_fulfillment(db, fulfillment_id, blobs=blobs)


@router.post("/send")
def send(db: Session = Depends(get_db)):
    with transaction(db):
        created = send_to_fulfillment(db)
    return {"sent": created}


@router.patch("/{fulfillment_id}", response_model=FulfillmentRead)
def edit_fulfillment(
    fulfillment_id: int,
    payload: FulfillmentUpdate,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    with transaction(db):
        row = update_fulfillment(
            db,
            fulfillment_id,
            final_order=payload.final_order,
            bonus=payload.bonus,
            blobs=blobs,
        )
    return row


@router.post("/confirm")
def confirm(db: Session = Depends(get_db)):
    with transaction(db):
        confirmed = confirm_fulfillment(db)
    return {"confirmed": confirmed}


@router.delete("/{fulfillment_id}")
def remove_fulfillment(fulfillment_id: int, db: Session = Depends(get_db)):
    with transaction(db):
        delete_fulfillment(db, fulfillment_id)
    return {"id": fulfillment_id, "deleted": True}
