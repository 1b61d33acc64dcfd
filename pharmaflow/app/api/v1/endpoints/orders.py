from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pharmaflow.app.api.deps import get_db, get_blob_store
from pharmaflow.app.db.session import transaction
from pharmaflow.app.schemas.orders import OrderRowRead
from pharmaflow.app.settings import settings
from pharmaflow.services.blob_store import BlobStore
from pharmaflow.services.orders import (
    delete_order_row,
    list_orders,
    next_row_number,
    save_order_row,
    set_urgent,
)

router = APIRouter(prefix="/orders")


class OrderRowIn(BaseModel):
    row_number: int = Field(ge=1)
    substance: str = Field(min_length=1, max_length=255)
    current_balance: int = 0
    quantity_order: int = Field(default=0, ge=0)
    real_order: int = Field(default=0, ge=0)
    urgent: bool = False


class UrgentIn(BaseModel):
    urgent: bool


@router.get("", response_model=list[OrderRowRead])
def get_orders(
    limit: int = settings.READ_LIMIT,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return list_orders(db, blobs=blobs, limit=limit)


@router.get("/next-row-number")
def get_next_row_number(db: Session = Depends(get_db)):
    return {"row_number": next_row_number(db)}


@router.post("")
def save_order(payload: OrderRowIn, db: Session = Depends(get_db)):
    with transaction(db):
        order_id = save_order_row(db, **payload.model_dump())
    return {"id": order_id}


@router.post("/{order_id}/urgent")
def mark_urgent(order_id: int, payload: UrgentIn, db: Session = Depends(get_db)):
    """Flip urgency; every live row is renumbered (urgent first)."""
    with transaction(db):
        ordered = set_urgent(db, order_id, payload.urgent)
        rows = [{"id": o.id, "row_number": o.row_number, "urgent": o.urgent} for o in ordered]
    return rows


@router.delete("/{order_id}")
def remove_order(order_id: int, db: Session = Depends(get_db)):
    with transaction(db):
        delete_order_row(db, order_id)
    return {"id": order_id, "deleted": True}
