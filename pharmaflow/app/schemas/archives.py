from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from pharmaflow.app.db.models.core_types import ProcessStatus


class ArchivedOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    source_order_id: int
    row_number: int
    substance: str
    name: str
    company: str
    units_per_box_a: int
    price: float
    current_balance: int
    quantity_order: int
    real_order: int
    final_balance: int
    unit_quantity_order: int
    unit_real_order: int
    urgent: bool
    image_blob_id: str | None = None
    image_url: str | None = None


class ArchivedFulfillmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    source_fulfillment_id: int
    source_order_id: int | None = None
    row_number: int
    substance: str
    name: str
    company: str
    unit_real_order: int
    units_per_box_b: int
    price: float
    final_order: int
    bonus: int
    confirmed: bool
    final_package_amount: int
    final_unit_amount: int
    total_price: float
    urgent: bool


class ArchivedProcessRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    source_process_id: int
    source_fulfillment_id: int
    source_order_id: int
    row_number: int
    substance: str
    name: str
    box_number: str
    status: ProcessStatus
    final_package_amount: int
    units_per_box_b: int
    final_unit_amount: int
    urgent: bool
    image_url: str | None = None


class ArchiveBundleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bundle_id: str
    total_cost: float
    created_by: str
    created_at: datetime
    orders: list[ArchivedOrderRead]
    fulfillments: list[ArchivedFulfillmentRead]
    processes: list[ArchivedProcessRead]
