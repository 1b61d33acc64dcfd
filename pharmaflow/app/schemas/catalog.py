from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CatalogRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    substance: str
    name: str
    company: str
    units_per_box_a: int
    units_per_box_b: int
    price: float
    image_blob_id: str | None = None
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime
