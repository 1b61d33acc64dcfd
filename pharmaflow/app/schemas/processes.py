from pydantic import BaseModel

from pharmaflow.app.db.models.core_types import ProcessStatus


class ProcessRead(BaseModel):
    id: int
    fulfillment_id: int
    order_id: int
    row_number: int = 0
    substance: str = ""
    name: str = ""
    box_number: str
    status: ProcessStatus

    final_package_amount: int = 0
    units_per_box_b: int = 0
    final_unit_amount: int = 0

    urgent: bool = False
    image_url: str | None = None
