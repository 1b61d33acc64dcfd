from pydantic import BaseModel


class OrderRowRead(BaseModel):
    """Order row joined to its catalog record (catalog fields are never stored on the row)."""

    id: int
    row_number: int
    substance: str
    current_balance: int
    quantity_order: int
    real_order: int
    final_balance: int
    unit_quantity_order: int
    unit_real_order: int
    urgent: bool

    name: str = ""
    company: str = ""
    units_per_box_a: int = 0
    price: float = 0.0
    image_blob_id: str | None = None
    image_url: str | None = None
