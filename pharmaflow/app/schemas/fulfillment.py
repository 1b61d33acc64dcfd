from pydantic import BaseModel


class FulfillmentRead(BaseModel):
    id: int
    order_id: int | None
    row_number: int = 0
    substance: str = ""
    name: str = ""
    company: str = ""
    unit_real_order: int = 0
    units_per_box_b: int = 0
    price: float = 0.0

    final_order: int
    bonus: int
    confirmed: bool

    # READ ONLY - recomputed on every read
    final_package_amount: int
    final_unit_amount: int = 0
    total_price: float = 0.0

    urgent: bool = False
    image_url: str | None = None
