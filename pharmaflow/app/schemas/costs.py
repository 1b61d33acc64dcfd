from pydantic import BaseModel


class CostLine(BaseModel):
    fulfillment_id: int
    row_number: int
    substance: str
    name: str = ""
    company: str = ""
    final_package_amount: int
    bonus: int
    bonus_percentage: float
    price: float
    total_price: float
    urgent: bool = False


class CostTotal(BaseModel):
    total: float
    count: int
