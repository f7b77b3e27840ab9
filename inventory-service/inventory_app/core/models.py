from datetime import datetime

from pydantic import BaseModel


class Product(BaseModel):
    id: int
    name: str
    stock_quantity: int
    updated_at: datetime


class AppliedAdjustment(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    created_at: datetime
