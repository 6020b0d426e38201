from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ProductStock(BaseModel):
    id: str
    name: str
    quantity: int
    category: str


class ProductResponse(BaseModel):
    id: str
    stock: Optional[ProductStock] = None
    name: Optional[str] = None
    category: str
    description: str
    price: float
    image: str
    created_at: datetime
    updated_at: datetime


class ProductMessageResponse(BaseModel):
    message: str
    product: ProductResponse
