from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

StockCategory = Literal["Laptop", "Smartphone", "Tablet", "Accessories", "Other"]


class StockCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Za-z\s]+$")
    category: StockCategory
    quantity: int = Field(..., ge=0)
    reorder_level: int = Field(..., ge=0)
    unit_price: float = Field(0.0, ge=0)
    supplier_id: str


class StockUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=0)
    reorder_level: Optional[int] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    supplier_id: Optional[str] = None


class StockResponse(BaseModel):
    id: str
    name: str
    category: str
    quantity: int
    reorder_level: int
    unit_price: float
    supplier_id: Optional[str] = None
    date_added: datetime
    updated_at: datetime


class StockMessageResponse(BaseModel):
    message: str
    stock: StockResponse
