from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Dict, List, Literal
from routers.auth.schemas import AdminResponse
from routers.stock.schemas import StockResponse


class AdminCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Literal["admin", "super_admin"] = "admin"

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class AdminStatusUpdate(BaseModel):
    status: Literal["active", "disabled"]


class AdminMessageResponse(BaseModel):
    message: str
    admin: AdminResponse


class FinanceTotals(BaseModel):
    income: float
    expense: float
    balance: float


class DashboardResponse(BaseModel):
    buyers: int
    suppliers: int
    products: int
    orders_by_status: Dict[str, int]
    total_orders: int
    revenue: float
    low_stock_count: int
    low_stock: List[StockResponse]
    pending_offers: int
    finance: FinanceTotals
