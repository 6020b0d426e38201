from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

OrderStatus = Literal["pending", "transfer_pending", "confirmed", "shipped", "delivered", "cancelled"]


class OrderItem(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int
    image: Optional[str] = None


class Customer(BaseModel):
    username: str
    email: str
    phone: Optional[str] = None


class Address(BaseModel):
    line1: str
    city: str
    postal_code: str
    country: str = "Sri Lanka"


class PaymentSlip(BaseModel):
    filename: str
    url: str


class HistoryEntry(BaseModel):
    status: str
    updated_at: datetime
    note: Optional[str] = None
    updated_by: str


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: Optional[str] = None
    items: List[OrderItem]
    subtotal: float
    delivery_charge: float
    total: float
    customer: Customer
    address: Address
    delivery_method: str
    courier: Optional[str] = None
    notes: Optional[str] = None
    payment_method: str
    payment_status: str
    payment_slip: Optional[PaymentSlip] = None
    status: str
    history: List[HistoryEntry]
    created_at: datetime
    updated_at: datetime


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(None, max_length=500)


class SlipUploadResponse(BaseModel):
    message: str
    slip: PaymentSlip
    status: str
