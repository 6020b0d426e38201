from pydantic import BaseModel, Field
from typing import Optional, List, Literal

DeliveryMethod = Literal["home", "different", "store"]
PaymentMethod = Literal["online", "bank", "cash_on_delivery"]


class AltAddress(BaseModel):
    line1: Optional[str] = None


class PlaceOrder(BaseModel):
    payment_method: Optional[PaymentMethod] = None
    delivery_method: DeliveryMethod = "home"
    notes: Optional[str] = Field(None, max_length=1000)
    address: Optional[AltAddress] = None


class SummaryItem(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int
    image: Optional[str] = None


class CheckoutSummary(BaseModel):
    items: List[SummaryItem]
    subtotal: float
    delivery_charge: float
    total: float


class PlaceOrderResponse(BaseModel):
    message: str
    order_id: str
    order_number: str
    status: str
    subtotal: float
    delivery_charge: float
    total: float
