from pydantic import BaseModel, Field
from typing import Optional
from config import CURRENCY


class PaymentIntentCreate(BaseModel):
    order_id: str
    amount: Optional[float] = Field(None, gt=0)
    currency: str = Field(CURRENCY, min_length=3, max_length=3)


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str


class PaymentStatusUpdate(BaseModel):
    order_id: str
    payment_intent_id: Optional[str] = None


class PaymentStatusResponse(BaseModel):
    message: str
    order_id: str
    payment_status: str
    status: str
