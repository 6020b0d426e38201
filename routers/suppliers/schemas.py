from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime, timezone

OfferStatus = Literal["Pending", "Approved", "Rejected"]


def check_delivery_date(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if value < datetime.now(timezone.utc):
        raise ValueError("Delivery date cannot be in the past")
    return value


class OfferCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    price_per_unit: float = Field(..., ge=0)
    quantity_offered: int = Field(..., ge=1)
    delivery_date: Optional[datetime] = None

    @field_validator("delivery_date")
    @classmethod
    def delivery_not_in_past(cls, v):
        return check_delivery_date(v)


class OfferUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    price_per_unit: Optional[float] = Field(None, ge=0)
    quantity_offered: Optional[int] = Field(None, ge=1)
    delivery_date: Optional[datetime] = None

    @field_validator("delivery_date")
    @classmethod
    def delivery_not_in_past(cls, v):
        return check_delivery_date(v)


class OfferResponse(BaseModel):
    id: str
    supplier_id: str
    supplier_name: Optional[str] = None
    title: str
    description: str
    price_per_unit: float
    quantity_offered: int
    delivery_date: Optional[datetime] = None
    status: str
    decision_by: Optional[str] = None
    decision_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class OfferMessageResponse(BaseModel):
    message: str
    offer: OfferResponse


class OfferListResponse(BaseModel):
    offers: List[OfferResponse]
