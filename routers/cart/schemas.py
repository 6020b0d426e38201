from pydantic import BaseModel, Field
from typing import List


class CartItemAdd(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int


class CartItem(BaseModel):
    product_id: str
    name: str
    category: str
    price: float
    image: str
    quantity: int


class CartResponse(BaseModel):
    items: List[CartItem]
    total_price: float


class CartMessageResponse(BaseModel):
    message: str
    cart: CartResponse


class QuotationResponse(BaseModel):
    message: str
    pdf: str
