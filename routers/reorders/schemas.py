from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal
from datetime import datetime

ReorderCategory = Literal["Laptops", "Mobile Phones", "Televisions", "Accessories", "Other"]
ReorderPriority = Literal["Low", "Normal", "High"]


class ReorderCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=3, max_length=100)
    quantity: int = Field(..., ge=1)
    category: ReorderCategory
    priority: ReorderPriority = "Normal"
    description: str = Field(..., min_length=10, max_length=500)


class ReorderUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=3, max_length=100)
    quantity: Optional[int] = Field(None, ge=1)
    category: Optional[ReorderCategory] = None
    priority: Optional[ReorderPriority] = None
    description: Optional[str] = Field(None, min_length=10, max_length=500)


class ReplyCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reply: str = Field(..., min_length=1, max_length=500)


class Reply(BaseModel):
    supplier_id: str
    supplier_name: str
    reply: str
    created_at: datetime


class ReorderResponse(BaseModel):
    id: str
    title: str
    quantity: int
    category: str
    priority: str
    description: str
    replies: List[Reply] = []
    created_at: datetime
    updated_at: datetime


class ReorderMessageResponse(BaseModel):
    message: str
    request: ReorderResponse
