from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class FeedbackCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=2000)


class FeedbackUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=1, max_length=2000)


class FeedbackResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str
    rating: int
    comment: str
    created_at: datetime
    updated_at: datetime
