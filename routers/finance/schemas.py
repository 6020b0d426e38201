from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal
from datetime import datetime


class FinanceCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: Literal["Income", "Expense"]
    amount: float = Field(..., ge=0)
    description: str = Field(..., min_length=1, max_length=255)
    date: Optional[datetime] = None


class FinanceResponse(BaseModel):
    id: str
    type: str
    amount: float
    description: str
    date: datetime


class FinanceMessageResponse(BaseModel):
    message: str
    entry: FinanceResponse


class FinanceSummary(BaseModel):
    income: float
    expense: float
    balance: float
