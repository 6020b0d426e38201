from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime


# Request schemas
class AdminLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


# Response schemas
class AdminResponse(BaseModel):
    id: str
    username: str
    email: str
    role: str
    status: str
    created_at: datetime


class AdminAuthResponse(BaseModel):
    message: str
    token: str
    admin: AdminResponse
