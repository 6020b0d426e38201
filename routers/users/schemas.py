from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime

PHONE_PATTERN = r"^(?:\+94|0)?7\d{8}$"


class UserRegister(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Literal["buyer", "supplier"] = "buyer"
    company: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def check_role_fields(self):
        if self.role == "supplier" and (not self.company or not self.phone):
            raise ValueError("Company name and phone are required for suppliers")
        if self.role == "buyer" and not self.postal_code:
            raise ValueError("Postal code is required for buyers")
        if not self.address or not self.city or not self.country:
            raise ValueError("Address, city, and country are required")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class GoogleLogin(BaseModel):
    token_id: Optional[str] = None


class UserProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    company: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class AdminUserUpdate(UserProfileUpdate):
    role: Optional[Literal["buyer", "supplier"]] = None


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    role: str
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserAuthResponse(BaseModel):
    message: str
    token: str
    role: str
    user: UserResponse


class UserUpdateResponse(BaseModel):
    message: str
    user: UserResponse


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total_pages: int
    current_page: int
    total: int


class SupplierSummary(BaseModel):
    id: str
    username: str
