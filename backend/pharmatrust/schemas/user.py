from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from pharmatrust.core.config import settings
from pharmatrust.schemas.common import CamelModel

Role = Literal["admin", "pharmacist", "cashier"]


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str
    role: Role = "cashier"
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    address: Optional[str] = Field(None, max_length=255)

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < settings.MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
        return v

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(CamelModel):
    email: EmailStr
    password: str


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    address: Optional[str] = Field(None, max_length=255)


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    profile_image: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class UserSummary(CamelModel):
    id: int
    name: str
    email: str
