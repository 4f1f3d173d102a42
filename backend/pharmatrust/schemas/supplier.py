from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from pharmatrust.schemas.common import CamelModel

PaymentTerms = Literal["Cash", "Credit-15", "Credit-30", "Credit-45", "Credit-60"]

GST_PATTERN = r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$"
IFSC_PATTERN = r"^[A-Z]{4}0[A-Z0-9]{6}$"


class SupplierAddress(CamelModel):
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=50)
    state: str = Field(..., min_length=1, max_length=50)
    pincode: str = Field(..., pattern=r"^\d{6}$")


class BankDetails(CamelModel):
    bank_name: Optional[str] = Field(None, max_length=100)
    account_number: Optional[str] = Field(None, max_length=20)
    ifsc_code: Optional[str] = Field(None, pattern=IFSC_PATTERN)


class SupplierCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=r"^\d{10}$")
    address: SupplierAddress
    contact_person: str = Field(..., min_length=1, max_length=100)
    gst_number: str = Field(..., pattern=GST_PATTERN)
    license_number: str = Field(..., min_length=1, max_length=50)
    bank_details: Optional[BankDetails] = None
    payment_terms: PaymentTerms = "Cash"
    is_active: bool = True
    rating: int = Field(5, ge=1, le=5)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.lower()


class SupplierUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    address: Optional[SupplierAddress] = None
    contact_person: Optional[str] = Field(None, min_length=1, max_length=100)
    gst_number: Optional[str] = Field(None, pattern=GST_PATTERN)
    license_number: Optional[str] = Field(None, min_length=1, max_length=50)
    bank_details: Optional[BankDetails] = None
    payment_terms: Optional[PaymentTerms] = None
    is_active: Optional[bool] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class SupplierResponse(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    address: SupplierAddress
    contact_person: str
    gst_number: str
    license_number: str
    bank_details: Optional[BankDetails] = None
    payment_terms: str
    is_active: bool
    rating: int
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
