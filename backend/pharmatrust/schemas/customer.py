from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from pharmatrust.schemas.common import CamelModel

Gender = Literal["Male", "Female", "Other"]
CustomerType = Literal["Regular", "VIP", "Corporate"]


class CustomerAddress(CamelModel):
    street: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=50)
    state: Optional[str] = Field(None, max_length=50)
    pincode: Optional[str] = Field(None, pattern=r"^\d{6}$")


class MedicalHistoryEntry(CamelModel):
    condition: str = Field(..., min_length=1, max_length=100)
    diagnosed_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=200)


class AllergyEntry(CamelModel):
    allergen: str = Field(..., min_length=1, max_length=100)
    reaction: Optional[str] = Field(None, max_length=200)


class InsuranceDetails(CamelModel):
    provider: Optional[str] = Field(None, max_length=100)
    policy_number: Optional[str] = Field(None, max_length=50)
    valid_until: Optional[date] = None


class EmergencyContact(CamelModel):
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    relation: Optional[str] = Field(None, max_length=50)


class CustomerCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: str = Field(..., pattern=r"^\d{10}$")
    address: Optional[CustomerAddress] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    medical_history: List[MedicalHistoryEntry] = []
    allergies: List[AllergyEntry] = []
    insurance_details: Optional[InsuranceDetails] = None
    emergency_contact: Optional[EmergencyContact] = None
    customer_type: CustomerType = "Regular"
    is_active: bool = True


class CustomerUpdate(CamelModel):
    """Purchase totals and loyalty points are not editable here."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    address: Optional[CustomerAddress] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    insurance_details: Optional[InsuranceDetails] = None
    emergency_contact: Optional[EmergencyContact] = None
    customer_type: Optional[CustomerType] = None
    is_active: Optional[bool] = None


class LoyaltyAdjustment(CamelModel):
    points: int
    operation: str


class CustomerResponse(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: str
    address: Optional[CustomerAddress] = None
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    medical_history: List[MedicalHistoryEntry] = []
    allergies: List[AllergyEntry] = []
    insurance_details: Optional[InsuranceDetails] = None
    emergency_contact: Optional[EmergencyContact] = None
    customer_type: str
    total_purchases: float
    loyalty_points: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CustomerSummary(CamelModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
