from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field

from pharmatrust.schemas.common import CamelModel
from pharmatrust.schemas.customer import CustomerSummary
from pharmatrust.schemas.user import UserSummary

PaymentMethod = Literal["Cash", "Card", "UPI", "Net Banking", "Other"]
PaymentStatus = Literal["Paid", "Pending", "Partial", "Refunded"]


class SaleItemIn(CamelModel):
    """Positivity of quantity and price is checked by the sale validator, in order."""
    medicine: int = Field(..., validation_alias=AliasChoices("medicine", "medicineId", "medicine_id"))
    quantity: int
    unit_price: Decimal = Field(..., decimal_places=2)
    discount: Decimal = Field(Decimal("0"), decimal_places=2)


class SaleCreate(CamelModel):
    customer: int = Field(..., validation_alias=AliasChoices("customer", "customerId", "customer_id"))
    items: List[SaleItemIn] = []
    payment_method: PaymentMethod
    paid_amount: Decimal = Field(..., ge=0, decimal_places=2)
    doctor_name: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class SaleStatusUpdate(CamelModel):
    payment_status: PaymentStatus


class SaleItemResponse(CamelModel):
    id: int
    medicine_id: Optional[int] = None
    medicine_name: str
    quantity: int
    unit_price: float
    discount: float
    total_price: float


class SaleResponse(CamelModel):
    id: int
    invoice_number: str
    customer_id: Optional[int] = None
    customer: Optional[CustomerSummary] = None
    items: List[SaleItemResponse]
    subtotal: float
    total_discount: float
    tax: float
    total_amount: float
    payment_method: str
    payment_status: str
    paid_amount: float
    change_amount: float
    prescription_image: Optional[str] = None
    doctor_name: Optional[str] = None
    sold_by: Optional[UserSummary] = None
    notes: Optional[str] = None
    sale_date: datetime
    created_at: datetime


class MedicineUpdateRecord(CamelModel):
    medicine_id: int
    quantity_reduced: int
    new_quantity: int
