from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field, model_validator

from pharmatrust.schemas.common import CamelModel

Category = Literal[
    "Tablet", "Capsule", "Syrup", "Injection", "Cream", "Ointment",
    "Drops", "Inhaler", "Spray", "Other",
]


class MedicineCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    generic_name: str = Field(..., min_length=1, max_length=100)
    category: Category
    manufacturer: str = Field(..., min_length=1, max_length=100)
    batch_number: str = Field(..., min_length=1, max_length=50)
    expiry_date: date
    manufacturing_date: date
    quantity: int = Field(..., ge=0)
    min_stock_level: int = Field(..., ge=0)
    cost_price: Decimal = Field(..., ge=0)
    selling_price: Decimal = Field(..., ge=0)
    supplier: int = Field(..., description="Supplier id")
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True
    prescription_required: bool = False

    @model_validator(mode="after")
    def expiry_after_manufacture(self):
        if self.expiry_date <= self.manufacturing_date:
            raise ValueError("Expiry date must be after manufacturing date")
        return self


class MedicineUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    generic_name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[Category] = None
    manufacturer: Optional[str] = Field(None, min_length=1, max_length=100)
    batch_number: Optional[str] = Field(None, min_length=1, max_length=50)
    expiry_date: Optional[date] = None
    manufacturing_date: Optional[date] = None
    quantity: Optional[int] = Field(None, ge=0)
    min_stock_level: Optional[int] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    supplier: Optional[int] = None
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    prescription_required: Optional[bool] = None


class StockAdjustment(CamelModel):
    """operation is checked by the adjustment service so the error reads the same everywhere."""
    quantity: int
    operation: str


class SupplierRef(CamelModel):
    id: int
    name: str
    email: str
    phone: str


class MedicineResponse(CamelModel):
    id: int
    name: str
    generic_name: str
    category: str
    manufacturer: str
    batch_number: str
    expiry_date: date
    manufacturing_date: date
    quantity: int
    min_stock_level: int
    cost_price: float
    selling_price: float
    supplier_id: Optional[int] = None
    supplier: Optional[SupplierRef] = None
    description: Optional[str] = None
    medicine_image: Optional[str] = None
    is_active: bool
    prescription_required: bool
    stock_status: str
    profit: float
    profit_percentage: str
    created_at: datetime
    updated_at: datetime
