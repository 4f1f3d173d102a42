from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String
from sqlalchemy.types import JSON

from pharmatrust.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(10), nullable=False, index=True)
    address = Column(JSON, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(16), nullable=True)  # Male | Female | Other
    # Lists are replaced wholesale on change so SQLAlchemy sees the mutation
    medical_history = Column(JSON, nullable=False, default=list)  # [{condition, diagnosedDate, notes}]
    allergies = Column(JSON, nullable=False, default=list)  # [{allergen, reaction}]
    insurance_details = Column(JSON, nullable=True)
    emergency_contact = Column(JSON, nullable=True)
    customer_type = Column(String(16), nullable=False, default="Regular")  # Regular | VIP | Corporate
    total_purchases = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    loyalty_points = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    @property
    def age(self):
        if not self.date_of_birth:
            return None
        return int((date.today() - self.date_of_birth).days / 365.25)
