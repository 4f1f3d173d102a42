from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.types import JSON

from pharmatrust.db.base import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(10), nullable=False)
    address = Column(JSON, nullable=False, default=dict)  # street, city, state, pincode
    contact_person = Column(String(100), nullable=False)
    gst_number = Column(String(15), unique=True, nullable=False)
    license_number = Column(String(50), unique=True, nullable=False)
    bank_details = Column(JSON, nullable=True)  # bankName, accountNumber, ifscCode
    payment_terms = Column(String(16), nullable=False, default="Cash")  # Cash | Credit-15/30/45/60
    is_active = Column(Boolean, default=True, nullable=False)
    rating = Column(Integer, nullable=False, default=5)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    def __repr__(self):
        return f"<Supplier id={self.id} name={self.name}>"
