from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from pharmatrust.core.permissions import CASHIER
from pharmatrust.db.base import Base


class User(Base):
    """Staff account. Role drives route gating: admin | pharmacist | cashier."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=CASHIER)
    phone = Column(String(20), nullable=True)
    address = Column(String(255), nullable=True)
    profile_image = Column(String(512), nullable=True)  # path under uploads/profiles
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)
