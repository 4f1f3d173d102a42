from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from pharmatrust.db.base import Base


class Medicine(Base):
    """
    Pharmacy stock line: one row per medicine batch.

    quantity never goes below zero. The CHECK constraint backs up the
    guarded decrement used by the sale workflow.
    """
    __tablename__ = "medicines"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_medicines_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    generic_name = Column(String(100), nullable=False)
    category = Column(String(32), nullable=False)
    manufacturer = Column(String(100), nullable=False)
    batch_number = Column(String(50), nullable=False)
    expiry_date = Column(Date, nullable=False)
    manufacturing_date = Column(Date, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=0)
    cost_price = Column(Numeric(12, 2), nullable=False)
    selling_price = Column(Numeric(12, 2), nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    description = Column(Text, nullable=True)
    medicine_image = Column(String(512), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    prescription_required = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    supplier = relationship("Supplier", backref="medicines")

    @property
    def stock_status(self) -> str:
        if self.quantity <= 0:
            return "Out of Stock"
        if self.quantity <= self.min_stock_level:
            return "Low Stock"
        return "In Stock"

    @property
    def profit(self) -> Decimal:
        return Decimal(self.selling_price) - Decimal(self.cost_price)

    @property
    def profit_percentage(self) -> str:
        cost = Decimal(self.cost_price)
        if not cost:
            return "0.00"
        return f"{(self.profit / cost * 100):.2f}"

    def __repr__(self):
        return f"<Medicine id={self.id} name={self.name} qty={self.quantity}>"
