"""
Sale: one point-of-sale transaction with its line items.

Created only by the sale workflow, which inserts the sale, decrements stock
and accrues loyalty in a single transaction.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from pharmatrust.db.base import Base


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(32), unique=True, nullable=False, index=True)  # INV-000001
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    subtotal = Column(Numeric(12, 2), nullable=False)
    total_discount = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(32), nullable=False)  # Cash | Card | UPI | Net Banking | Other
    payment_status = Column(String(16), nullable=False, default="Paid")  # Paid | Pending | Partial | Refunded
    paid_amount = Column(Numeric(12, 2), nullable=False)
    change_amount = Column(Numeric(12, 2), nullable=False, default=0)
    prescription_image = Column(String(512), nullable=True)
    doctor_name = Column(String(100), nullable=True)
    sold_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    sale_date = Column(DateTime, default=datetime.now, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    customer = relationship("Customer", backref="sales")
    sold_by = relationship("User")
    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )

    def __repr__(self):
        return f"<Sale {self.invoice_number} total={self.total_amount}>"


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="SET NULL"), nullable=True, index=True)
    medicine_name = Column(String(100), nullable=False)  # snapshot at time of sale
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total_price = Column(Numeric(12, 2), nullable=False)  # quantity * unit_price - discount

    sale = relationship("Sale", back_populates="items")
    medicine = relationship("Medicine")
