"""Customer records, health notes, loyalty points and statistics."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from pharmatrust.core.exceptions import BusinessError
from pharmatrust.models.customer import Customer
from pharmatrust.schemas.common import Pagination
from pharmatrust.schemas.customer import (
    AllergyEntry,
    CustomerCreate,
    CustomerUpdate,
    MedicalHistoryEntry,
)
from pharmatrust.services.adjustment import apply_adjustment
from pharmatrust.services.listing import paginate, search_filter

logger = logging.getLogger(__name__)

NESTED_FIELDS = ("address", "insurance_details", "emergency_contact")


def _as_columns(data) -> dict:
    values = data.model_dump(
        exclude_unset=True,
        exclude_none=True,
        exclude={*NESTED_FIELDS, "medical_history", "allergies"},
    )
    for field in NESTED_FIELDS:
        nested = getattr(data, field, None)
        if nested is not None:
            values[field] = nested.model_dump(mode="json", by_alias=True, exclude_none=True)
    return values


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise BusinessError.not_found("Customer", reason=f"id={customer_id}")
    return customer


def create_customer(db: Session, data: CustomerCreate) -> Customer:
    customer = Customer(
        **_as_columns(data),
        medical_history=[e.model_dump(mode="json", by_alias=True) for e in data.medical_history],
        allergies=[e.model_dump(mode="json", by_alias=True) for e in data.allergies],
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info(f"Customer created: {customer.id} {customer.name}")
    return customer


def list_customers(
    db: Session,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    customer_type: Optional[str] = None,
    gender: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> Tuple[List[Customer], Pagination]:
    q = db.query(Customer)

    text = search_filter(search, Customer.name, Customer.email, Customer.phone)
    if text is not None:
        q = q.filter(text)
    if customer_type:
        q = q.filter(Customer.customer_type == customer_type)
    if gender:
        q = q.filter(Customer.gender == gender)
    if is_active is not None:
        q = q.filter(Customer.is_active == is_active)

    return paginate(q, page, limit, Customer.created_at.desc(), Customer.id.desc())


def update_customer(db: Session, customer_id: int, data: CustomerUpdate) -> Customer:
    customer = get_customer(db, customer_id)
    for key, value in _as_columns(data).items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: int) -> Customer:
    customer = get_customer(db, customer_id)
    db.delete(customer)
    db.commit()
    logger.info(f"Customer deleted: {customer_id}")
    return customer


def add_medical_history(db: Session, customer_id: int, entry: MedicalHistoryEntry) -> Customer:
    customer = get_customer(db, customer_id)
    customer.medical_history = [*(customer.medical_history or []), entry.model_dump(mode="json", by_alias=True)]
    db.commit()
    db.refresh(customer)
    return customer


def add_allergy(db: Session, customer_id: int, entry: AllergyEntry) -> Customer:
    customer = get_customer(db, customer_id)
    customer.allergies = [*(customer.allergies or []), entry.model_dump(mode="json", by_alias=True)]
    db.commit()
    db.refresh(customer)
    return customer


def adjust_loyalty_points(db: Session, customer_id: int, points: int, operation: str) -> Tuple[Customer, int]:
    """Redeem or grant points by hand. Returns (customer, previous points)."""
    customer = (
        db.query(Customer)
        .filter(Customer.id == customer_id)
        .with_for_update()
        .first()
    )
    if not customer:
        raise BusinessError.not_found("Customer", reason=f"id={customer_id}")

    previous = customer.loyalty_points or 0
    customer.loyalty_points = apply_adjustment(previous, points, operation, "Insufficient loyalty points")
    db.commit()
    db.refresh(customer)
    logger.info(f"Loyalty {operation} on customer {customer_id}: {previous} -> {customer.loyalty_points}")
    return customer, previous


def customer_stats(db: Session) -> dict:
    total = db.query(func.count(Customer.id)).scalar() or 0
    active = db.query(func.count(Customer.id)).filter(Customer.is_active.is_(True)).scalar() or 0

    by_type = (
        db.query(Customer.customer_type, func.count(Customer.id))
        .group_by(Customer.customer_type)
        .all()
    )
    by_gender = (
        db.query(Customer.gender, func.count(Customer.id))
        .group_by(Customer.gender)
        .all()
    )
    top = (
        db.query(Customer)
        .order_by(Customer.total_purchases.desc(), Customer.id.asc())
        .limit(5)
        .all()
    )

    return {
        "overview": {
            "totalCustomers": total,
            "activeCustomers": active,
            "inactiveCustomers": total - active,
        },
        "customerTypeDistribution": [{"customerType": t, "count": c} for t, c in by_type],
        "genderDistribution": [{"gender": g, "count": c} for g, c in by_gender],
        "topCustomers": [
            {
                "id": c.id,
                "name": c.name,
                "totalPurchases": float(c.total_purchases or 0),
                "loyaltyPoints": c.loyalty_points,
                "customerType": c.customer_type,
            }
            for c in top
        ],
    }
