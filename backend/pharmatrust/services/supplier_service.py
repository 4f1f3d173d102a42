"""Supplier records, activation toggle and summary statistics."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pharmatrust.core.exceptions import BusinessError
from pharmatrust.models.supplier import Supplier
from pharmatrust.schemas.common import Pagination
from pharmatrust.schemas.supplier import SupplierCreate, SupplierUpdate
from pharmatrust.services.listing import paginate, search_filter

logger = logging.getLogger(__name__)

UNIQUE_FIELDS = (
    ("email", "Email"),
    ("gst_number", "GST number"),
    ("license_number", "License number"),
)


def _check_unique(db: Session, values: dict, exclude_id: Optional[int] = None):
    for field, label in UNIQUE_FIELDS:
        value = values.get(field)
        if value is None:
            continue
        q = db.query(Supplier.id).filter(getattr(Supplier, field) == value)
        if exclude_id is not None:
            q = q.filter(Supplier.id != exclude_id)
        if q.first():
            raise BusinessError.conflict(f"{label} already registered to another supplier")


def _as_columns(data) -> dict:
    values = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"address", "bank_details"})
    if data.address is not None:
        values["address"] = data.address.model_dump(mode="json", by_alias=True)
    if data.bank_details is not None:
        values["bank_details"] = data.bank_details.model_dump(mode="json", by_alias=True, exclude_none=True)
    return values


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError:
        # a concurrent insert won the unique check
        db.rollback()
        raise BusinessError.conflict("Supplier with the same email, GST or license number already exists")


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise BusinessError.not_found("Supplier", reason=f"id={supplier_id}")
    return supplier


def create_supplier(db: Session, data: SupplierCreate) -> Supplier:
    values = _as_columns(data)
    _check_unique(db, values)
    supplier = Supplier(**values)
    db.add(supplier)
    _commit(db)
    db.refresh(supplier)
    logger.info(f"Supplier created: {supplier.id} {supplier.name}")
    return supplier


def list_suppliers(
    db: Session,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    payment_terms: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> Tuple[List[Supplier], Pagination]:
    q = db.query(Supplier)

    text = search_filter(
        search,
        Supplier.name,
        Supplier.email,
        Supplier.contact_person,
        Supplier.address["city"].as_string(),
    )
    if text is not None:
        q = q.filter(text)
    if payment_terms:
        q = q.filter(Supplier.payment_terms == payment_terms)
    if is_active is not None:
        q = q.filter(Supplier.is_active == is_active)

    return paginate(q, page, limit, Supplier.created_at.desc(), Supplier.id.desc())


def update_supplier(db: Session, supplier_id: int, data: SupplierUpdate) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    values = _as_columns(data)
    _check_unique(db, values, exclude_id=supplier_id)
    for key, value in values.items():
        setattr(supplier, key, value)
    _commit(db)
    db.refresh(supplier)
    return supplier


def delete_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    db.delete(supplier)
    db.commit()
    logger.info(f"Supplier deleted: {supplier_id}")
    return supplier


def toggle_supplier_status(db: Session, supplier_id: int) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    supplier.is_active = not supplier.is_active
    db.commit()
    db.refresh(supplier)
    return supplier


def supplier_stats(db: Session) -> dict:
    total = db.query(func.count(Supplier.id)).scalar() or 0
    active = db.query(func.count(Supplier.id)).filter(Supplier.is_active.is_(True)).scalar() or 0

    terms = (
        db.query(Supplier.payment_terms, func.count(Supplier.id))
        .group_by(Supplier.payment_terms)
        .all()
    )
    ratings = (
        db.query(Supplier.rating, func.count(Supplier.id))
        .group_by(Supplier.rating)
        .order_by(Supplier.rating.desc())
        .all()
    )

    return {
        "overview": {
            "totalSuppliers": total,
            "activeSuppliers": active,
            "inactiveSuppliers": total - active,
        },
        "paymentTermsDistribution": [{"paymentTerms": t, "count": c} for t, c in terms],
        "ratingDistribution": [{"rating": r, "count": c} for r, c in ratings],
    }
