"""Medicine catalogue and stock. Used by the medicines routes and the sale workflow."""
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from pharmatrust.core.exceptions import BusinessError
from pharmatrust.models.medicine import Medicine
from pharmatrust.models.supplier import Supplier
from pharmatrust.schemas.common import Pagination
from pharmatrust.schemas.medicine import MedicineCreate, MedicineUpdate
from pharmatrust.services.adjustment import apply_adjustment
from pharmatrust.services.listing import paginate, search_filter

logger = logging.getLogger(__name__)

LOW_STOCK = "lowStock"
OUT_OF_STOCK = "outOfStock"


def _ensure_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise BusinessError.not_found("Supplier", reason=f"id={supplier_id}")
    return supplier


def get_medicine(db: Session, medicine_id: int) -> Medicine:
    medicine = (
        db.query(Medicine)
        .options(joinedload(Medicine.supplier))
        .filter(Medicine.id == medicine_id)
        .first()
    )
    if not medicine:
        raise BusinessError.not_found("Medicine", reason=f"id={medicine_id}")
    return medicine


def create_medicine(db: Session, data: MedicineCreate, image_path: Optional[str] = None) -> Medicine:
    _ensure_supplier(db, data.supplier)

    fields = data.model_dump(exclude={"supplier"})
    medicine = Medicine(**fields, supplier_id=data.supplier, medicine_image=image_path)
    db.add(medicine)
    db.commit()
    db.refresh(medicine)
    logger.info(f"Medicine created: {medicine.id} {medicine.name} qty={medicine.quantity}")
    return medicine


def list_medicines(
    db: Session,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
    stock_status: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> Tuple[List[Medicine], Pagination]:
    q = db.query(Medicine).options(joinedload(Medicine.supplier))

    text = search_filter(search, Medicine.name, Medicine.generic_name, Medicine.manufacturer)
    if text is not None:
        q = q.filter(text)
    if category:
        q = q.filter(Medicine.category == category)
    if stock_status == LOW_STOCK:
        q = q.filter(Medicine.quantity <= Medicine.min_stock_level)
    elif stock_status == OUT_OF_STOCK:
        q = q.filter(Medicine.quantity == 0)
    if is_active is not None:
        q = q.filter(Medicine.is_active == is_active)

    return paginate(q, page, limit, Medicine.created_at.desc(), Medicine.id.desc())


def update_medicine(
    db: Session,
    medicine_id: int,
    data: MedicineUpdate,
    image_path: Optional[str] = None,
) -> Medicine:
    medicine = get_medicine(db, medicine_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    if "supplier" in changes:
        _ensure_supplier(db, changes["supplier"])
        changes["supplier_id"] = changes.pop("supplier")

    expiry = changes.get("expiry_date", medicine.expiry_date)
    manufactured = changes.get("manufacturing_date", medicine.manufacturing_date)
    if expiry <= manufactured:
        raise BusinessError.bad_request("Expiry date must be after manufacturing date")

    for key, value in changes.items():
        setattr(medicine, key, value)
    if image_path:
        medicine.medicine_image = image_path

    db.commit()
    db.refresh(medicine)
    return medicine


def delete_medicine(db: Session, medicine_id: int) -> Medicine:
    medicine = get_medicine(db, medicine_id)
    db.delete(medicine)
    db.commit()
    logger.info(f"Medicine deleted: {medicine_id}")
    return medicine


def low_stock_medicines(db: Session) -> List[Medicine]:
    return (
        db.query(Medicine)
        .options(joinedload(Medicine.supplier))
        .filter(Medicine.quantity <= Medicine.min_stock_level, Medicine.is_active.is_(True))
        .order_by(Medicine.quantity.asc())
        .all()
    )


def expired_medicines(db: Session, today: Optional[date] = None) -> List[Medicine]:
    today = today or date.today()
    return (
        db.query(Medicine)
        .options(joinedload(Medicine.supplier))
        .filter(Medicine.expiry_date <= today, Medicine.is_active.is_(True))
        .order_by(Medicine.expiry_date.asc())
        .all()
    )


def expiring_soon_medicines(db: Session, days: int = 30, today: Optional[date] = None) -> List[Medicine]:
    today = today or date.today()
    alert_date = today + timedelta(days=days)
    return (
        db.query(Medicine)
        .options(joinedload(Medicine.supplier))
        .filter(
            Medicine.expiry_date >= today,
            Medicine.expiry_date <= alert_date,
            Medicine.is_active.is_(True),
        )
        .order_by(Medicine.expiry_date.asc())
        .all()
    )


def adjust_stock(db: Session, medicine_id: int, quantity: int, operation: str) -> Tuple[Medicine, int]:
    """Add or remove stock by hand (deliveries, breakage). Returns (medicine, previous quantity)."""
    medicine = (
        db.query(Medicine)
        .filter(Medicine.id == medicine_id)
        .with_for_update()
        .first()
    )
    if not medicine:
        raise BusinessError.not_found("Medicine", reason=f"id={medicine_id}")

    previous = medicine.quantity
    medicine.quantity = apply_adjustment(previous, quantity, operation, "Insufficient stock available")
    db.commit()
    db.refresh(medicine)
    logger.info(f"Stock {operation} on medicine {medicine_id}: {previous} -> {medicine.quantity}")
    return medicine, previous
