"""Medicine catalogue, stock alerts and manual stock adjustment."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pharmatrust.api.deps import get_db, get_current_user, require_roles
from pharmatrust.api.payload import parse_model, payload_with_file
from pharmatrust.api.response import ok
from pharmatrust.core.audit import AuditLog
from pharmatrust.core.permissions import ADMIN_ONLY, CATALOG_WRITERS
from pharmatrust.models.user import User
from pharmatrust.schemas.medicine import MedicineCreate, MedicineResponse, MedicineUpdate, StockAdjustment
from pharmatrust.services import medicine_service
from pharmatrust.services.adjustment import past_tense
from pharmatrust.services.file_storage import delete_upload, save_upload

router = APIRouter()


def _wire(medicine) -> dict:
    return MedicineResponse.model_validate(medicine).to_wire()


def _alert(message: str, medicines):
    return ok(message, {"count": len(medicines), "medicines": [_wire(m) for m in medicines]})


@router.get("")
def list_medicines(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    stock_status: Optional[str] = Query(None, alias="stockStatus"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Paginated catalogue.

    ``stockStatus=lowStock`` -> quantity <= minStockLevel
    ``stockStatus=outOfStock`` -> quantity == 0
    """
    rows, pagination = medicine_service.list_medicines(
        db, page, limit, search, category, stock_status, is_active
    )
    return ok("Medicines retrieved successfully", {
        "medicines": [_wire(m) for m in rows],
        "pagination": pagination.to_wire(),
    })


@router.get("/low-stock")
def low_stock(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _alert("Low stock medicines retrieved successfully", medicine_service.low_stock_medicines(db))


@router.get("/expired")
def expired(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _alert("Expired medicines retrieved successfully", medicine_service.expired_medicines(db))


@router.get("/expiring-soon")
def expiring_soon(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _alert(
        "Medicines expiring soon retrieved successfully",
        medicine_service.expiring_soon_medicines(db, days),
    )


@router.get("/{medicine_id}")
def get_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    medicine = medicine_service.get_medicine(db, medicine_id)
    return ok("Medicine retrieved successfully", {"medicine": _wire(medicine)})


@router.post("")
def create_medicine(
    form=Depends(payload_with_file("medicineImage")),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*CATALOG_WRITERS)),
):
    data, upload = form
    payload = parse_model(MedicineCreate, data)
    image_path = save_upload(upload, "medicineImage") if upload else None
    try:
        medicine = medicine_service.create_medicine(db, payload, image_path)
    except Exception:
        delete_upload(image_path)
        raise
    AuditLog.log_action("create", "medicine", medicine.id, current_user, changes={"quantity": medicine.quantity})
    return ok(
        "Medicine added successfully",
        {"medicine": _wire(medicine_service.get_medicine(db, medicine.id))},
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{medicine_id}/stock")
def adjust_stock(
    medicine_id: int,
    data: StockAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*CATALOG_WRITERS)),
):
    medicine, previous = medicine_service.adjust_stock(db, medicine_id, data.quantity, data.operation)
    AuditLog.log_action(
        "adjust", "medicine", medicine.id, current_user,
        changes={"operation": data.operation, "from": previous, "to": medicine.quantity},
    )
    return ok(f"Stock {past_tense(data.operation)} successfully", {
        "id": medicine.id,
        "name": medicine.name,
        "previousQuantity": previous,
        "newQuantity": medicine.quantity,
        "stockStatus": medicine.stock_status,
    })


@router.put("/{medicine_id}")
def update_medicine(
    medicine_id: int,
    form=Depends(payload_with_file("medicineImage")),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*CATALOG_WRITERS)),
):
    data, upload = form
    payload = parse_model(MedicineUpdate, data)
    previous_image = medicine_service.get_medicine(db, medicine_id).medicine_image
    image_path = save_upload(upload, "medicineImage") if upload else None
    try:
        medicine = medicine_service.update_medicine(db, medicine_id, payload, image_path)
    except Exception:
        delete_upload(image_path)
        raise
    if image_path:
        delete_upload(previous_image)
    AuditLog.log_action(
        "update", "medicine", medicine.id, current_user,
        changes=payload.model_dump(mode="json", by_alias=True, exclude_unset=True),
    )
    return ok("Medicine updated successfully", {"medicine": _wire(medicine)})


@router.delete("/{medicine_id}")
def delete_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMIN_ONLY)),
):
    image = medicine_service.get_medicine(db, medicine_id).medicine_image
    medicine_service.delete_medicine(db, medicine_id)
    delete_upload(image)
    AuditLog.log_action("delete", "medicine", medicine_id, current_user)
    return ok("Medicine deleted successfully")
