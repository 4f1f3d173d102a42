"""Supplier directory."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pharmatrust.api.deps import get_db, get_current_user, require_roles
from pharmatrust.api.response import ok
from pharmatrust.core.audit import AuditLog
from pharmatrust.core.permissions import ADMIN_ONLY, CATALOG_WRITERS
from pharmatrust.models.user import User
from pharmatrust.schemas.supplier import SupplierCreate, SupplierResponse, SupplierUpdate
from pharmatrust.services import supplier_service

router = APIRouter()


def _wire(supplier) -> dict:
    return SupplierResponse.model_validate(supplier).to_wire()


@router.get("")
def list_suppliers(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    payment_terms: Optional[str] = Query(None, alias="paymentTerms"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows, pagination = supplier_service.list_suppliers(db, page, limit, search, payment_terms, is_active)
    return ok("Suppliers retrieved successfully", {
        "suppliers": [_wire(s) for s in rows],
        "pagination": pagination.to_wire(),
    })


@router.get("/stats")
def supplier_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return ok("Supplier statistics retrieved successfully", supplier_service.supplier_stats(db))


@router.get("/{supplier_id}")
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok("Supplier retrieved successfully", {"supplier": _wire(supplier_service.get_supplier(db, supplier_id))})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_supplier(
    data: SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*CATALOG_WRITERS)),
):
    supplier = supplier_service.create_supplier(db, data)
    AuditLog.log_action("create", "supplier", supplier.id, current_user)
    return ok("Supplier created successfully", {"supplier": _wire(supplier)}, status_code=status.HTTP_201_CREATED)


@router.put("/{supplier_id}/toggle-status")
def toggle_status(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*CATALOG_WRITERS)),
):
    supplier = supplier_service.toggle_supplier_status(db, supplier_id)
    state = "activated" if supplier.is_active else "deactivated"
    AuditLog.log_action("update", "supplier", supplier.id, current_user, changes={"isActive": supplier.is_active})
    return ok(f"Supplier {state} successfully", {"supplier": _wire(supplier)})


@router.put("/{supplier_id}")
def update_supplier(
    supplier_id: int,
    data: SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*CATALOG_WRITERS)),
):
    supplier = supplier_service.update_supplier(db, supplier_id, data)
    AuditLog.log_action(
        "update", "supplier", supplier.id, current_user,
        changes=data.model_dump(mode="json", by_alias=True, exclude_unset=True),
    )
    return ok("Supplier updated successfully", {"supplier": _wire(supplier)})


@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMIN_ONLY)),
):
    supplier_service.delete_supplier(db, supplier_id)
    AuditLog.log_action("delete", "supplier", supplier_id, current_user)
    return ok("Supplier deleted successfully")
