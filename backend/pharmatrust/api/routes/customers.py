"""Customer records, health notes and loyalty points."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pharmatrust.api.deps import get_db, get_current_user, require_roles
from pharmatrust.api.response import ok
from pharmatrust.core.audit import AuditLog
from pharmatrust.core.permissions import ADMIN_ONLY
from pharmatrust.models.user import User
from pharmatrust.schemas.customer import (
    AllergyEntry,
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
    LoyaltyAdjustment,
    MedicalHistoryEntry,
)
from pharmatrust.services import customer_service
from pharmatrust.services.adjustment import past_tense

router = APIRouter()


def _wire(customer) -> dict:
    return CustomerResponse.model_validate(customer).to_wire()


@router.get("")
def list_customers(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    customer_type: Optional[str] = Query(None, alias="customerType"),
    gender: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows, pagination = customer_service.list_customers(
        db, page, limit, search, customer_type, gender, is_active
    )
    return ok("Customers retrieved successfully", {
        "customers": [_wire(c) for c in rows],
        "pagination": pagination.to_wire(),
    })


@router.get("/stats")
def customer_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return ok("Customer statistics retrieved successfully", customer_service.customer_stats(db))


@router.get("/{customer_id}")
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok("Customer retrieved successfully", {"customer": _wire(customer_service.get_customer(db, customer_id))})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = customer_service.create_customer(db, data)
    AuditLog.log_action("create", "customer", customer.id, current_user)
    return ok("Customer created successfully", {"customer": _wire(customer)}, status_code=status.HTTP_201_CREATED)


@router.post("/{customer_id}/medical-history")
def add_medical_history(
    customer_id: int,
    data: MedicalHistoryEntry,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = customer_service.add_medical_history(db, customer_id, data)
    return ok("Medical history added successfully", {"customer": _wire(customer)})


@router.post("/{customer_id}/allergies")
def add_allergy(
    customer_id: int,
    data: AllergyEntry,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = customer_service.add_allergy(db, customer_id, data)
    return ok("Allergy information added successfully", {"customer": _wire(customer)})


@router.put("/{customer_id}/loyalty-points")
def adjust_loyalty_points(
    customer_id: int,
    data: LoyaltyAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer, previous = customer_service.adjust_loyalty_points(db, customer_id, data.points, data.operation)
    AuditLog.log_action(
        "adjust", "customer", customer.id, current_user,
        changes={"operation": data.operation, "from": previous, "to": customer.loyalty_points},
    )
    return ok(f"Loyalty points {past_tense(data.operation)} successfully", {
        "id": customer.id,
        "name": customer.name,
        "previousPoints": previous,
        "newPoints": customer.loyalty_points,
        "pointsChanged": data.points,
    })


@router.put("/{customer_id}")
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = customer_service.update_customer(db, customer_id, data)
    return ok("Customer updated successfully", {"customer": _wire(customer)})


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMIN_ONLY)),
):
    customer_service.delete_customer(db, customer_id)
    AuditLog.log_action("delete", "customer", customer_id, current_user)
    return ok("Customer deleted successfully")
