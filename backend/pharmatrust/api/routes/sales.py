"""Point of sale: checkout, sale history, payment status, analytics and invoice PDF."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from pharmatrust.api.deps import get_db, get_current_user, require_roles
from pharmatrust.api.payload import parse_model, payload_with_file
from pharmatrust.api.response import ok
from pharmatrust.core.audit import AuditLog
from pharmatrust.core.permissions import CATALOG_WRITERS
from pharmatrust.models.user import User
from pharmatrust.schemas.sale import SaleCreate, SaleResponse, SaleStatusUpdate
from pharmatrust.services import analytics_service, sale_service
from pharmatrust.services.file_storage import delete_upload, save_upload
from pharmatrust.services.pdf_service import generate_sale_invoice_pdf

router = APIRouter()


def _wire(sale) -> dict:
    return SaleResponse.model_validate(sale).to_wire()


@router.get("")
def list_sales(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    payment_method: Optional[str] = Query(None, alias="paymentMethod"),
    payment_status: Optional[str] = Query(None, alias="paymentStatus"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows, pagination = sale_service.list_sales(
        db, page, limit, search, payment_method, payment_status, start_date, end_date
    )
    return ok("Sales retrieved successfully", {
        "sales": [_wire(s) for s in rows],
        "pagination": pagination.to_wire(),
    })


@router.get("/analytics")
def sales_analytics(
    period: str = Query("month"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Totals, payment mix, top medicines and daily trend for day/week/month/year."""
    return ok("Sales analytics retrieved successfully", analytics_service.sales_analytics(db, period))


@router.get("/{sale_id}")
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok("Sale retrieved successfully", {"sale": _wire(sale_service.get_sale(db, sale_id))})


@router.get("/{sale_id}/invoice.pdf")
def download_invoice(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Printable tax invoice."""
    invoice_number = sale_service.get_sale(db, sale_id).invoice_number
    pdf = generate_sale_invoice_pdf(db, sale_id)
    return StreamingResponse(
        iter([pdf.getvalue()]),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={invoice_number}.pdf"},
    )


@router.post("")
def create_sale(
    form=Depends(payload_with_file("prescriptionImage")),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Checkout. Body is JSON, or multipart with ``items`` as a JSON string and an
    optional ``prescriptionImage``.

    Stock, the sale record and customer loyalty change together or not at all.
    """
    data, upload = form
    payload = parse_model(SaleCreate, data)

    # reject before touching disk
    sale_service.validate_sale(db, payload).raise_for_issues()

    prescription = save_upload(upload, "prescriptionImage") if upload else None
    try:
        sale, medicine_updates = sale_service.create_sale(db, payload, current_user, prescription)
    except Exception:
        delete_upload(prescription)
        raise

    AuditLog.log_action(
        "create", "sale", sale.id, current_user,
        changes={"invoice": sale.invoice_number, "total": str(sale.total_amount)},
    )
    return ok(
        "Sale completed successfully",
        {
            "sale": _wire(sale),
            "medicineUpdates": [u.to_wire() for u in medicine_updates],
        },
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{sale_id}/status")
def update_sale_status(
    sale_id: int,
    data: SaleStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*CATALOG_WRITERS)),
):
    sale = sale_service.update_sale_status(db, sale_id, data.payment_status)
    AuditLog.log_action("update", "sale", sale.id, current_user, changes={"paymentStatus": data.payment_status})
    return ok("Sale status updated successfully", {"sale": _wire(sale)})
