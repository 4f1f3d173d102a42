"""
Point-of-sale workflow.

create_sale runs in two phases:

1. ``validate_sale`` reads the customer and medicines and returns a
   ``SaleValidation``: either a list of issues or a fully priced draft.
   Nothing is written in this phase.
2. ``_record_sale`` writes the sale, decrements stock with a guarded
   ``quantity >= n`` update and accrues customer totals, all inside one
   transaction. If any step fails the whole unit is rolled back: no sale,
   no stock change, no loyalty change.

Invoice numbers continue the numeric suffix of the last inserted sale
(INV-000001, INV-000002, ...). The column is unique; a collision with a
concurrent writer rolls back and retries with the next number.
"""
import logging
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from pharmatrust.core.config import settings
from pharmatrust.core.exceptions import BusinessError, PharmacyError
from pharmatrust.models.customer import Customer
from pharmatrust.models.medicine import Medicine
from pharmatrust.models.sale import Sale, SaleItem
from pharmatrust.models.user import User
from pharmatrust.schemas.common import Pagination
from pharmatrust.schemas.sale import MedicineUpdateRecord, SaleCreate
from pharmatrust.services.listing import paginate, search_filter

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
TAX_RATE = Decimal(settings.TAX_RATE)
POINT_VALUE = Decimal(settings.LOYALTY_POINT_VALUE)

_INVOICE_SUFFIX = re.compile(r"(\d+)$")


def money(value) -> Decimal:
    """Round to paise, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class SaleLine:
    medicine_id: int
    medicine_name: str
    quantity: int
    unit_price: Decimal
    discount: Decimal

    @property
    def gross(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def total_price(self) -> Decimal:
        return money(self.gross - self.discount)


@dataclass
class SaleTotals:
    subtotal: Decimal
    total_discount: Decimal
    tax: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    change_amount: Decimal
    payment_status: str


@dataclass
class SaleValidation:
    """Outcome of validate_sale. ``ok`` drafts carry everything needed to write."""
    issues: List[str] = field(default_factory=list)
    status_code: int = 400
    customer: Optional[Customer] = None
    lines: List[SaleLine] = field(default_factory=list)
    totals: Optional[SaleTotals] = None

    @property
    def ok(self) -> bool:
        return not self.issues

    def fail(self, status_code: int, *issues: str) -> "SaleValidation":
        self.status_code = status_code
        self.issues.extend(issues)
        return self

    def raise_for_issues(self) -> None:
        if self.ok:
            return
        message = "; ".join(self.issues)
        if self.status_code == 404:
            raise BusinessError.not_found(message.replace(" not found", ""))
        raise BusinessError.rule_violation(message, errors=list(self.issues))


def compute_totals(lines: List[SaleLine], paid_amount: Decimal) -> SaleTotals:
    """
    subtotal = sum(quantity * unitPrice)
    tax      = subtotal * TAX_RATE
    total    = subtotal - totalDiscount + tax
    change   = max(0, paid - total)
    """
    subtotal = sum((line.gross for line in lines), Decimal("0"))
    total_discount = sum((line.discount for line in lines), Decimal("0"))
    tax = subtotal * TAX_RATE
    total_amount = money(subtotal - total_discount + tax)
    paid = money(paid_amount)

    return SaleTotals(
        subtotal=money(subtotal),
        total_discount=money(total_discount),
        tax=money(tax),
        total_amount=total_amount,
        paid_amount=paid,
        change_amount=max(Decimal("0.00"), paid - total_amount),
        payment_status="Paid" if paid >= total_amount else "Partial",
    )


def loyalty_points_for(total_amount: Decimal) -> int:
    """One point per LOYALTY_POINT_VALUE rupees, rounded down."""
    return int(total_amount // POINT_VALUE)


def validate_sale(db: Session, data: SaleCreate) -> SaleValidation:
    """
    Check a sale request in order and stop at the first failing stage:
    customer -> items present -> item values -> medicines and stock -> payment.
    """
    result = SaleValidation()

    customer = db.query(Customer).filter(Customer.id == data.customer).first()
    if not customer:
        return result.fail(404, "Customer not found")
    result.customer = customer

    if not data.items:
        return result.fail(400, "At least one item is required")

    item_issues = []
    for pos, item in enumerate(data.items, start=1):
        if item.quantity <= 0:
            item_issues.append(f"Valid quantity is required for item {pos}")
        if item.unit_price <= 0:
            item_issues.append(f"Valid unit price is required for item {pos}")
        if item.discount < 0:
            item_issues.append(f"Discount cannot be negative for item {pos}")
        elif item.quantity > 0 and item.unit_price > 0 and item.discount > item.unit_price * item.quantity:
            item_issues.append(f"Discount exceeds line amount for item {pos}")
    if item_issues:
        return result.fail(400, *item_issues)

    ids = list(OrderedDict.fromkeys(item.medicine for item in data.items))
    medicines: Dict[int, Medicine] = {
        m.id: m for m in db.query(Medicine).filter(Medicine.id.in_(ids)).all()
    }
    for medicine_id in ids:
        if medicine_id not in medicines:
            return result.fail(404, f"Medicine with ID {medicine_id} not found")

    requested: Dict[int, int] = OrderedDict()
    for item in data.items:
        requested[item.medicine] = requested.get(item.medicine, 0) + item.quantity

    stock_issues = []
    for medicine_id, quantity in requested.items():
        medicine = medicines[medicine_id]
        if medicine.quantity < quantity:
            stock_issues.append(
                f"Insufficient stock for {medicine.name}. "
                f"Available: {medicine.quantity}, Requested: {quantity}"
            )
    if stock_issues:
        return result.fail(400, *stock_issues)

    result.lines = [
        SaleLine(
            medicine_id=item.medicine,
            medicine_name=medicines[item.medicine].name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            discount=item.discount,
        )
        for item in data.items
    ]
    result.totals = compute_totals(result.lines, data.paid_amount)

    if result.totals.paid_amount < result.totals.total_amount:
        return result.fail(
            400,
            f"Insufficient amount: paid {result.totals.paid_amount:.2f} "
            f"is less than total amount {result.totals.total_amount:.2f}",
        )

    return result


def parse_invoice_suffix(invoice_number: Optional[str]) -> int:
    if not invoice_number:
        return 0
    match = _INVOICE_SUFFIX.search(invoice_number)
    return int(match.group(1)) if match else 0


def format_invoice_number(sequence: int) -> str:
    return f"{settings.INVOICE_PREFIX}{sequence:0{settings.INVOICE_DIGITS}d}"


def next_invoice_number(db: Session) -> str:
    last = db.query(Sale.invoice_number).order_by(Sale.id.desc()).first()
    return format_invoice_number(parse_invoice_suffix(last[0] if last else None) + 1)


def _is_invoice_collision(exc: IntegrityError) -> bool:
    return "invoice_number" in str(exc.orig)


def _record_sale(
    db: Session,
    data: SaleCreate,
    draft: SaleValidation,
    sold_by: User,
    prescription_image: Optional[str],
) -> Tuple[Sale, List[MedicineUpdateRecord]]:
    """All writes for one sale. Caller owns commit/rollback."""
    totals = draft.totals
    sale = Sale(
        invoice_number=next_invoice_number(db),
        customer_id=draft.customer.id,
        subtotal=totals.subtotal,
        total_discount=totals.total_discount,
        tax=totals.tax,
        total_amount=totals.total_amount,
        payment_method=data.payment_method,
        payment_status=totals.payment_status,
        paid_amount=totals.paid_amount,
        change_amount=totals.change_amount,
        doctor_name=data.doctor_name or "",
        notes=data.notes or "",
        sold_by_id=sold_by.id,
        prescription_image=prescription_image,
        sale_date=datetime.now(),
        items=[
            SaleItem(
                medicine_id=line.medicine_id,
                medicine_name=line.medicine_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount=line.discount,
                total_price=line.total_price,
            )
            for line in draft.lines
        ],
    )
    db.add(sale)
    db.flush()

    reduced: Dict[int, int] = OrderedDict()
    names: Dict[int, str] = {}
    for line in draft.lines:
        reduced[line.medicine_id] = reduced.get(line.medicine_id, 0) + line.quantity
        names[line.medicine_id] = line.medicine_name

    medicine_updates = []
    for medicine_id, quantity in reduced.items():
        result = db.execute(
            update(Medicine)
            .where(Medicine.id == medicine_id, Medicine.quantity >= quantity)
            .values(quantity=Medicine.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # stock was taken by another sale after validation
            raise BusinessError.rule_violation(
                f"Insufficient stock for {names[medicine_id]}. Stock changed while the sale was being recorded"
            )
        new_quantity = db.query(Medicine.quantity).filter(Medicine.id == medicine_id).scalar()
        medicine_updates.append(MedicineUpdateRecord(
            medicine_id=medicine_id,
            quantity_reduced=quantity,
            new_quantity=new_quantity,
        ))

    db.execute(
        update(Customer)
        .where(Customer.id == draft.customer.id)
        .values(
            total_purchases=Customer.total_purchases + totals.total_amount,
            loyalty_points=Customer.loyalty_points + loyalty_points_for(totals.total_amount),
        )
        .execution_options(synchronize_session=False)
    )
    return sale, medicine_updates


def create_sale(
    db: Session,
    data: SaleCreate,
    sold_by: User,
    prescription_image: Optional[str] = None,
) -> Tuple[Sale, List[MedicineUpdateRecord]]:
    """Validate then record a sale atomically. Returns (sale, medicine updates)."""
    draft = validate_sale(db, data)
    draft.raise_for_issues()

    attempts = settings.INVOICE_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            sale, medicine_updates = _record_sale(db, data, draft, sold_by, prescription_image)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not _is_invoice_collision(exc) or attempt == attempts:
                logger.error(f"Sale rejected by database constraint: {exc.orig}")
                raise BusinessError.conflict("Could not record sale, please retry") from exc
            logger.warning(f"Invoice number collision, retrying (attempt {attempt}/{attempts})")
            continue
        except PharmacyError:
            db.rollback()
            raise
        except Exception:
            db.rollback()
            logger.error("Sale transaction failed, rolled back", exc_info=True)
            raise
        break

    logger.info(
        f"Sale {sale.invoice_number} recorded: customer={draft.customer.id} "
        f"total={draft.totals.total_amount} items={len(draft.lines)}"
    )
    return get_sale(db, sale.id), medicine_updates


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = (
        db.query(Sale)
        .options(
            joinedload(Sale.items),
            joinedload(Sale.customer),
            joinedload(Sale.sold_by),
        )
        .filter(Sale.id == sale_id)
        .first()
    )
    if not sale:
        raise BusinessError.not_found("Sale", reason=f"id={sale_id}")
    return sale


def list_sales(
    db: Session,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    payment_method: Optional[str] = None,
    payment_status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Tuple[List[Sale], Pagination]:
    q = db.query(Sale).options(
        joinedload(Sale.items),
        joinedload(Sale.customer),
        joinedload(Sale.sold_by),
    )

    if start_date:
        q = q.filter(Sale.sale_date >= datetime.combine(start_date, time.min))
    if end_date:
        q = q.filter(Sale.sale_date <= datetime.combine(end_date, time.max))
    if payment_method:
        q = q.filter(Sale.payment_method == payment_method)
    if payment_status:
        q = q.filter(Sale.payment_status == payment_status)

    customer_match = search_filter(search, Customer.name, Customer.phone)
    if customer_match is not None:
        customer_ids = select(Customer.id).where(customer_match)
        q = q.filter(or_(
            search_filter(search, Sale.invoice_number),
            Sale.customer_id.in_(customer_ids),
        ))

    return paginate(q, page, limit, Sale.created_at.desc(), Sale.id.desc())


def update_sale_status(db: Session, sale_id: int, payment_status: str) -> Sale:
    sale = get_sale(db, sale_id)
    previous = sale.payment_status
    sale.payment_status = payment_status
    db.commit()
    logger.info(f"Sale {sale.invoice_number} status {previous} -> {payment_status}")
    return get_sale(db, sale_id)
