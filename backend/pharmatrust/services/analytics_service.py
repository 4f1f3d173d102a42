"""
Sales analytics for dashboard charts.

Provides, for a day/week/month/year window:
- Overview totals (sales count, revenue, tax, discount)
- Payment method distribution
- Top-selling medicines by quantity
- Daily sales trend
"""
import calendar
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from pharmatrust.core.exceptions import BusinessError
from pharmatrust.models.medicine import Medicine
from pharmatrust.models.sale import Sale, SaleItem

PERIODS = ("day", "week", "month", "year")
TOP_MEDICINES = 10


def _money(value) -> float:
    return float(round(Decimal(value or 0), 2))


def date_range(period: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Inclusive [start, end] for the period containing ``now``."""
    now = now or datetime.now()
    today = now.date()

    if period == "day":
        return datetime.combine(today, time.min), datetime.combine(today, time.max)
    if period == "week":
        return now - timedelta(days=7), now
    if period == "month":
        last_day = calendar.monthrange(today.year, today.month)[1]
        return (
            datetime.combine(today.replace(day=1), time.min),
            datetime.combine(today.replace(day=last_day), time.max),
        )
    if period == "year":
        return (
            datetime.combine(today.replace(month=1, day=1), time.min),
            datetime.combine(today.replace(month=12, day=31), time.max),
        )
    raise BusinessError.bad_request(f"Invalid period. Use one of: {', '.join(PERIODS)}")


def sales_analytics(db: Session, period: str = "month", now: Optional[datetime] = None) -> dict:
    start, end = date_range(period, now)
    in_range = (Sale.sale_date >= start, Sale.sale_date <= end)

    overview = db.query(
        func.count(Sale.id),
        func.sum(Sale.total_amount),
        func.sum(Sale.tax),
        func.sum(Sale.total_discount),
    ).filter(*in_range).one()

    methods = (
        db.query(
            Sale.payment_method,
            func.count(Sale.id),
            func.sum(Sale.total_amount),
        )
        .filter(*in_range)
        .group_by(Sale.payment_method)
        .order_by(func.count(Sale.id).desc())
        .all()
    )

    total_quantity = func.sum(SaleItem.quantity).label("total_quantity")
    top = (
        db.query(
            SaleItem.medicine_id,
            Medicine.name,
            Medicine.generic_name,
            total_quantity,
            func.sum(SaleItem.total_price),
        )
        .join(Sale, SaleItem.sale_id == Sale.id)
        # lines of deleted medicines have no id left to rank under
        .join(Medicine, SaleItem.medicine_id == Medicine.id)
        .filter(*in_range)
        .group_by(SaleItem.medicine_id, Medicine.name, Medicine.generic_name)
        .order_by(total_quantity.desc())
        .limit(TOP_MEDICINES)
        .all()
    )

    sale_day = func.date(Sale.sale_date)
    daily = (
        db.query(sale_day, func.count(Sale.id), func.sum(Sale.total_amount))
        .filter(*in_range)
        .group_by(sale_day)
        .order_by(sale_day)
        .all()
    )

    count, revenue, tax, discount = overview
    return {
        "period": period,
        "dateRange": {"startDate": start.isoformat(), "endDate": end.isoformat()},
        "overview": {
            "totalSales": count or 0,
            "totalRevenue": _money(revenue),
            "totalTax": _money(tax),
            "totalDiscount": _money(discount),
        },
        "paymentMethodDistribution": [
            {"method": method, "count": n, "amount": _money(amount)}
            for method, n, amount in methods
        ],
        "topSellingMedicines": [
            {
                "medicineId": medicine_id,
                "medicineName": name,
                "genericName": generic,
                "totalQuantity": int(quantity or 0),
                "totalRevenue": _money(amount),
            }
            for medicine_id, name, generic, quantity, amount in top
        ],
        "dailyTrend": [
            {"date": str(day), "totalSales": n, "totalRevenue": _money(amount)}
            for day, n, amount in daily
        ],
    }
