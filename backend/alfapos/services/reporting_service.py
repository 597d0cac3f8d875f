# Overview: Service-layer operations for reporting.

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..errors import ValidationError
from ..models import Transaction, TransactionItem
from .branch_service import resolve_branch

TOP_PRODUCTS_LIMIT = 5


def _month_range(month: int, year: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    if not 2000 <= year <= 9999:
        raise ValidationError("year is out of range")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _money(value) -> float:
    if value is None:
        return 0.0
    return float(Decimal(value).quantize(Decimal("0.01")))


def monthly_sales_report(*, branch_code: str, month: int, year: int) -> dict:
    """
    Sales summary and best sellers for one branch and calendar month.

    Months are taken from the transaction business_date, the same date that
    appears in the invoice number.
    """
    start, end = _month_range(month, year)
    branch = resolve_branch(branch_code)

    in_period = (
        Transaction.branch_id == branch.id,
        Transaction.business_date >= start,
        Transaction.business_date <= end,
    )

    summary = db.session.query(
        func.sum(Transaction.total_amount).label("total_revenue"),
        func.count(Transaction.id).label("total_transactions"),
        func.avg(Transaction.total_amount).label("average_transaction_value"),
    ).filter(*in_period).one()

    top = (
        db.session.query(
            TransactionItem.product_id,
            func.max(TransactionItem.product_name).label("product_name"),
            func.sum(TransactionItem.quantity).label("total_quantity_sold"),
        )
        .join(Transaction, TransactionItem.transaction_id == Transaction.id)
        .filter(*in_period)
        .group_by(TransactionItem.product_id)
        .order_by(func.sum(TransactionItem.quantity).desc(), TransactionItem.product_id.asc())
        .limit(TOP_PRODUCTS_LIMIT)
        .all()
    )

    return {
        "branch_code": branch.code,
        "month": month,
        "year": year,
        "summary": {
            "total_revenue": _money(summary.total_revenue),
            "total_transactions": int(summary.total_transactions or 0),
            "average_transaction_value": _money(summary.average_transaction_value),
        },
        "top_selling_products": [
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "total_quantity_sold": int(row.total_quantity_sold or 0),
            }
            for row in top
        ],
    }
