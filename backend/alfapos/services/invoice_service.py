# Overview: Service-layer allocation of daily, per-branch invoice numbers.

from __future__ import annotations

from datetime import date

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import InvoiceSequence, Transaction


def format_invoice_number(branch_code: str, business_date: date, sequence: int) -> str:
    return f"INV-{branch_code}-{business_date:%Y%m%d}-{sequence:03d}"


def count_transactions(branch_code: str, business_date: date) -> int:
    return int(
        db.session.query(func.count(Transaction.id))
        .filter(
            Transaction.branch_code == branch_code,
            Transaction.business_date == business_date,
        )
        .scalar() or 0
    )


def _current_counter(branch_code: str, business_date: date) -> int:
    return (
        db.session.query(InvoiceSequence.next_number)
        .filter_by(branch_code=branch_code, business_date=business_date)
        .scalar()
    )


def next_invoice_number(*, branch_code: str, business_date: date) -> str:
    """
    Allocate the next invoice number for a branch and business day.

    Must run inside the caller's transaction: the counter row stays locked
    until that transaction commits or rolls back, so concurrent sales for
    the same branch and day are numbered one after the other.

    The first sale of a day seeds the counter from the number of
    transactions already recorded for that day (count + 1). If another
    transaction seeds it at the same moment, the unique key rejects our
    insert inside a SAVEPOINT and we fall back to incrementing theirs.
    """
    bump = (
        update(InvoiceSequence)
        .where(
            InvoiceSequence.branch_code == branch_code,
            InvoiceSequence.business_date == business_date,
        )
        .values(next_number=InvoiceSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(bump)
    if result.rowcount:
        sequence = _current_counter(branch_code, business_date) - 1
        return format_invoice_number(branch_code, business_date, sequence)

    sequence = count_transactions(branch_code, business_date) + 1
    try:
        with db.session.begin_nested():
            db.session.add(InvoiceSequence(
                branch_code=branch_code,
                business_date=business_date,
                next_number=sequence + 1,
            ))
    except IntegrityError:
        result = db.session.execute(bump)
        if not result.rowcount:
            raise
        sequence = _current_counter(branch_code, business_date) - 1

    return format_invoice_number(branch_code, business_date, sequence)
