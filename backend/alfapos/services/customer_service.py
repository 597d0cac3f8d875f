# Overview: Service-layer operations for the customer directory.

from __future__ import annotations

from datetime import date

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer


def find_by_phone(phone_number: str | None) -> Customer | None:
    if not phone_number:
        return None
    return db.session.query(Customer).filter_by(phone_number=phone_number).first()


def create_customer(
    *,
    name: str,
    phone_number: str,
    address: str | None = None,
    date_of_birth: date | None = None,
    commit: bool = True,
) -> Customer:
    """
    Insert a new customer.

    With commit=False the row is only flushed, inside a SAVEPOINT, so a
    caller holding a larger transaction can recover from a duplicate phone
    number without losing its own work.
    """
    customer = Customer(
        name=name,
        phone_number=phone_number,
        address=address or None,
        date_of_birth=date_of_birth,
    )

    if commit:
        db.session.add(customer)
        db.session.commit()
        return customer

    with db.session.begin_nested():
        db.session.add(customer)
    return customer


def resolve_customer_id(
    *,
    phone_number: str | None,
    name: str | None,
    address: str | None = None,
    date_of_birth: date | None = None,
) -> int | None:
    """
    Find-or-create used while committing a sale.

    - no phone: the sale has no customer
    - known phone: reuse the existing customer
    - new phone with a name: insert a customer
    - new phone without a name: no customer
    """
    if not phone_number:
        return None

    existing = find_by_phone(phone_number)
    if existing is not None:
        return existing.id

    if not name:
        return None

    try:
        customer = create_customer(
            name=name,
            phone_number=phone_number,
            address=address,
            date_of_birth=date_of_birth,
            commit=False,
        )
    except IntegrityError:
        # Another sale registered this phone first
        existing = find_by_phone(phone_number)
        if existing is None:
            raise
        return existing.id

    return customer.id
