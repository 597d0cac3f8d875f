# Overview: Service-layer transaction commit; the atomic sale workflow.

"""
Sale commit workflow.

One call records one sale, all or nothing:

1. resolve the branch code
2. lock and check stock for every product in the cart
3. find or create the customer by phone number
4. allocate the invoice number for (branch, store-side today)
5. insert the transaction header
6. insert its items, snapshotting product names
7. decrement branch stock
8. commit

Input is validated before the database is touched. Any failure after that
rolls back every write made so far. Errors surface as ValidationError,
NotFoundError, InsufficientStockError or StorageError.

NOT IDEMPOTENT: committing the same cart twice records two sales, two
invoice numbers and two stock decrements. Clients guard against double
submission.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import InsufficientStockError, NotFoundError, StorageError, ValidationError
from ..models import Product, Transaction, TransactionItem
from ..time_utils import parse_birth_date, store_today
from ..validation import clean_str, parse_amount, parse_int, parse_optional_amount, parse_quantity, pick
from .branch_service import resolve_branch
from .concurrency import atomic
from .customer_service import resolve_customer_id
from .inventory_service import lock_stock
from .invoice_service import next_invoice_number


@dataclass(frozen=True)
class LineItem:
    product_id: int
    quantity: int
    price_per_item: Decimal
    subtotal: Decimal
    product_name: str | None = None


@dataclass(frozen=True)
class CustomerData:
    phone_number: str | None
    name: str | None = None
    address: str | None = None
    date_of_birth: date | None = None


@dataclass(frozen=True)
class CommitResult:
    transaction_id: int
    invoice_number: str

    def to_dict(self) -> dict:
        return {"transactionId": self.transaction_id, "invoiceNumber": self.invoice_number}


def _parse_item(raw: Any, index: int) -> LineItem:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"items[{index}] must be an object")

    product_id = pick(raw, "product_id", "productId")
    quantity = pick(raw, "quantity")
    price = pick(raw, "price_per_item", "pricePerItem")
    subtotal = pick(raw, "subtotal")
    if product_id is None or quantity is None or price is None or subtotal is None:
        raise ValidationError(
            f"items[{index}] requires product_id, quantity, price_per_item and subtotal"
        )

    return LineItem(
        product_id=parse_int(product_id, f"items[{index}].product_id"),
        quantity=parse_quantity(quantity, f"items[{index}].quantity"),
        price_per_item=parse_amount(price, f"items[{index}].price_per_item"),
        subtotal=parse_amount(subtotal, f"items[{index}].subtotal"),
        product_name=clean_str(pick(raw, "product_name", "productName")),
    )


def parse_customer_data(raw: Any) -> CustomerData | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise ValidationError("customer_data must be an object")
    return CustomerData(
        phone_number=clean_str(pick(raw, "phone_number", "phoneNumber"), max_length=32, field="phone_number"),
        name=clean_str(pick(raw, "name"), max_length=255, field="name"),
        address=clean_str(pick(raw, "address")),
        date_of_birth=parse_birth_date(pick(raw, "date_of_birth", "dateOfBirth")),
    )


def _validate(
    branch_code: Any,
    items: Any,
    total_amount: Any,
    payment_method: Any,
) -> tuple[str, list[LineItem], Decimal, str]:
    if not items or not isinstance(items, (list, tuple)):
        raise ValidationError("Transaction must contain at least one item")
    if total_amount is None or total_amount == "":
        raise ValidationError("total_amount is required")
    method = clean_str(payment_method, max_length=32, field="payment_method")
    if not method:
        raise ValidationError("payment_method is required")
    code = clean_str(branch_code, max_length=16, field="branch_code")
    if not code:
        raise ValidationError("branch_code is required")

    lines = [_parse_item(raw, i) for i, raw in enumerate(items)]
    total = parse_amount(total_amount, "total_amount")

    subtotal_sum = sum((line.subtotal for line in lines), Decimal("0.00"))
    if subtotal_sum != total:
        raise ValidationError(
            "total_amount does not match the sum of item subtotals",
            details={"total_amount": str(total), "items_subtotal": str(subtotal_sum)},
        )

    return code, lines, total, method


def _check_stock(branch_id: int, lines: Iterable[LineItem], products: dict[int, Product]) -> dict:
    requested: dict[int, int] = {}
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    inventory = lock_stock(branch_id, requested.keys())
    for product_id in sorted(requested):
        row = inventory.get(product_id)
        available = row.quantity if row is not None else 0
        if available < requested[product_id]:
            raise InsufficientStockError(
                product_id=product_id,
                product_name=products[product_id].name,
                requested_quantity=requested[product_id],
                available_quantity=available,
            )
    return {product_id: (inventory[product_id], qty) for product_id, qty in requested.items()}


def _load_products(lines: Iterable[LineItem]) -> dict[int, Product]:
    ids = {line.product_id for line in lines}
    products = {
        product.id: product
        for product in db.session.query(Product).filter(Product.id.in_(ids)).all()
    }
    missing = sorted(ids - products.keys())
    if missing:
        raise NotFoundError("Product not found", details={"product_ids": missing})
    return products


def commit_transaction(
    *,
    branch_code: str,
    user_id: int | None,
    items: list,
    total_amount,
    payment_method: str,
    amount_received=None,
    change_amount=None,
    reference_number: str | None = None,
    notes: str | None = None,
    customer_data=None,
) -> CommitResult:
    """Record a sale atomically. See the module docstring for the steps."""
    code, lines, total, method = _validate(branch_code, items, total_amount, payment_method)
    received = parse_optional_amount(amount_received, "amount_received")
    change = parse_optional_amount(change_amount, "change_amount")
    customer = parse_customer_data(customer_data)
    reference = clean_str(reference_number, max_length=128, field="reference_number")
    note = clean_str(notes)

    try:
        with atomic():
            branch = resolve_branch(code)
            products = _load_products(lines)
            stock = _check_stock(branch.id, lines, products)

            customer_id = None
            if customer is not None:
                customer_id = resolve_customer_id(
                    phone_number=customer.phone_number,
                    name=customer.name,
                    address=customer.address,
                    date_of_birth=customer.date_of_birth,
                )

            business_date = store_today()
            invoice_number = next_invoice_number(branch_code=branch.code, business_date=business_date)

            header = Transaction(
                invoice_number=invoice_number,
                branch_id=branch.id,
                branch_code=branch.code,
                user_id=user_id,
                customer_id=customer_id,
                total_amount=total,
                payment_method=method,
                amount_received=received,
                change_amount=change,
                reference_number=reference,
                notes=note,
                business_date=business_date,
            )
            db.session.add(header)
            db.session.flush()

            db.session.add_all([
                TransactionItem(
                    transaction_id=header.id,
                    product_id=line.product_id,
                    product_name=products[line.product_id].name or line.product_name or "",
                    quantity=line.quantity,
                    price_per_item=line.price_per_item,
                    subtotal=line.subtotal,
                )
                for line in lines
            ])

            for row, quantity in stock.values():
                row.quantity = row.quantity - quantity

            db.session.flush()
            result = CommitResult(transaction_id=header.id, invoice_number=invoice_number)

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to record transaction for branch %s", code)
        raise StorageError("Failed to save transaction") from exc

    current_app.logger.info(
        "Recorded transaction %s (%s) for branch %s",
        result.transaction_id, result.invoice_number, code,
    )
    return result
