# Overview: Service-layer operations for per-branch stock.

"""
Branch stock rules:
- BranchInventory holds one mutable quantity per (product, branch).
- A missing row means zero stock.
- Stock intake (add_stock) upserts the row and stamps last_restock_date.
- Sales decrement only rows read under lock_stock() in the same transaction.
"""

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Branch, BranchInventory, Product
from ..time_utils import utcnow
from ..validation import MAX_INT, parse_int
from .concurrency import lock_for_update, run_with_retry


def lock_stock(branch_id: int, product_ids) -> dict[int, BranchInventory]:
    """
    Read inventory rows for the given products with a row lock held until
    the enclosing transaction ends.

    Rows are locked in product-id order so two carts touching the same
    products cannot deadlock. Products without a row are absent from the
    result.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    rows = lock_for_update(
        db.session.query(BranchInventory)
        .filter(
            BranchInventory.branch_id == branch_id,
            BranchInventory.product_id.in_(ids),
        )
        .order_by(BranchInventory.product_id.asc())
    ).all()
    return {row.product_id: row for row in rows}


def set_initial_stock(product_id: int, branch_id: int, quantity: int) -> BranchInventory:
    """Create the inventory row for a freshly created product (no commit)."""
    row = BranchInventory(
        product_id=product_id,
        branch_id=branch_id,
        quantity=quantity,
        last_restock_date=utcnow(),
    )
    db.session.add(row)
    return row


def add_stock(product_id: int, branch_id: int, quantity: int) -> BranchInventory:
    """Increase stock at a branch, creating the inventory row on first intake."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 0 < quantity <= MAX_INT:
        raise ValidationError("quantity must be a positive integer")
    product_id = parse_int(product_id, "product_id")
    branch_id = parse_int(branch_id, "branch_id")

    def _op():
        if not db.session.query(Product).filter_by(id=product_id).first():
            raise NotFoundError("Product not found", details={"product_id": product_id})
        if not db.session.query(Branch).filter_by(id=branch_id).first():
            raise NotFoundError("Branch not found", details={"branch_id": branch_id})

        row = lock_for_update(
            db.session.query(BranchInventory).filter_by(product_id=product_id, branch_id=branch_id)
        ).first()
        if row is None:
            row = BranchInventory(product_id=product_id, branch_id=branch_id, quantity=0)
            db.session.add(row)

        row.quantity = (row.quantity or 0) + quantity
        row.last_restock_date = utcnow()
        db.session.commit()
        return row

    return run_with_retry(_op)
