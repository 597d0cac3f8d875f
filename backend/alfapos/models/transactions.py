from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Transaction(db.Model):
    """
    Committed sale header. Immutable once written.

    invoice_number is human facing: INV-{branch_code}-{YYYYMMDD}-{seq}.
    business_date is the database server's calendar date at commit time;
    numbering and monthly reports key on it.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_branch_business_date", "branch_code", "business_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)

    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    branch_code = db.Column(db.String(16), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    total_amount = db.Column(db.Numeric(14, 2), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)
    amount_received = db.Column(db.Numeric(14, 2), nullable=True)
    change_amount = db.Column(db.Numeric(14, 2), nullable=True)
    reference_number = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    business_date = db.Column(db.Date, nullable=False)
    transaction_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    branch = db.relationship("Branch")
    customer = db.relationship("Customer", backref=db.backref("transactions", lazy=True))
    user = db.relationship("User")

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "transactionId": self.id,
            "invoiceNumber": self.invoice_number,
            "branchCode": self.branch_code,
            "userId": self.user_id,
            "customerId": self.customer_id,
            "totalAmount": float(self.total_amount),
            "paymentMethod": self.payment_method,
            "amountReceived": float(self.amount_received) if self.amount_received is not None else None,
            "changeAmount": float(self.change_amount) if self.change_amount is not None else None,
            "referenceNumber": self.reference_number,
            "notes": self.notes,
            "businessDate": self.business_date.isoformat(),
            "transactionDate": to_utc_z(self.transaction_date),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class TransactionItem(db.Model):
    """Line of a committed sale. product_name is a snapshot taken at commit."""
    __tablename__ = "transaction_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price_per_item = db.Column(db.Numeric(14, 2), nullable=False)
    subtotal = db.Column(db.Numeric(14, 2), nullable=False)

    transaction = db.relationship(
        "Transaction",
        backref=db.backref("items", lazy=True, order_by="TransactionItem.id"),
    )

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "pricePerItem": float(self.price_per_item),
            "subtotal": float(self.subtotal),
        }


class InvoiceSequence(db.Model):
    """
    Per-branch, per-day invoice counter.

    WHY: Counting existing rows and adding one races under concurrent
    commits. Incrementing this row takes a row lock that is held until the
    committing transaction ends.
    """
    __tablename__ = "invoice_sequences"
    __table_args__ = (
        db.UniqueConstraint("branch_code", "business_date", name="uq_invoice_sequences_branch_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    branch_code = db.Column(db.String(16), nullable=False)
    business_date = db.Column(db.Date, nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
