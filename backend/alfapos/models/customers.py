from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data, looked up by phone number at the counter.

    Created lazily by the transaction committer the first time a sale
    carries a new phone number together with a name.
    """
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(32), nullable=False, unique=True, index=True)
    address = db.Column(db.Text, nullable=True)
    date_of_birth = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        # Shape consumed by the mobile client
        return {
            "id": str(self.id),
            "name": self.name,
            "phoneNumber": self.phone_number,
            "address": self.address,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "createdAt": to_utc_z(self.created_at),
        }
