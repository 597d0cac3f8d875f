from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Branch(db.Model):
    """
    Physical retail location, identified by a short code (e.g. "TBB").

    Immutable reference data: transactions store the code alongside the id
    so receipts keep printing the code the sale was made under.
    """
    __tablename__ = "branches"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Branch id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "branch_id": self.id,
            "branch_code": self.code,
            "branch_name": self.name,
            "created_at": to_utc_z(self.created_at),
        }
