from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class ProductCategory(db.Model):
    __tablename__ = "product_categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"category_id": self.id, "category_name": self.name}


class Product(db.Model):
    """
    Catalog entry (frames, lenses, contact lenses, accessories).

    Stock is not stored here; see BranchInventory. Sales never mutate a
    product, they snapshot its name onto the transaction item.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    brand_name = db.Column(db.String(120), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)

    purchase_price = db.Column(db.Numeric(14, 2), nullable=True)
    selling_price = db.Column(db.Numeric(14, 2), nullable=False)
    unit = db.Column(db.String(16), nullable=False, default="pcs")

    # Frames and lenses carrying a serial/batch number
    track_serial_batch = db.Column(db.Boolean, nullable=False, default=False)
    image_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("ProductCategory", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.product_code!r} name={self.name!r}>"

    def to_dict(self, stock: int | None = None) -> dict:
        data = {
            "id": self.id,
            "product_code": self.product_code,
            "name": self.name,
            "category": self.category.name if self.category else "Lainnya",
            "brand": self.brand_name,
            "description": self.description,
            "price": float(self.selling_price),
            "purchase_price": float(self.purchase_price) if self.purchase_price is not None else None,
            "unit": self.unit,
            "track_serial_batch": bool(self.track_serial_batch),
            "image_url": self.image_url,
        }
        if stock is not None:
            data["stock"] = int(stock)
        return data


class BranchInventory(db.Model):
    """
    On-hand quantity of one product at one branch.

    quantity never goes negative. The committer checks this under
    a row lock; the check constraint is the last line of defence.
    """
    __tablename__ = "branch_inventory"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_branch_inventory_quantity_non_negative"),
    )

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), primary_key=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    last_restock_date = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product", backref=db.backref("inventory", lazy=True))
    branch = db.relationship("Branch", backref=db.backref("inventory", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "branch_id": self.branch_id,
            "quantity": self.quantity,
            "last_restock_date": to_utc_z(self.last_restock_date),
        }
