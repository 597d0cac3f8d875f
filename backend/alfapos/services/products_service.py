# Overview: Service-layer operations for the product catalog.

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import and_, func

from ..extensions import db
from ..errors import ConflictError, ValidationError
from ..models import Branch, BranchInventory, Product, ProductCategory
from .branch_service import resolve_branch
from .concurrency import atomic
from .inventory_service import set_initial_stock
from ..validation import parse_amount, parse_quantity


def list_products(branch_code: str) -> list[dict]:
    """
    All products with their stock at one branch.

    Stock is 0 for products never stocked there, and for an unknown branch
    code (matching how the counter app treats an empty shelf).
    """
    branch_id = None
    branch = db.session.query(Branch).filter_by(code=branch_code).first()
    if branch is not None:
        branch_id = branch.id

    rows = (
        db.session.query(Product, func.coalesce(BranchInventory.quantity, 0))
        .outerjoin(
            BranchInventory,
            and_(
                BranchInventory.product_id == Product.id,
                BranchInventory.branch_id == branch_id,
            ),
        )
        .order_by(Product.name.asc())
        .all()
    )
    return [product.to_dict(stock=stock) for product, stock in rows]


def _get_or_create_category(name: str | None) -> ProductCategory | None:
    if not name:
        return None
    category = db.session.query(ProductCategory).filter_by(name=name).first()
    if category is None:
        category = ProductCategory(name=name)
        db.session.add(category)
        db.session.flush()
    return category


def create_product(
    *,
    name: str,
    product_code: str,
    price,
    category: str | None = None,
    brand: str | None = None,
    purchase_price=None,
    description: str | None = None,
    track_serial_batch: bool = False,
    stock=None,
    branch_code: str | None = None,
) -> Product:
    """
    Create a product and, when an initial stock is given, its inventory row
    at branch_code. Both writes commit together.
    """
    if not name or not product_code or price in (None, ""):
        raise ValidationError("name, product_code and price are required")

    selling_price = parse_amount(price, "price")
    if selling_price <= Decimal("0"):
        raise ValidationError("price must be greater than zero")
    cost = parse_amount(purchase_price, "purchase_price") if purchase_price not in (None, "") else None
    initial_stock = parse_quantity(stock, "stock", allow_zero=True) if stock not in (None, "") else 0

    with atomic():
        if db.session.query(Product).filter_by(product_code=product_code).first():
            raise ConflictError(f"Product code {product_code} already exists")

        branch = resolve_branch(branch_code) if initial_stock > 0 else None

        product = Product(
            name=name.strip(),
            product_code=product_code.strip(),
            brand_name=brand or None,
            category=_get_or_create_category(category),
            description=description or None,
            purchase_price=cost,
            selling_price=selling_price,
            track_serial_batch=bool(track_serial_batch),
        )
        db.session.add(product)
        db.session.flush()

        if branch is not None:
            set_initial_stock(product.id, branch.id, initial_stock)

    return product
