# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/alfapos/routes/products.py
"""
Product catalog routes.

Stock is always reported for one branch: the branch_code query parameter,
or DEFAULT_BRANCH_CODE when the client sends none.
"""
from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..errors import PosError, error_response
from ..services import products_service
from ..services.inventory_service import add_stock
from ..validation import parse_int, parse_quantity, pick

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """
    Query params:
    - branch_code: str (optional) - branch whose stock is reported
    """
    branch_code = request.args.get("branch_code") or current_app.config["DEFAULT_BRANCH_CODE"]
    return jsonify(products_service.list_products(branch_code)), 200


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Create a product, optionally with initial stock at branch_code.

    Requires name, product_code and price.
    """
    data = request.get_json(silent=True) or {}

    try:
        product = products_service.create_product(
            name=pick(data, "name"),
            product_code=pick(data, "product_code", "productCode"),
            price=pick(data, "price"),
            category=pick(data, "category"),
            brand=pick(data, "brand"),
            purchase_price=pick(data, "purchase_price", "purchasePrice"),
            description=pick(data, "description"),
            track_serial_batch=bool(pick(data, "track_serial_batch", "trackSerialBatch", default=False)),
            stock=pick(data, "stock"),
            branch_code=pick(data, "branch_code", "branchCode")
            or current_app.config["DEFAULT_BRANCH_CODE"],
        )
    except PosError as e:
        return error_response(e)

    current_app.logger.info("Created product %s (%s)", product.id, product.product_code)
    return jsonify({"message": "Product created", "productId": product.id}), 201


@products_bp.patch("/<int:product_id>/stock")
@require_auth
def add_stock_route(product_id: int):
    """
    Add stock at a branch.

    Request body: {quantity: int > 0, branch_id: int}
    """
    data = request.get_json(silent=True) or {}

    try:
        quantity = parse_quantity(pick(data, "quantity"), "quantity")
        branch_id = pick(data, "branch_id", "branchId")
        if branch_id is None:
            return jsonify({"error": "branch_id is required"}), 400
        row = add_stock(product_id, parse_int(branch_id, "branch_id"), quantity)
    except PosError as e:
        return error_response(e)

    return jsonify({"message": "Stock updated", "inventory": row.to_dict()}), 200
