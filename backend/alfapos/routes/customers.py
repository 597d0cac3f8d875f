# Overview: Flask API routes for customer lookup.

from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..services.customer_service import find_by_phone

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("/phone/<phone_number>")
@require_auth
def get_by_phone_route(phone_number: str):
    customer = find_by_phone(phone_number.strip())
    if customer is None:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify(customer.to_dict()), 200
