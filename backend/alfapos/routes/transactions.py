# Overview: Flask API routes for sales transactions; parses input and returns JSON responses.

# backend/alfapos/routes/transactions.py
"""
Sales transaction routes.

POST records a sale through transaction_service.commit_transaction and maps
its errors to HTTP:
- ValidationError -> 400
- NotFoundError -> 404
- InsufficientStockError -> 409
- StorageError -> 500

The operator is always the authenticated user. Branch admins may only
record sales for their own branch.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import PosError, error_response
from ..extensions import db
from ..models import Transaction
from ..services.transaction_service import commit_transaction
from ..validation import parse_int, pick

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _branch_allowed(user, branch_code) -> bool:
    if user.is_head_office or not branch_code:
        return True
    own_code = user.branch.code if user.branch else None
    return own_code == str(branch_code).strip()


@transactions_bp.post("")
@require_auth
def create_transaction_route():
    """
    Record a sale.

    Request body (snake_case or camelCase keys):
    {
        "branch_code": "TBB",
        "items": [{"product_id": 7, "quantity": 2, "price_per_item": 100, "subtotal": 200}],
        "total_amount": 200,
        "payment_method": "Cash",
        "amount_received": 200,
        "change_amount": 0,
        "reference_number": null,
        "notes": null,
        "customer_data": {"name": "...", "phone_number": "...", "address": "...", "date_of_birth": "..."}
    }

    NOT IDEMPOTENT: a resubmitted body records a second sale.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON body required"}), 400

    user = g.current_user
    branch_code = pick(data, "branch_code", "branchCode")

    if not _branch_allowed(user, branch_code):
        return jsonify({"error": "Branch admins can only record sales for their own branch"}), 403

    try:
        result = commit_transaction(
            branch_code=branch_code,
            user_id=user.id,
            items=pick(data, "items"),
            total_amount=pick(data, "total_amount", "totalAmount"),
            payment_method=pick(data, "payment_method", "paymentMethod"),
            amount_received=pick(data, "amount_received", "amountReceived"),
            change_amount=pick(data, "change_amount", "changeAmount"),
            reference_number=pick(data, "reference_number", "referenceNumber"),
            notes=pick(data, "notes"),
            customer_data=pick(data, "customer_data", "customerData"),
        )
    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record transaction")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Transaction recorded", **result.to_dict()}), 201


@transactions_bp.get("/<int:transaction_id>")
@require_auth
def get_transaction_route(transaction_id: int):
    """Transaction header with items, for receipt reprints."""
    try:
        transaction_id = parse_int(transaction_id, "transaction_id")
    except PosError as e:
        return error_response(e)

    tx = db.session.query(Transaction).filter_by(id=transaction_id).first()
    if tx is None:
        return jsonify({"error": "Transaction not found"}), 404

    user = g.current_user
    if not user.is_head_office and tx.branch_id != user.branch_id:
        return jsonify({"error": "Transaction not found"}), 404

    return jsonify(tx.to_dict(include_items=True)), 200
