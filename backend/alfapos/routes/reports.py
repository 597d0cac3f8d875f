# Overview: Flask API routes for reports operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..errors import PosError, ValidationError, error_response
from ..services.reporting_service import monthly_sales_report
from ..validation import parse_int

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
@require_auth
def sales_report_route():
    """
    Monthly sales for one branch.

    Query params (all required):
    - month: 1-12
    - year: e.g. 2024
    - branch_code: str
    """
    month = request.args.get("month")
    year = request.args.get("year")
    branch_code = (request.args.get("branch_code") or "").strip()

    try:
        if not month or not year or not branch_code:
            raise ValidationError("month, year and branch_code are required")

        user = g.current_user
        if not user.is_head_office and (not user.branch or user.branch.code != branch_code):
            return jsonify({"error": "Branch admins can only view their own branch"}), 403

        report = monthly_sales_report(
            branch_code=branch_code,
            month=parse_int(month, "month"),
            year=parse_int(year, "year"),
        )
    except PosError as e:
        return error_response(e)

    return jsonify(report), 200
