# Overview: Flask API routes for branches.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_role
from ..errors import PosError, error_response
from ..models import ROLE_HEAD_OFFICE
from ..services import branch_service


branches_bp = Blueprint("branches", __name__, url_prefix="/api/branches")


@branches_bp.get("")
@require_auth
def list_branches_route():
    return jsonify({"branches": [b.to_dict() for b in branch_service.list_branches()]}), 200


@branches_bp.post("")
@require_auth
@require_role(ROLE_HEAD_OFFICE)
def create_branch_route():
    data = request.get_json(silent=True) or {}
    try:
        branch = branch_service.create_branch(data.get("code"), data.get("name"))
    except PosError as e:
        return error_response(e)
    return jsonify(branch.to_dict()), 201
