# Overview: Flask API routes for user administration (head office only).

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_role
from ..errors import PosError, error_response
from ..models import ROLE_HEAD_OFFICE
from ..services import auth_service
from ..validation import parse_int, pick


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _branch_id(data: dict):
    value = pick(data, "branch_id", "branchId")
    if value in (None, ""):
        return None
    return parse_int(value, "branch_id")


@users_bp.post("")
@require_auth
@require_role(ROLE_HEAD_OFFICE)
def create_user_route():
    """
    Create an account.

    Request body: {username, password, full_name, role, branch_id}
    Branch admins require branch_id; head office accounts store no branch.
    """
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.create_user(
            username=(pick(data, "username") or "").strip(),
            password=pick(data, "password") or "",
            full_name=(pick(data, "full_name", "fullName") or "").strip(),
            role=pick(data, "role"),
            branch_id=_branch_id(data),
        )
    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Created user %s (%s)", user.username, user.role)
    return jsonify({"message": "User created", "user": user.to_dict()}), 201


@users_bp.get("")
@require_auth
@require_role(ROLE_HEAD_OFFICE)
def list_users_route():
    return jsonify({"users": [user.to_dict() for user in auth_service.list_users()]}), 200


@users_bp.put("/<int:user_id>")
@require_auth
@require_role(ROLE_HEAD_OFFICE)
def update_user_route(user_id: int):
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.update_user(
            user_id,
            full_name=(pick(data, "full_name", "fullName") or "").strip(),
            role=pick(data, "role"),
            branch_id=_branch_id(data),
        )
    except PosError as e:
        return error_response(e)

    return jsonify({"message": "User updated", "user": user.to_dict()}), 200
