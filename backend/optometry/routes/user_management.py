# Overview: Flask API routes for shop staff management; parses input and returns JSON responses.

"""
Staff management API routes

Every route needs users:view; writes additionally need users:create,
users:edit or users:delete. Accounts are scoped to the caller's shop (the
platform admin may pass ?shop= to filter).
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission
from ..pagination import get_page_args, paginate
from ..services import user_management_service


user_management_bp = Blueprint("user_management", __name__, url_prefix="/api/user-management")


@user_management_bp.get("")
@require_auth
@require_permission("users", "view")
def list_staff():
    page, limit = get_page_args()
    query = user_management_service.list_staff(
        g.current_user,
        role=request.args.get("role"),
        shop_id=request.args.get("shop"),
    )
    return jsonify(paginate(query, page=page, limit=limit, key="users"))


@user_management_bp.get("/<int:user_id>")
@require_auth
@require_permission("users", "view")
def get_staff(user_id: int):
    return jsonify(user_management_service.get_staff(g.current_user, user_id).to_dict())


@user_management_bp.post("")
@require_auth
@require_permission("users", "view")
@require_permission("users", "create")
def create_staff():
    data = request.get_json(silent=True) or {}
    user = user_management_service.create_staff(g.current_user, data)
    return jsonify({"message": "User created successfully", "user": user.to_dict()}), 201


@user_management_bp.put("/<int:user_id>")
@require_auth
@require_permission("users", "view")
@require_permission("users", "edit")
def update_staff(user_id: int):
    data = request.get_json(silent=True) or {}
    user = user_management_service.update_staff(g.current_user, user_id, data)
    return jsonify({"message": "User updated successfully", "user": user.to_dict()})


@user_management_bp.delete("/<int:user_id>")
@require_auth
@require_permission("users", "view")
@require_permission("users", "delete")
def delete_staff(user_id: int):
    user = user_management_service.deactivate_staff(g.current_user, user_id)
    return jsonify({"message": "User deleted successfully", "user": user.to_dict()})


@user_management_bp.post("/<int:user_id>/reset-password")
@require_auth
@require_permission("users", "view")
@require_permission("users", "edit")
def reset_password(user_id: int):
    data = request.get_json(silent=True) or {}
    user_management_service.reset_staff_password(g.current_user, user_id, data.get("newPassword"))
    return jsonify({"message": "Password reset successfully"})
