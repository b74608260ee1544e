# Overview: Flask API routes for platform administration; parses input and returns JSON responses.

"""
Platform admin API routes

Every route requires the admin role. The admin works across shops, so
nothing here is tenant-scoped.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role
from ..pagination import get_page_args, paginate
from ..permissions import Role
from ..services import admin_service, shop_service


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/dashboard")
@require_auth
@require_role(Role.ADMIN)
def dashboard():
    return jsonify(admin_service.get_dashboard_stats())


@admin_bp.get("/shops")
@require_auth
@require_role(Role.ADMIN)
def list_shops():
    page, limit = get_page_args()
    query = shop_service.list_shops(request.args.get("status"))
    return jsonify(paginate(query, page=page, limit=limit, key="shops"))


@admin_bp.get("/shops/<int:shop_id>")
@require_auth
@require_role(Role.ADMIN)
def get_shop(shop_id: int):
    shop = shop_service.get_shop(shop_id)
    return jsonify({
        "shop": shop.to_dict(),
        "statistics": shop_service.get_shop_statistics(shop_id),
    })


@admin_bp.put("/shops/<int:shop_id>")
@require_auth
@require_role(Role.ADMIN)
def update_shop(shop_id: int):
    data = request.get_json(silent=True) or {}
    shop = shop_service.update_shop(shop_service.get_shop(shop_id), data, as_admin=True)
    return jsonify({"message": "Shop updated successfully", "shop": shop.to_dict()})


@admin_bp.patch("/shops/<int:shop_id>/status")
@require_auth
@require_role(Role.ADMIN)
def update_shop_status(shop_id: int):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    shop = shop_service.set_shop_status(shop_service.get_shop(shop_id), status)
    return jsonify({
        "message": f"Shop status updated to {status} successfully",
        "shop": shop.to_dict(),
    })


@admin_bp.get("/shops/<int:shop_id>/customers")
@require_auth
@require_role(Role.ADMIN)
def shop_customers(shop_id: int):
    shop_service.get_shop(shop_id)
    page, limit = get_page_args()
    query = admin_service.shop_customers_query(shop_id)
    return jsonify(paginate(query, page=page, limit=limit, key="customers"))


@admin_bp.get("/shops/<int:shop_id>/records")
@require_auth
@require_role(Role.ADMIN)
def shop_records(shop_id: int):
    shop_service.get_shop(shop_id)
    page, limit = get_page_args()
    query = admin_service.shop_records_query(shop_id)
    return jsonify(paginate(query, page=page, limit=limit, key="records"))


@admin_bp.get("/users")
@require_auth
@require_role(Role.ADMIN)
def list_users():
    page, limit = get_page_args()
    query = admin_service.users_query(request.args.get("role"))
    return jsonify(paginate(query, page=page, limit=limit, key="users"))


@admin_bp.put("/users/<int:user_id>")
@require_auth
@require_role(Role.ADMIN)
def update_user(user_id: int):
    data = request.get_json(silent=True) or {}
    user = admin_service.update_user(g.current_user, user_id, data)
    return jsonify({"message": "User updated successfully", "user": user.to_dict()})
