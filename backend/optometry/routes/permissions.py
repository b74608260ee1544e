# Overview: Flask API routes for the permission registry and permission checks; parses input and returns JSON responses.

"""
Permission API routes

Point checks (any authenticated account):
- GET /my-permissions, /check-permission, /check-page-access, /available-permissions

Shop registry (tenant-scoped):
- GET  /shop/<shopId>                          own shop or admin
- PUT  /shop/<shopId>/role/<role>              shop_owner of that shop or admin
- POST /shop/<shopId>/role/<role>/reset        shop_owner of that shop or admin
- POST /shop/<shopId>/role/<role>/deactivate   shop_owner of that shop or admin
- POST /shop/<shopId>/role/<role>/activate     shop_owner of that shop or admin
- POST /shop/<shopId>/initialize               admin only

Account overrides:
- POST/GET /user/<userId>                      shop_owner of the same shop or admin
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from ..permissions import ACTIONS, Role, get_available_pages
from ..services import access_control, permission_service
from ..services.tenant_service import require_shop


permissions_bp = Blueprint("permissions", __name__, url_prefix="/api/permissions")


def _require_registry_manager(shop_id: int, verb: str) -> None:
    """Admin, or the shop_owner of `shop_id`."""
    user = g.current_user
    access_control.require_shop_access(
        user, shop_id, f"Access denied. You can only {verb} permissions for your own shop."
    )
    access_control.require_role(user, Role.SHOP_OWNER, Role.ADMIN)


def _load_managed_user(user_id: int) -> User:
    """Target account of an override call, checked against the caller's shop."""
    target = db.session.get(User, user_id)
    if not target:
        raise NotFoundError("User not found")
    access_control.require_shop_access(
        g.current_user,
        target.shop_id,
        "Access denied. You can only manage permissions for users in your own shop.",
    )
    return target


def _available() -> dict:
    return {
        "availablePages": get_available_pages(),
        "availableActions": list(ACTIONS),
    }


# =============================================================================
# Point checks
# =============================================================================

@permissions_bp.get("/my-permissions")
@require_auth
def my_permissions():
    user = g.current_user
    view = permission_service.get_effective_permissions(user)
    body = view.to_dict()
    body.update({"userId": user.id, "email": user.email, "name": user.name})
    return jsonify(body)


@permissions_bp.get("/check-permission")
@require_auth
def check_permission():
    module = request.args.get("module")
    action = request.args.get("action")
    if not module or not action:
        raise ValidationError("Module and action parameters are required")

    return jsonify({
        "hasPermission": access_control.authorize(g.current_user, module, action),
        "module": module,
        "action": action,
    })


@permissions_bp.get("/check-page-access")
@require_auth
def check_page_access():
    page = request.args.get("page")
    if not page:
        raise ValidationError("Page parameter is required")

    return jsonify({
        "canAccess": access_control.authorize_page(g.current_user, page),
        "page": page,
    })


@permissions_bp.get("/available-permissions")
@require_auth
def available_permissions():
    return jsonify(_available())


# =============================================================================
# Shop registry
# =============================================================================

@permissions_bp.get("/shop/<int:shop_id>")
@require_auth
def get_shop_permissions(shop_id: int):
    access_control.require_shop_access(
        g.current_user, shop_id, "Access denied. You can only view permissions for your own shop."
    )
    shop = require_shop(shop_id)
    records = permission_service.list_shop_permissions(shop_id)

    body = {
        "shop": {"id": shop.id, "name": shop.name, "settings": shop.effective_settings()},
        "permissions": [record.to_dict() for record in records],
    }
    body.update(_available())
    return jsonify(body)


@permissions_bp.put("/shop/<int:shop_id>/role/<role>")
@require_auth
def update_role_permissions(shop_id: int, role: str):
    _require_registry_manager(shop_id, "update")
    data = request.get_json(silent=True) or {}

    record = permission_service.update_role_permissions(
        shop_id,
        role,
        permissions=data.get("permissions"),
        page_access=data.get("pageAccess"),
        actor_id=g.current_user.id,
    )
    return jsonify({"message": "Permissions updated successfully", "permission": record.to_dict()})


@permissions_bp.post("/shop/<int:shop_id>/role/<role>/reset")
@require_auth
def reset_role_permissions(shop_id: int, role: str):
    _require_registry_manager(shop_id, "reset")

    record = permission_service.reset_role_permissions(shop_id, role, actor_id=g.current_user.id)
    return jsonify({"message": "Permissions reset to default successfully", "permission": record.to_dict()})


@permissions_bp.post("/shop/<int:shop_id>/role/<role>/deactivate")
@require_auth
def deactivate_role_permissions(shop_id: int, role: str):
    _require_registry_manager(shop_id, "update")

    record = permission_service.set_role_active(shop_id, role, is_active=False, actor_id=g.current_user.id)
    return jsonify({"message": "Permissions deactivated successfully", "permission": record.to_dict()})


@permissions_bp.post("/shop/<int:shop_id>/role/<role>/activate")
@require_auth
def activate_role_permissions(shop_id: int, role: str):
    _require_registry_manager(shop_id, "update")

    record = permission_service.set_role_active(shop_id, role, is_active=True, actor_id=g.current_user.id)
    return jsonify({"message": "Permissions activated successfully", "permission": record.to_dict()})


@permissions_bp.post("/shop/<int:shop_id>/initialize")
@require_auth
@require_role(Role.ADMIN)
def initialize_shop_permissions(shop_id: int):
    records = permission_service.initialize_shop_permissions(shop_id, g.current_user.id)
    return jsonify({
        "message": "Shop permissions initialized successfully",
        "permissions": [record.to_dict() for record in records],
    })


# =============================================================================
# Account overrides
# =============================================================================

@permissions_bp.post("/user/<int:user_id>")
@require_auth
@require_role(Role.SHOP_OWNER, Role.ADMIN)
def set_user_permissions(user_id: int):
    target = _load_managed_user(user_id)
    data = request.get_json(silent=True) or {}

    permission_service.set_user_overrides(
        target,
        permissions=data.get("permissions"),
        accessible_pages=data.get("accessiblePages"),
    )
    return jsonify({
        "message": "User permissions updated successfully",
        "user": {"id": target.id, "name": target.name, "email": target.email, "role": target.role},
    })


@permissions_bp.get("/user/<int:user_id>")
@require_auth
@require_role(Role.SHOP_OWNER, Role.ADMIN)
def get_user_permissions(user_id: int):
    target = _load_managed_user(user_id)
    return jsonify(permission_service.get_user_overrides(target))
