# Overview: Flask API routes for shops (tenants); parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import NotFoundError
from ..pagination import get_page_args, paginate
from ..permissions import Role
from ..services import access_control, shop_service


shops_bp = Blueprint("shops", __name__, url_prefix="/api/shops")


def _my_shop():
    if g.current_user.shop_id is None:
        raise NotFoundError("No shop associated with this user")
    return shop_service.get_shop(g.current_user.shop_id)


@shops_bp.get("")
@require_auth
@require_role(Role.ADMIN)
def list_shops():
    page, limit = get_page_args()
    query = shop_service.list_shops(request.args.get("status"))
    return jsonify(paginate(query, page=page, limit=limit, key="shops"))


@shops_bp.post("")
@require_auth
@require_role(Role.ADMIN)
def create_shop():
    """
    Create a shop with its owner account and permission registry.

    An unknown ownerEmail gets a new shop_owner account; when no
    ownerPassword is supplied a temporary one is generated and returned
    once in the response.
    """
    data = request.get_json(silent=True) or {}
    shop, owner, temporary_password = shop_service.create_shop(
        name=data.get("name"),
        owner_email=data.get("ownerEmail"),
        owner_name=data.get("ownerName"),
        owner_phone=data.get("ownerPhone"),
        owner_password=data.get("ownerPassword"),
        address=data.get("address"),
        settings=data.get("settings"),
        actor=g.current_user,
    )

    body = {"message": "Shop created successfully", "shop": shop.to_dict()}
    if temporary_password:
        body["temporaryPassword"] = temporary_password
    return jsonify(body), 201


@shops_bp.get("/my-shop")
@require_auth
def get_my_shop():
    return jsonify(_my_shop().to_dict())


@shops_bp.put("/my-shop")
@require_auth
@require_role(Role.SHOP_OWNER)
def update_my_shop():
    data = request.get_json(silent=True) or {}
    shop = shop_service.update_shop(_my_shop(), data, as_admin=False)
    return jsonify({"message": "Shop updated successfully", "shop": shop.to_dict()})


@shops_bp.get("/<int:shop_id>")
@require_auth
def get_shop(shop_id: int):
    access_control.require_shop_access(g.current_user, shop_id)
    shop = shop_service.get_shop(shop_id)
    return jsonify({
        "shop": shop.to_dict(),
        "statistics": shop_service.get_shop_statistics(shop_id),
    })


@shops_bp.put("/<int:shop_id>")
@require_auth
@require_role(Role.SHOP_OWNER, Role.ADMIN)
def update_shop(shop_id: int):
    user = g.current_user
    access_control.require_shop_access(user, shop_id)
    data = request.get_json(silent=True) or {}

    shop = shop_service.update_shop(
        shop_service.get_shop(shop_id),
        data,
        as_admin=access_control.is_admin(user),
    )
    return jsonify({"message": "Shop updated successfully", "shop": shop.to_dict()})


@shops_bp.patch("/<int:shop_id>/status")
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


@shops_bp.get("/<int:shop_id>/users")
@require_auth
def list_shop_users(shop_id: int):
    access_control.require_shop_access(
        g.current_user, shop_id, "Access denied. You can only view users from your own shop."
    )
    shop_service.get_shop(shop_id)
    page, limit = get_page_args()
    return jsonify(paginate(shop_service.shop_users_query(shop_id), page=page, limit=limit, key="users"))
