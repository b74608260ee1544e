# Overview: Flask API routes for shop account listings; parses input and returns JSON responses.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_role
from ..models import User
from ..permissions import Role
from ..services.tenant_service import scoped_query


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/shop-users")
@require_auth
@require_role(Role.SHOP_OWNER, Role.ADMIN)
def shop_users():
    """Active accounts of the caller's shop (every shop for the admin)."""
    users = (
        scoped_query(User, g.current_user)
        .filter(User.is_active.is_(True))
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )
    return jsonify({"users": [user.to_dict() for user in users]})
