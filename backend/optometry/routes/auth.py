# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Self-registration creates a shop together with its owner account
- Login / refresh return an access token plus a rotating refresh token
- Logout revokes the stored refresh token
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, get_bearer_token
from ..errors import AuthenticationError, ConflictError, ValidationError
from ..permissions import Role
from ..services import auth_service, shop_service, token_service
from ..time_utils import utcnow
from ..validation import normalize_email, require_fields


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_user(user) -> dict:
    shop = None
    if user.shop:
        shop = user.shop.to_summary()
        shop["subscription"] = user.shop.to_dict()["subscription"]
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "shop": shop,
    }


def _token_body(message: str, user, pair) -> dict:
    return {
        "message": message,
        "token": pair.access_token,
        "refreshToken": pair.refresh_token,
        "user": _session_user(user),
    }


@auth_bp.post("/register")
def register_route():
    """
    Self-register a shop owner together with a new shop.

    Staff accounts are created by their shop (see /api/user-management).
    The shop goes through the regular creation sequence, so its permission
    registry is seeded before the response is sent.
    """
    data = request.get_json(silent=True) or {}
    user_type = data.get("userType") or Role.SHOP_OWNER
    if user_type != Role.SHOP_OWNER:
        raise ValidationError(
            "Validation failed",
            [{"field": "userType", "message": "Only shop owners can self-register"}],
        )
    require_fields(data, "name", "email", "password", "shopName")
    auth_service.validate_password_length(data.get("password"))

    email = normalize_email(data.get("email"))
    if auth_service.email_exists(email):
        raise ConflictError("User already exists with this email")

    shop, owner, _ = shop_service.create_shop(
        name=data.get("shopName"),
        owner_email=email,
        owner_name=data.get("name"),
        owner_phone=data.get("phone"),
        owner_password=data.get("password"),
    )

    owner.last_login_at = utcnow()
    pair = token_service.issue_tokens(owner)
    current_app.logger.info("Registered shop owner user_id=%s shop_id=%s", owner.id, shop.id)
    return jsonify(_token_body("User registered successfully", owner, pair)), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email + password.

    Returns the user plus an access token and a refresh token.
    Unknown email and wrong password share one message.
    """
    data = request.get_json(silent=True) or {}
    require_fields(data, "email", "password")

    user = auth_service.authenticate(data.get("email"), data.get("password"))
    pair = token_service.issue_tokens(user)
    return jsonify(_token_body("Login successful", user, pair))


@auth_bp.post("/refresh")
def refresh_route():
    data = request.get_json(silent=True) or {}
    user, pair = token_service.rotate_refresh_token(data.get("refreshToken"))
    return jsonify(_token_body("Token refreshed successfully", user, pair))


@auth_bp.post("/logout")
@require_auth
def logout_route():
    token_service.revoke_refresh_token(g.current_user)
    return jsonify({"message": "Logged out successfully"})


@auth_bp.post("/validate")
def validate_route():
    """Check an access token without going through require_auth."""
    try:
        user = token_service.authenticate_access_token(get_bearer_token())
    except AuthenticationError as exc:
        return jsonify({"valid": False, "message": exc.message}), 401

    return jsonify({"valid": True, "user": user.to_dict()})


@auth_bp.get("/profile")
@require_auth
def get_profile_route():
    return jsonify({"user": g.current_user.to_dict()})


@auth_bp.put("/profile")
@require_auth
def update_profile_route():
    data = request.get_json(silent=True) or {}
    user = auth_service.update_profile(g.current_user, name=data.get("name"), phone=data.get("phone"))
    return jsonify({"message": "Profile updated successfully", "user": user.to_dict()})


@auth_bp.put("/change-password")
@require_auth
def change_password_route():
    data = request.get_json(silent=True) or {}
    require_fields(data, "currentPassword", "newPassword")
    auth_service.change_password(g.current_user, data["currentPassword"], data["newPassword"])
    current_app.logger.info("User user_id=%s changed password", g.current_user.id)
    return jsonify({"message": "Password changed successfully"})
