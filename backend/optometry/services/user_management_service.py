# Overview: Service-layer operations for shop staff management; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..errors import AuthorizationError, ValidationError
from ..extensions import db
from ..models import Shop, User
from ..permissions import Role, SHOP_STAFF_ROLES
from ..validation import ModelValidationPolicy, validate_payload
from . import auth_service
from .access_control import is_admin
from .tenant_service import get_scoped_or_404, resolve_target_shop, scoped_query


STAFF_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "role",
        "phone",
        "department",
        "licenseNumber",
        "specialization",
        "notes",
        "isActive",
    },
    field_aliases={
        "licenseNumber": "license_number",
        "isActive": "is_active",
    },
    ignored_fields={"id", "_id", "email", "shop", "createdAt", "updatedAt", "lastLogin"},
    choices={"role": tuple(SHOP_STAFF_ROLES)},
    min_lengths={"name": 2, "phone": 10},
)


def _guard_owner_assignment(actor: User, role: str | None) -> None:
    # Only owners (and the platform admin) can mint more owners
    if role == Role.SHOP_OWNER and actor.role not in (Role.SHOP_OWNER, Role.ADMIN):
        raise AuthorizationError("Access denied. Only shop owners can assign the shop_owner role.")


def _is_registered_owner(user: User) -> bool:
    return user.shop is not None and user.shop.owner_id == user.id


def _guard_registered_owner(actor: User, user: User, *, role: str | None = None, deactivate: bool = False) -> None:
    # The shop's registered owner stays an active shop_owner; only the platform admin may change that
    if is_admin(actor) or not _is_registered_owner(user):
        return
    if role is not None and role != Role.SHOP_OWNER:
        raise AuthorizationError("Access denied. The shop owner's role cannot be changed.")
    if deactivate:
        raise AuthorizationError("Access denied. The shop owner cannot be deactivated.")


def list_staff(actor: User, *, role: str | None = None, shop_id=None):
    query = scoped_query(User, actor)
    if is_admin(actor) and shop_id not in (None, ""):
        try:
            query = query.filter(User.shop_id == int(shop_id))
        except ValueError:
            raise ValidationError("Validation error", [{"field": "shop", "message": "Invalid shop ID"}])
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc())


def get_staff(actor: User, user_id: int) -> User:
    return get_scoped_or_404(User, actor, user_id, "User not found")


def create_staff(actor: User, payload: dict) -> User:
    """
    Create a staff account in the caller's shop.

    The role defaults to the shop's `defaultUserRole` setting. The admin
    must name the target shop in `shop`.
    """
    payload = payload or {}
    shop_id = resolve_target_shop(actor, payload.get("shop"))
    shop = db.session.get(Shop, shop_id)

    role = payload.get("role") or shop.default_user_role
    if role not in SHOP_STAFF_ROLES:
        raise ValidationError("Validation error", [{"field": "role", "message": "Invalid role"}])
    _guard_owner_assignment(actor, role)

    user = auth_service.create_user(
        name=payload.get("name"),
        email=payload.get("email"),
        password=payload.get("password"),
        role=role,
        shop_id=shop_id,
        phone=payload.get("phone"),
        department=payload.get("department"),
        license_number=payload.get("licenseNumber"),
        specialization=payload.get("specialization"),
        notes=payload.get("notes"),
    )
    current_app.logger.info("User user_id=%s created staff user_id=%s in shop_id=%s", actor.id, user.id, shop_id)
    return user


def update_staff(actor: User, user_id: int, payload: dict) -> User:
    user = get_staff(actor, user_id)
    patch = validate_payload(model=User, payload=payload or {}, policy=STAFF_UPDATE_POLICY, partial=True)
    _guard_owner_assignment(actor, patch.get("role"))

    if patch.get("is_active") is False and user.id == actor.id:
        raise ValidationError("You cannot deactivate your own account")
    _guard_registered_owner(actor, user, role=patch.get("role"), deactivate=patch.get("is_active") is False)

    for key, value in patch.items():
        setattr(user, key, value)
    db.session.commit()
    return user


def deactivate_staff(actor: User, user_id: int) -> User:
    """Soft delete."""
    user = get_staff(actor, user_id)
    if user.id == actor.id:
        raise ValidationError("You cannot delete your own account")
    _guard_registered_owner(actor, user, deactivate=True)
    user.is_active = False
    user.refresh_token_hash = None
    db.session.commit()
    current_app.logger.info("User user_id=%s deactivated staff user_id=%s", actor.id, user.id)
    return user


def reset_staff_password(actor: User, user_id: int, new_password) -> None:
    user = get_staff(actor, user_id)
    auth_service.validate_password_length(new_password, field="newPassword")
    auth_service.set_password(user, new_password)
    current_app.logger.info("User user_id=%s reset password of user_id=%s", actor.id, user.id)
