# Overview: Service-layer operations for shops (tenants); encapsulates business logic and database work.

"""
Shop (Tenant) Service

WHY: A shop is the tenant boundary. Creating one is a fixed sequence so
that a shop never exists without an owner or without its permission
registry:

    1. find or create the owner account
    2. create the shop
    3. link the owner to the shop
    4. seed the permission registry for all five roles

Steps 1-3 commit together; step 4 is the registry's own atomic upsert.
"""

from __future__ import annotations

import secrets

from flask import current_app
from sqlalchemy import func

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, OptometryRecord, Shop, User
from ..models.tenancy import (
    SHOP_STATUSES,
    SUBSCRIPTION_PLANS,
    SUBSCRIPTION_STATUSES,
    merge_settings,
)
from ..permissions import DEFAULT_USER_ROLE_CHOICES, Role
from ..time_utils import parse_iso_datetime
from ..validation import normalize_email
from . import auth_service, permission_service


SHOP_NAME_MAX_LENGTH = 200


def _validate_shop_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Validation error", [{"field": "name", "message": "Shop name is required"}])
    name = name.strip()
    if len(name) > SHOP_NAME_MAX_LENGTH:
        raise ValidationError(
            "Validation error",
            [{"field": "name", "message": f"Shop name cannot exceed {SHOP_NAME_MAX_LENGTH} characters"}],
        )
    return name


def _ensure_name_available(name: str, exclude_shop_id: int | None = None) -> None:
    query = db.session.query(Shop.id).filter(Shop.name == name)
    if exclude_shop_id is not None:
        query = query.filter(Shop.id != exclude_shop_id)
    if query.first():
        raise ConflictError("Shop name already exists")


def _validate_settings(settings) -> dict:
    if settings is None:
        return {}
    if not isinstance(settings, dict):
        raise ValidationError("Validation error", [{"field": "settings", "message": "Settings must be an object"}])
    default_role = settings.get("defaultUserRole")
    if default_role is not None and default_role not in DEFAULT_USER_ROLE_CHOICES:
        raise ValidationError(
            "Validation error",
            [{"field": "settings.defaultUserRole", "message": "Invalid default user role"}],
        )
    return settings


def _validate_address(address) -> dict:
    if address is None:
        return {}
    if not isinstance(address, dict):
        raise ValidationError("Validation error", [{"field": "address", "message": "Address must be an object"}])
    return address


def list_shops(status: str | None = None):
    query = db.session.query(Shop)
    if status:
        query = query.filter(Shop.status == status)
    return query.order_by(Shop.created_at.desc(), Shop.id.desc())


def get_shop(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if not shop:
        raise NotFoundError("Shop not found")
    return shop


def get_shop_statistics(shop_id: int) -> dict:
    return {
        "customerCount": db.session.query(func.count(Customer.id)).filter(Customer.shop_id == shop_id).scalar(),
        "recordCount": db.session.query(func.count(OptometryRecord.id)).filter(
            OptometryRecord.shop_id == shop_id
        ).scalar(),
        "usersCount": db.session.query(func.count(User.id)).filter(User.shop_id == shop_id).scalar(),
    }


def create_shop(
    *,
    name: str,
    owner_email: str,
    owner_name: str | None = None,
    owner_phone: str | None = None,
    owner_password: str | None = None,
    address: dict | None = None,
    settings: dict | None = None,
    actor: User | None = None,
) -> tuple[Shop, User, str | None]:
    """
    Create a shop with its owner and permission registry.

    The owner is looked up by email; a new shop_owner account is created
    when none exists. A freshly generated temporary password is returned
    when neither an existing account nor owner_password was supplied.

    actor=None means self-registration: the owner is recorded as creator.

    Returns (shop, owner, temporary_password_or_None).
    """
    name = _validate_shop_name(name)
    owner_email = normalize_email(owner_email, field="ownerEmail")
    address = _validate_address(address)
    settings = _validate_settings(settings)
    _ensure_name_available(name)

    temporary_password = None
    owner = db.session.query(User).filter_by(email=owner_email).first()
    if owner:
        if owner.role == Role.ADMIN:
            raise ValidationError("Platform admin cannot own a shop")
        if owner.shop_id is not None:
            raise ConflictError("Owner already belongs to another shop")
        owner.role = Role.SHOP_OWNER
    else:
        if owner_password is None:
            temporary_password = secrets.token_urlsafe(9)
        owner = auth_service.create_user(
            name=owner_name or owner_email.split("@")[0],
            email=owner_email,
            password=owner_password or temporary_password,
            role=Role.SHOP_OWNER,
            phone=owner_phone,
            commit=False,
        )

    shop = Shop(
        name=name,
        contact_email=owner_email,
        contact_phone=owner_phone,
        address=merge_settings({"country": "USA"}, address),
        settings=merge_settings({}, settings),
        created_by_id=actor.id if actor else owner.id,
    )
    db.session.add(shop)
    db.session.flush()

    shop.owner_id = owner.id
    owner.shop_id = shop.id
    db.session.commit()

    permission_service.initialize_shop_permissions(shop.id, actor.id if actor else owner.id)

    current_app.logger.info("Created shop shop_id=%s owner_id=%s", shop.id, owner.id)
    return shop, owner, temporary_password


def update_shop(shop: Shop, data: dict, *, as_admin: bool) -> Shop:
    """
    Apply a partial update.

    Shop owners may change name, contact, address and settings; the admin
    may additionally change subscription and isActive.
    """
    data = data or {}

    if data.get("name"):
        name = _validate_shop_name(data["name"])
        _ensure_name_available(name, exclude_shop_id=shop.id)
        shop.name = name

    contact = data.get("contact")
    if contact is not None:
        if not isinstance(contact, dict):
            raise ValidationError("Validation error", [{"field": "contact", "message": "Contact must be an object"}])
        if contact.get("email"):
            shop.contact_email = normalize_email(contact["email"], field="contact.email")
        if contact.get("phone"):
            shop.contact_phone = str(contact["phone"]).strip()
        if contact.get("address") is not None:
            shop.address = merge_settings(shop.address or {}, _validate_address(contact["address"]))

    if data.get("address") is not None:
        shop.address = merge_settings(shop.address or {}, _validate_address(data["address"]))

    if data.get("settings") is not None:
        shop.settings = merge_settings(shop.settings or {}, _validate_settings(data["settings"]))

    if as_admin:
        if data.get("subscription") is not None:
            _apply_subscription(shop, data["subscription"])
        if data.get("isActive") is not None:
            if not isinstance(data["isActive"], bool):
                raise ValidationError("Validation error", [{"field": "isActive", "message": "isActive must be a boolean"}])
            shop.is_active = data["isActive"]
            shop.status = "active" if shop.is_active else "inactive"

    db.session.commit()
    return shop


def _apply_subscription(shop: Shop, subscription) -> None:
    if not isinstance(subscription, dict):
        raise ValidationError("Validation error", [{"field": "subscription", "message": "Subscription must be an object"}])

    errors = []
    plan = subscription.get("plan")
    if plan is not None and plan not in SUBSCRIPTION_PLANS:
        errors.append({"field": "subscription.plan", "message": "Invalid subscription plan"})
    status = subscription.get("status")
    if status is not None and status not in SUBSCRIPTION_STATUSES:
        errors.append({"field": "subscription.status", "message": "Invalid subscription status"})
    end_date = None
    if subscription.get("endDate"):
        try:
            end_date = parse_iso_datetime(subscription["endDate"])
        except (TypeError, ValueError):
            errors.append({"field": "subscription.endDate", "message": "endDate must be an ISO-8601 datetime"})
    features = subscription.get("features")
    if features is not None and not isinstance(features, dict):
        errors.append({"field": "subscription.features", "message": "Features must be an object"})
    if errors:
        raise ValidationError("Validation error", errors)

    if plan is not None:
        shop.subscription_plan = plan
    if status is not None:
        shop.subscription_status = status
    if end_date is not None:
        shop.subscription_end_date = end_date
    if features is not None:
        shop.subscription_features = merge_settings(shop.subscription_features or {}, features)


def set_shop_status(shop: Shop, status) -> Shop:
    """
    Move a shop between active / inactive / suspended.

    Reversible; non-active shops lock out their staff at authentication.
    """
    if status not in SHOP_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(SHOP_STATUSES)}")
    shop.status = status
    shop.is_active = status == "active"
    db.session.commit()
    current_app.logger.info("Shop shop_id=%s status set to %s", shop.id, status)
    return shop


def shop_users_query(shop_id: int):
    return db.session.query(User).filter(User.shop_id == shop_id).order_by(User.created_at.desc(), User.id.desc())
