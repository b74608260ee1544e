# Overview: Service-layer operations for platform administration; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, OptometryRecord, Shop, User
from ..permissions import Role, validate_role
from ..time_utils import start_of_month, start_of_previous_month, to_utc_z


RECENT_SHOPS_LIMIT = 5


def _count(model, *criteria) -> int:
    return db.session.query(func.count(model.id)).filter(*criteria).scalar()


def get_dashboard_stats() -> dict:
    this_month = start_of_month()
    last_month = start_of_previous_month()

    records_this_month = _count(OptometryRecord, OptometryRecord.created_at >= this_month)
    records_last_month = _count(
        OptometryRecord,
        OptometryRecord.created_at >= last_month,
        OptometryRecord.created_at < this_month,
    )
    if records_last_month > 0:
        monthly_growth = round((records_this_month - records_last_month) / records_last_month * 100, 1)
    else:
        monthly_growth = 100.0

    recent = (
        db.session.query(Shop)
        .order_by(Shop.created_at.desc(), Shop.id.desc())
        .limit(RECENT_SHOPS_LIMIT)
        .all()
    )

    return {
        "totalShops": _count(Shop),
        "activeShops": _count(Shop, Shop.subscription_status == "active"),
        "totalCustomers": _count(Customer),
        "totalRecords": _count(OptometryRecord),
        "monthlyGrowth": monthly_growth,
        "recentActivity": [
            {
                "id": shop.id,
                "name": shop.name,
                "owner": shop.owner.name if shop.owner else None,
                "email": shop.owner.email if shop.owner else None,
                "createdAt": to_utc_z(shop.created_at),
            }
            for shop in recent
        ],
    }


def shop_customers_query(shop_id: int):
    return db.session.query(Customer).filter(Customer.shop_id == shop_id).order_by(
        Customer.created_at.desc(), Customer.id.desc()
    )


def shop_records_query(shop_id: int):
    return db.session.query(OptometryRecord).filter(OptometryRecord.shop_id == shop_id).order_by(
        OptometryRecord.date.desc(), OptometryRecord.id.desc()
    )


def users_query(role: str | None = None):
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc())


def update_user(actor: User, user_id: int, data: dict) -> User:
    """Platform-level role / activation change for any account."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    data = data or {}
    errors = []
    role = data.get("role")
    if role is not None and not validate_role(role):
        errors.append({"field": "role", "message": "Invalid role"})
    elif role == Role.ADMIN and user.shop_id is not None:
        errors.append({"field": "role", "message": "Accounts that belong to a shop cannot be admins"})
    elif role and role != Role.ADMIN and user.shop_id is None:
        errors.append({"field": "role", "message": "Shop roles require an account that belongs to a shop"})
    is_active = data.get("isActive")
    if is_active is not None and not isinstance(is_active, bool):
        errors.append({"field": "isActive", "message": "isActive must be a boolean"})
    if errors:
        raise ValidationError("Validation error", errors)

    if user.id == actor.id and (is_active is False or (role and role != user.role)):
        raise ValidationError("You cannot change your own role or deactivate yourself")

    if role:
        user.role = role
    if is_active is not None:
        user.is_active = is_active
        if not is_active:
            user.refresh_token_hash = None
    db.session.commit()
    current_app.logger.info("Admin user_id=%s updated user_id=%s", actor.id, user.id)
    return user
