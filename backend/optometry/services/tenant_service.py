"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

WHY: Centralize tenant scoping for reuse across services and routes.
Every staff request is scoped to the caller's shop, and cross-shop access
must be explicitly denied.

SECURITY INVARIANTS:
1. Staff accounts only ever see rows whose shop_id equals their own
2. The platform admin is the only unscoped caller
3. IDs from client input are resolved through scoped_query(), so a row of
   another shop looks exactly like a missing row (404, existence not leaked)
4. Explicit shopId path parameters are checked with the access-control gate
   (403) because the caller already names the tenant

USAGE:
    from optometry.services.tenant_service import scoped_query, require_shop

    customer = scoped_query(Customer, g.current_user).filter_by(id=customer_id).first()
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Shop
from .access_control import is_admin


def shop_scope(user) -> int | None:
    """
    The shop_id a caller is confined to; None means unscoped (admin).

    Raises ValidationError for a staff account without a shop.
    """
    if is_admin(user):
        return None
    if user.shop_id is None:
        raise ValidationError("Shop ID is required")
    return user.shop_id


def scoped_query(model, user):
    """Query over `model` filtered to the caller's shop (unfiltered for admin)."""
    query = db.session.query(model)
    shop_id = shop_scope(user)
    if shop_id is not None:
        query = query.filter(model.shop_id == shop_id)
    return query


def get_scoped_or_404(model, user, object_id: int, message: str):
    obj = scoped_query(model, user).filter(model.id == object_id).first()
    if not obj:
        if db.session.query(model.id).filter(model.id == object_id).first():
            current_app.logger.warning(
                "Cross-shop lookup of %s id=%s by user_id=%s", model.__name__, object_id, user.id
            )
        raise NotFoundError(message)
    return obj


def require_shop(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if not shop:
        raise NotFoundError("Shop not found")
    return shop


def resolve_target_shop(user, requested_shop_id) -> int:
    """
    Shop a create operation writes into.

    Staff always write into their own shop (input ignored); the admin must
    name one explicitly.
    """
    if not is_admin(user):
        return shop_scope(user)
    if requested_shop_id in (None, ""):
        raise ValidationError("Shop ID is required for admin")
    try:
        shop_id = int(requested_shop_id)
    except (TypeError, ValueError):
        raise ValidationError("Validation error", [{"field": "shop", "message": "Invalid shop ID"}])
    require_shop(shop_id)
    return shop_id
