# Overview: Access-control gate; the single place where allow/deny decisions are made.

"""
Access-Control Gate

WHY: Every permission decision in the API funnels through these functions,
so the admin bypass, fail-closed handling and denial logging live in exactly
one place. Route decorators, the check endpoints and the domain services all
call in here.

SEMANTICS:
- Admin: always allowed (module/action, page and shop ownership)
- Everyone else: allowed only when the resolved view says exactly True
- Missing configuration and an explicit False are both a plain deny
- A deny never mutates state; it is logged and, for require_*, raised as
  AuthorizationError (HTTP 403)
"""

from __future__ import annotations

from flask import current_app, has_request_context, request

from ..errors import AuthorizationError
from ..permissions import Role
from .permission_service import get_effective_permissions


def is_admin(user) -> bool:
    return user is not None and user.role == Role.ADMIN


def authorize(user, module: str, action: str) -> bool:
    if is_admin(user):
        return True
    return get_effective_permissions(user).allows(module, action)


def authorize_page(user, page: str) -> bool:
    if is_admin(user):
        return True
    return get_effective_permissions(user).can_access_page(page)


def authorize_shop(user, shop_id: int | None) -> bool:
    if is_admin(user):
        return True
    return shop_id is not None and user.shop_id == shop_id


def authorize_role(user, *roles: str) -> bool:
    return user is not None and user.role in roles


def _log_denial(user, reason: str) -> None:
    path = request.path if has_request_context() else None
    current_app.logger.warning(
        "Access denied user_id=%s role=%s path=%s: %s",
        getattr(user, "id", None), getattr(user, "role", None), path, reason,
    )


def require_permission(user, module: str, action: str) -> None:
    if not authorize(user, module, action):
        _log_denial(user, f"missing {module}:{action}")
        raise AuthorizationError(f"Access denied. You don't have permission to {action} {module}.")


def require_page_access(user, page: str) -> None:
    if not authorize_page(user, page):
        _log_denial(user, f"missing page {page}")
        raise AuthorizationError(f"Access denied. You don't have permission to access {page} page.")


def require_shop_access(user, shop_id: int | None, message: str | None = None) -> None:
    if not authorize_shop(user, shop_id):
        _log_denial(user, f"cross-shop access to shop_id={shop_id}")
        raise AuthorizationError(message or "Access denied. You can only access your own shop.")


def require_role(user, *roles: str) -> None:
    if not authorize_role(user, *roles):
        _log_denial(user, f"role not in {roles}")
        raise AuthorizationError("Access denied. Insufficient permissions.")
