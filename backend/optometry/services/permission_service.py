# Overview: Service-layer operations for the permission registry; encapsulates business logic and database work.

"""
Permission Registry with Multi-Tenant Support

WHY: Each shop carries one PermissionRecord per role holding that role's
default capabilities and page access. Shop owners tune them; accounts may
carry field-level overrides on top (see permission_resolver).

LIFECYCLE per (shop, role):
- Uninitialized: no record; the resolver grants nothing
- Initialize: upsert of the static defaults for all five roles
- Update: wholesale replacement of permissions + page access
- Reset: replacement with the static defaults
- Deactivate / Activate: the resolver ignores inactive records

SYNC: Update and Reset clear the overrides of every account holding that
(shop, role), so a role change reaches every member. The clearing step is a
separate bulk UPDATE committed after the registry write; it is not rolled
back if it fails.

DESIGN PRINCIPLES:
- Fail closed: missing configuration denies
- Atomic upsert on (shop_id, role); no query-then-insert
- Capability maps validated against the module/action lists at the boundary
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import PermissionRecord, Shop, User
from ..permissions import (
    ROLES,
    get_default_pages,
    get_default_permissions,
    normalize_capability_map,
    normalize_page_list,
    validate_role,
)
from ..time_utils import utcnow
from .concurrency import commit_with_retry, run_with_retry, upsert
from .permission_resolver import AccountSnapshot, EffectivePermissions, RoleDefaults, resolve


def lookup_role_defaults(shop_id: int, role: str) -> RoleDefaults | None:
    """Registry lookup used by the resolver: the ACTIVE record or None."""
    record = db.session.query(PermissionRecord).filter_by(
        shop_id=shop_id,
        role=role,
        is_active=True,
    ).first()
    if not record:
        return None
    return RoleDefaults(permissions=record.permissions or {}, page_access=list(record.page_access or []))


def get_effective_permissions(user: User) -> EffectivePermissions:
    """Merged permission view for an account, read fresh from the registry."""
    return resolve(AccountSnapshot.from_user(user), lookup_role_defaults)


def _require_role(role: str) -> None:
    if not validate_role(role):
        raise ValidationError(
            "Validation error",
            [{"field": "role", "message": f"Invalid role: {role}"}],
        )


def _require_shop(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if not shop:
        raise NotFoundError("Shop not found")
    return shop


def get_record(shop_id: int, role: str) -> PermissionRecord | None:
    return db.session.query(PermissionRecord).filter_by(shop_id=shop_id, role=role).first()


def list_shop_permissions(shop_id: int, *, active_only: bool = True) -> list[PermissionRecord]:
    query = db.session.query(PermissionRecord).filter_by(shop_id=shop_id)
    if active_only:
        query = query.filter_by(is_active=True)
    return query.order_by(PermissionRecord.id.asc()).all()


def _write_record(
    shop_id: int,
    role: str,
    permissions: dict,
    page_access: list[str],
    actor_id: int,
) -> None:
    now = utcnow()
    upsert(
        PermissionRecord,
        values={
            "shop_id": shop_id,
            "role": role,
            "permissions": permissions,
            "page_access": page_access,
            "is_active": True,
            "created_by_id": actor_id,
            "created_at": now,
            "updated_at": now,
        },
        conflict_columns=["shop_id", "role"],
        update_columns=["permissions", "page_access", "is_active", "created_by_id", "updated_at"],
    )


def clear_role_overrides(shop_id: int, role: str) -> int:
    """
    Remove per-account overrides for every account with (shop_id, role).

    Returns the number of accounts touched.
    """
    def _op():
        count = db.session.query(User).filter(
            User.shop_id == shop_id,
            User.role == role,
        ).update(
            {User.permissions: None, User.accessible_pages: None},
            synchronize_session=False,
        )
        db.session.commit()
        return count

    count = run_with_retry(_op)
    current_app.logger.info(
        "Cleared permission overrides for %s account(s) shop_id=%s role=%s", count, shop_id, role
    )
    return count


def initialize_shop_permissions(shop_id: int, actor_id: int) -> list[PermissionRecord]:
    """
    Seed the registry with the static defaults for all five roles.

    Idempotent: re-running rewrites the same five records (one per role).
    """
    _require_shop(shop_id)

    def _op():
        for role in ROLES:
            _write_record(shop_id, role, get_default_permissions(role), get_default_pages(role), actor_id)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Initialized permission registry for shop_id=%s", shop_id)
    return list_shop_permissions(shop_id, active_only=False)


def update_role_permissions(
    shop_id: int,
    role: str,
    *,
    permissions,
    page_access,
    actor_id: int,
) -> PermissionRecord:
    """
    Replace the role record wholesale (upsert), then clear member overrides.

    Both `permissions` and `page_access` replace the stored values; omitted
    values become empty.
    """
    _require_role(role)
    _require_shop(shop_id)

    errors = []
    normalized_permissions: dict = {}
    normalized_pages: list[str] = []
    try:
        normalized_permissions = normalize_capability_map(permissions, field="permissions")
    except ValidationError as exc:
        errors.extend(exc.errors or [])
    try:
        normalized_pages = normalize_page_list(page_access, field="pageAccess")
    except ValidationError as exc:
        errors.extend(exc.errors or [])
    if errors:
        raise ValidationError("Validation error", errors)

    def _op():
        _write_record(shop_id, role, normalized_permissions, normalized_pages, actor_id)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Updated role permissions shop_id=%s role=%s by user_id=%s", shop_id, role, actor_id)

    clear_role_overrides(shop_id, role)
    return get_record(shop_id, role)


def reset_role_permissions(shop_id: int, role: str, *, actor_id: int) -> PermissionRecord:
    """Restore the static defaults for one role, then clear member overrides."""
    _require_role(role)
    _require_shop(shop_id)

    def _op():
        _write_record(shop_id, role, get_default_permissions(role), get_default_pages(role), actor_id)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Reset role permissions shop_id=%s role=%s by user_id=%s", shop_id, role, actor_id)

    clear_role_overrides(shop_id, role)
    return get_record(shop_id, role)


def set_role_active(shop_id: int, role: str, *, is_active: bool, actor_id: int) -> PermissionRecord:
    """Deactivate or re-activate a role record. Reversible."""
    _require_role(role)
    record = get_record(shop_id, role)
    if not record:
        raise NotFoundError("Permission record not found")

    record.is_active = is_active
    commit_with_retry()
    current_app.logger.info(
        "%s role permissions shop_id=%s role=%s by user_id=%s",
        "Activated" if is_active else "Deactivated", shop_id, role, actor_id,
    )
    return record


def set_user_overrides(user: User, *, permissions=None, accessible_pages=None) -> User:
    """
    Store per-account overrides.

    Each argument replaces the stored value when supplied; None leaves it
    untouched. Override capability records keep only the supplied keys so
    the resolver merges them field by field.
    """
    errors = []
    if permissions is not None:
        try:
            user.permissions = normalize_capability_map(permissions, field="permissions", fill_missing=False)
        except ValidationError as exc:
            errors.extend(exc.errors or [])
    if accessible_pages is not None:
        try:
            user.accessible_pages = normalize_page_list(accessible_pages, field="accessiblePages")
        except ValidationError as exc:
            errors.extend(exc.errors or [])
    if errors:
        db.session.rollback()
        raise ValidationError("Validation error", errors)

    commit_with_retry()
    current_app.logger.info("Updated permission overrides for user_id=%s", user.id)
    return user


def get_user_overrides(user: User) -> dict:
    return {
        "userId": user.id,
        "permissions": user.permissions or {},
        "accessiblePages": user.accessible_pages or [],
        "role": user.role,
    }
