# Overview: Pure permission resolution; merges role defaults with account overrides.

"""
Permission Resolver

WHY: One deterministic function answers "what may this account do?" for
every request. Route gates, the my-permissions endpoint and the point checks
all read the same merged view, so they can never disagree.

RESOLUTION (in order):
1. Admin: every module x every capability granted, every page accessible.
   Stored records are never consulted.
2. Role default: the ACTIVE PermissionRecord for (shop_id, role), copied.
   Missing or inactive record -> empty map and no pages (fail closed).
3. Account overrides, field level: for each module the account overrides,
   each capability whose value is not None replaces the role default.
   A module absent from the role default is created.
4. Pages: if the account lists pages, the result is the role-default pages
   followed by the account's extra pages, de-duplicated in first-seen order.

PURITY: No I/O of its own, no caching, no side effects. The registry lookup
is injected so unit tests can drive the resolver without a database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from ..permissions import PAGES, Role, copy_capability_map, full_permission_matrix


@dataclass(frozen=True)
class RoleDefaults:
    """Snapshot of an active PermissionRecord, detached from the session."""
    permissions: dict
    page_access: list[str]


@dataclass(frozen=True)
class AccountSnapshot:
    """The account fields the resolver reads."""
    id: int | None
    role: str
    shop_id: int | None
    permissions: dict | None = None
    accessible_pages: list[str] | None = None

    @classmethod
    def from_user(cls, user) -> "AccountSnapshot":
        return cls(
            id=user.id,
            role=user.role,
            shop_id=user.shop_id,
            permissions=copy_capability_map(user.permissions),
            accessible_pages=list(user.accessible_pages or []),
        )


@dataclass
class EffectivePermissions:
    permissions: dict = field(default_factory=dict)
    accessible_pages: list[str] = field(default_factory=list)
    role: str = ""

    def allows(self, module: str, action: str) -> bool:
        return (self.permissions.get(module) or {}).get(action) is True

    def can_access_page(self, page: str) -> bool:
        return page in self.accessible_pages

    def to_dict(self) -> dict:
        return {
            "permissions": self.permissions,
            "accessiblePages": self.accessible_pages,
            "role": self.role,
        }


RoleLookup = Callable[[int, str], Optional[RoleDefaults]]


def resolve(account: AccountSnapshot, lookup: RoleLookup) -> EffectivePermissions:
    if account.role == Role.ADMIN:
        return EffectivePermissions(
            permissions=full_permission_matrix(),
            accessible_pages=list(PAGES),
            role=account.role,
        )

    permissions: dict = {}
    pages: list[str] = []

    defaults = lookup(account.shop_id, account.role) if account.shop_id is not None else None
    if defaults is not None:
        permissions = copy_capability_map(defaults.permissions)
        pages = list(defaults.page_access or [])

    for module, capabilities in (account.permissions or {}).items():
        if not isinstance(capabilities, dict):
            continue
        merged = permissions.setdefault(module, {})
        for action, value in capabilities.items():
            if value is not None:
                merged[action] = value

    if account.accessible_pages:
        union: list[str] = []
        for page in pages + list(account.accessible_pages):
            if page not in union:
                union.append(page)
        pages = union

    return EffectivePermissions(permissions=permissions, accessible_pages=pages, role=account.role)
