# Overview: Permission system package.
# Re-exports all public APIs for convenient imports.

from .definitions import Action, ACTIONS, MODULES, PAGES, PAGE_DEFINITIONS
from .roles import (
    Role,
    ROLES,
    SHOP_STAFF_ROLES,
    DEFAULT_USER_ROLE_CHOICES,
    DEFAULT_ROLE_PERMISSIONS,
    FALLBACK_ROLE,
)
from .helpers import (
    copy_capability_map,
    empty_capabilities,
    full_permission_matrix,
    get_available_pages,
    get_default_pages,
    get_default_permissions,
    normalize_capability_map,
    normalize_page_list,
    validate_action,
    validate_module,
    validate_page,
    validate_role,
)

__all__ = [
    "Action",
    "ACTIONS",
    "MODULES",
    "PAGES",
    "PAGE_DEFINITIONS",
    "Role",
    "ROLES",
    "SHOP_STAFF_ROLES",
    "DEFAULT_USER_ROLE_CHOICES",
    "DEFAULT_ROLE_PERMISSIONS",
    "FALLBACK_ROLE",
    "copy_capability_map",
    "empty_capabilities",
    "full_permission_matrix",
    "get_available_pages",
    "get_default_pages",
    "get_default_permissions",
    "normalize_capability_map",
    "normalize_page_list",
    "validate_action",
    "validate_module",
    "validate_page",
    "validate_role",
]
