# Overview: Utility functions for permission lookups and validation.

from __future__ import annotations

from copy import deepcopy

from ..errors import ValidationError
from .definitions import ACTIONS, MODULES, PAGES, PAGE_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS, FALLBACK_ROLE, ROLES


def empty_capabilities() -> dict[str, bool]:
    return {action: False for action in ACTIONS}


def full_permission_matrix() -> dict[str, dict[str, bool]]:
    """Every module with every capability granted."""
    return {module: {action: True for action in ACTIONS} for module in MODULES}


def get_default_permissions(role: str) -> dict[str, dict[str, bool]]:
    """
    Default capability map for a role, with every capability key present.

    Unknown roles fall back to the assistant table.
    """
    table = DEFAULT_ROLE_PERMISSIONS.get(role, DEFAULT_ROLE_PERMISSIONS[FALLBACK_ROLE])
    permissions = {}
    for module, granted in table.items():
        record = empty_capabilities()
        record.update(granted)
        permissions[module] = record
    return permissions


def get_default_pages(role: str) -> list[str]:
    table = DEFAULT_ROLE_PERMISSIONS.get(role, DEFAULT_ROLE_PERMISSIONS[FALLBACK_ROLE])
    return list(table.keys())


def get_available_pages() -> list[dict]:
    return [
        {"name": name, "label": label, "description": description}
        for name, label, description in PAGE_DEFINITIONS
    ]


def validate_role(role: str) -> bool:
    return role in ROLES


def validate_module(module: str) -> bool:
    return module in MODULES


def validate_action(action: str) -> bool:
    return action in ACTIONS


def validate_page(page: str) -> bool:
    return page in PAGES


def normalize_capability_map(raw, *, field: str = "permissions", fill_missing: bool = True) -> dict:
    """
    Validate a client-supplied capability map at the write boundary.

    Module names must be known modules and capability keys must be known
    actions; values must be booleans (None is accepted and dropped).

    fill_missing=True  -> registry records: every action key present, missing = False
    fill_missing=False -> account overrides: only the supplied keys are kept

    Raises ValidationError carrying one entry per offending field.
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError("Validation error", [{"field": field, "message": "Permissions must be an object"}])

    errors = []
    normalized: dict[str, dict[str, bool]] = {}

    for module, capabilities in raw.items():
        if not validate_module(module):
            errors.append({"field": f"{field}.{module}", "message": f"Unknown module: {module}"})
            continue
        if not isinstance(capabilities, dict):
            errors.append({"field": f"{field}.{module}", "message": "Capabilities must be an object"})
            continue

        record = empty_capabilities() if fill_missing else {}
        for action, value in capabilities.items():
            if not validate_action(action):
                errors.append({"field": f"{field}.{module}.{action}", "message": f"Unknown action: {action}"})
                continue
            if value is None:
                continue
            if not isinstance(value, bool):
                errors.append({"field": f"{field}.{module}.{action}", "message": "Capability must be a boolean"})
                continue
            record[action] = value
        normalized[module] = record

    if errors:
        raise ValidationError("Validation error", errors)
    return normalized


def normalize_page_list(raw, *, field: str = "pageAccess") -> list[str]:
    """Validate a page list and drop duplicates, keeping first occurrence order."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("Validation error", [{"field": field, "message": "Page access must be an array"}])

    unknown = [page for page in raw if not isinstance(page, str) or not validate_page(page)]
    if unknown:
        raise ValidationError(
            "Validation error",
            [{"field": field, "message": f"Unknown page: {page}"} for page in unknown],
        )

    seen: list[str] = []
    for page in raw:
        if page not in seen:
            seen.append(page)
    return seen


def copy_capability_map(permissions: dict | None) -> dict:
    return deepcopy(permissions) if permissions else {}
