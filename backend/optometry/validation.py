from __future__ import annotations
import re
from datetime import datetime
from optometry.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import JSON, Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from optometry.errors import ValidationError, ConflictError  # noqa: F401  (re-exported)


EMAIL_RE = re.compile(r"^\w+([.+-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,})+$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: wire names clients are allowed to set (security boundary)
    - required_on_create: wire names required for POST
    - field_aliases: wire name -> column key (camelCase API over snake_case columns)
    - ignored_fields: wire names silently dropped (read-only echoes such as id)
    - choices / ranges / min_lengths: per-column rules not captured by column metadata
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    field_aliases: dict[str, str] | None = None
    ignored_fields: set[str] | None = None
    choices: dict[str, tuple] | None = None
    ranges: dict[str, tuple[int, int]] | None = None
    min_lengths: dict[str, int] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any, field: str):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{field} must be an integer")
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{field} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{field} must be an integer")
        # Reject floats explicitly
        if isinstance(value, float):
            raise ValidationError(f"{field} must be an integer, not a decimal")
        # Other types
        raise ValidationError(f"{field} must be an integer")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{field} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{field} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{field} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{field} must be a datetime")

    # Nested documents (address, medical history, eye data)
    if isinstance(coltype, JSON):
        if isinstance(value, (dict, list)):
            return value
        raise ValidationError(f"{field} must be an object")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{field} must be a string")
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields) and its per-column rules
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)

    All problems are collected and raised together as one ValidationError
    whose `errors` lists {field, message} per offending field.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    aliases = policy.field_aliases or {}
    ignored = policy.ignored_fields or set()
    errors: list[dict] = []

    required = policy.required_on_create or set()
    if not partial:
        for field in sorted(required):
            if payload.get(field) in (None, ""):
                errors.append({"field": field, "message": f"{field} is required"})

    cols = _columns_by_key(model)
    patch: dict = {}

    for field, raw in payload.items():
        if field in ignored:
            continue
        # Reject unknown / non-writable fields
        if field not in policy.writable_fields:
            errors.append({"field": field, "message": f"Field not allowed: {field}"})
            continue
        key = aliases.get(field, field)
        col = cols.get(key)
        if col is None:
            errors.append({"field": field, "message": f"Unknown field: {field}"})
            continue

        # NULL handling
        if raw is None:
            if not col.nullable:
                errors.append({"field": field, "message": f"{field} cannot be null"})
            else:
                patch[key] = None
            continue

        try:
            val = _coerce_value(col, raw, field)
        except ValidationError as exc:
            errors.append({"field": field, "message": exc.message})
            continue

        problem = _check_rules(col, key, field, val, policy)
        if problem:
            errors.append({"field": field, "message": problem})
            continue

        patch[key] = val

    if errors:
        raise ValidationError("Validation error", errors)
    return patch


def _check_rules(col, key: str, field: str, val: Any, policy: ModelValidationPolicy) -> str | None:
    # Blank string check for non-nullable text fields
    if isinstance(col.type, (String, Text)) and not col.nullable:
        if isinstance(val, str) and val == "":
            return f"{field} cannot be blank"

    # Max length check for String(n)
    if isinstance(col.type, String) and col.type.length and isinstance(val, str):
        if len(val) > col.type.length:
            return f"{field} exceeds max length {col.type.length}"

    min_length = (policy.min_lengths or {}).get(key)
    if min_length and isinstance(val, str) and val and len(val) < min_length:
        return f"{field} must be at least {min_length} characters"

    choices = (policy.choices or {}).get(key)
    if choices is not None and val not in choices:
        return f"Invalid {field} value"

    bounds = (policy.ranges or {}).get(key)
    if bounds is not None and isinstance(val, int):
        low, high = bounds
        if val < low or val > high:
            return f"{field} must be between {low} and {high}"

    return None


def normalize_email(value: Any, field: str = "email") -> str:
    """Lowercase/trim an email and check its shape."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Validation error", [{"field": field, "message": "Please provide a valid email"}])
    email = value.strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("Validation error", [{"field": field, "message": "Please provide a valid email"}])
    return email


def require_fields(payload: dict | None, *fields: str) -> dict:
    """Reject a payload missing any of `fields` (None or blank string)."""
    payload = payload or {}
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(
            "Validation error",
            [{"field": f, "message": f"{f} is required"} for f in missing],
        )
    return payload
