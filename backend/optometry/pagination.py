# Overview: page/limit parsing and paginated list envelopes for list endpoints.

from __future__ import annotations

import math

from flask import current_app, request

from .errors import ValidationError


def get_page_args() -> tuple[int, int]:
    """Read ?page=&limit= with defaults; rejects non-positive or non-integer values."""
    default_limit = current_app.config.get("DEFAULT_PAGE_LIMIT", 10)
    max_limit = current_app.config.get("MAX_PAGE_LIMIT", 100)

    errors = []
    values = {}
    for name, default in (("page", 1), ("limit", default_limit)):
        raw = request.args.get(name)
        if raw in (None, ""):
            values[name] = default
            continue
        try:
            value = int(raw)
        except ValueError:
            errors.append({"field": name, "message": f"{name} must be an integer"})
            continue
        if value < 1:
            errors.append({"field": name, "message": f"{name} must be >= 1"})
            continue
        values[name] = value

    if errors:
        raise ValidationError("Validation error", errors)
    return values["page"], min(values["limit"], max_limit)


def paginate(query, *, page: int, limit: int, key: str, serializer=None) -> dict:
    """Run `query` for one page and wrap the rows in the list envelope."""
    total = query.order_by(None).count()
    rows = query.limit(limit).offset((page - 1) * limit).all()
    serialize = serializer or (lambda row: row.to_dict())
    return {
        key: [serialize(row) for row in rows],
        "totalPages": math.ceil(total / limit) if limit else 0,
        "currentPage": page,
        "total": total,
    }
