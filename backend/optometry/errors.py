# Overview: Error taxonomy shared by services and routes, plus the JSON error envelope.

"""
API Errors

Every failure leaves the API in one envelope:

    {"message": str, "errors": [...] (optional), "timestamp": "...Z"}

Services raise ApiError subclasses; create_app() registers handlers that
render them. Routes never build error payloads for service failures.

HTTP mapping:
- AuthenticationError -> 401
- AuthorizationError  -> 403
- ValidationError     -> 400 (with per-field errors)
- ConflictError       -> 400 (duplicate email, duplicate shop name)
- NotFoundError       -> 404
- anything else       -> 500 (traceback only in development)
"""

from __future__ import annotations

import traceback

from flask import current_app, jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .time_utils import to_utc_z, utcnow


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors


class AuthenticationError(ApiError):
    """Missing, invalid or expired credentials, or a deactivated account."""

    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(ApiError):
    """Authenticated, but the access-control gate denied the request."""

    status_code = 403
    default_message = "Access denied"


class ValidationError(ApiError, ValueError):
    """400-level input problem."""

    status_code = 400
    default_message = "Validation error"


class ConflictError(ApiError, ValueError):
    """Uniqueness violation (email, shop name)."""

    status_code = 400
    default_message = "Duplicate entry"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


def error_response(message: str, status_code: int, errors: list[dict] | None = None, **extra):
    """Render the standard error envelope."""
    body = {"message": message, "timestamp": to_utc_z(utcnow())}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return jsonify(body), status_code


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        return error_response(exc.message, exc.status_code, exc.errors)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        from .extensions import db

        db.session.rollback()
        current_app.logger.warning("Integrity error on %s: %s", request.path, exc.orig)
        return error_response(ConflictError.default_message, ConflictError.status_code)

    @app.errorhandler(404)
    def handle_not_found(exc):
        return error_response("Route not found", 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(exc):
        return error_response("Method not allowed", 405)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return error_response(exc.description or exc.name, exc.code or 500)

        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        extra = {}
        if current_app.config.get("ENV_NAME") == "development":
            extra["error"] = traceback.format_exc()
        return error_response("Server error", 500, **extra)
