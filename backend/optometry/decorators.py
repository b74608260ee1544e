# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, g

from .errors import AuthenticationError, AuthorizationError, error_response
from .services import access_control, token_service


def _is_authenticated() -> bool:
    return getattr(g, 'current_user', None) is not None


def get_bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.shop_id: The user's shop ID (None for the platform admin)

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User account missing or deactivated
    - Shop deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            user = token_service.authenticate_access_token(get_bearer_token())
        except AuthenticationError as exc:
            return error_response(exc.message, 401)

        g.current_user = user
        g.shop_id = user.shop_id

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated user to hold one of `roles`."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return error_response("Authentication required", 401)
            try:
                access_control.require_role(g.current_user, *roles)
            except AuthorizationError as exc:
                return error_response(exc.message, 403)
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_permission(module: str, action: str):
    """
    Require a module capability, evaluated by the access-control gate.

    The admin bypass lives in the gate, not here.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return error_response("Authentication required", 401)

            try:
                access_control.require_permission(g.current_user, module, action)
            except AuthorizationError as exc:
                return error_response(exc.message, 403, required_permission=f"{module}:{action}")

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_page_access(page: str):
    """Require navigation access to `page`."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return error_response("Authentication required", 401)

            try:
                access_control.require_page_access(g.current_user, page)
            except AuthorizationError as exc:
                return error_response(exc.message, 403, required_page=page)

            return f(*args, **kwargs)

        return decorated_function
    return decorator
