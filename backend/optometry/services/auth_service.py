# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service with Multi-Tenant Support

WHY: Every action must be attributable. Uses bcrypt for password hashing
and verifies the account (and its shop) is active at login.

MULTI-TENANT: Staff accounts belong to exactly one shop (shop_id); the
platform admin has none. Email is the login identifier and is unique across
the platform.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default)
- Minimum 6 characters required
- Tokens managed separately (see token_service.py)
"""

import bcrypt
from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Shop, User
from ..permissions import validate_role
from ..time_utils import utcnow
from ..validation import normalize_email


MIN_PASSWORD_LENGTH = 6
NAME_MAX_LENGTH = 100


class InvalidCredentialsError(ValidationError):
    """Login rejected. Same message for unknown email and wrong password."""

    default_message = "Invalid credentials"


def validate_password_length(password, field: str = "password") -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            "Validation error",
            [{"field": field, "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"}],
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Cost factor comes from BCRYPT_ROUNDS so tests can run with a low cost.
    Password length is validated before hashing.
    """
    validate_password_length(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def _validate_name(name, field: str = "name") -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Validation error", [{"field": field, "message": "Name is required"}])
    name = name.strip()
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(
            "Validation error",
            [{"field": field, "message": f"Name cannot exceed {NAME_MAX_LENGTH} characters"}],
        )
    return name


def email_exists(email: str) -> bool:
    return db.session.query(User.id).filter_by(email=email).first() is not None


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    role: str = "optometrist",
    shop_id: int | None = None,
    phone: str | None = None,
    department: str | None = None,
    license_number: str | None = None,
    specialization: str | None = None,
    notes: str | None = None,
    commit: bool = True,
) -> User:
    """
    Create a new account with a bcrypt password hash.

    Raises:
        ValidationError: bad name/email/password/role
        ConflictError: email already registered
        NotFoundError: shop_id does not reference a shop

    commit=False flushes only, for callers composing a larger sequence
    (tenant creation).
    """
    name = _validate_name(name)
    email = normalize_email(email)
    if not validate_role(role):
        raise ValidationError("Validation error", [{"field": "role", "message": "Invalid role"}])

    if email_exists(email):
        raise ConflictError("User already exists with this email")

    if shop_id is not None and not db.session.get(Shop, shop_id):
        raise NotFoundError("Shop not found")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        shop_id=shop_id,
        phone=phone,
        department=department,
        license_number=license_number,
        specialization=specialization,
        notes=notes,
        is_active=True,
    )
    db.session.add(user)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def authenticate(email: str, password: str) -> User:
    """
    Authenticate by email + password.

    Updates last_login_at on success.

    Raises InvalidCredentialsError for unknown email or wrong password, and
    ValidationError when the account or its shop is deactivated.
    """
    if not isinstance(email, str) or not email.strip():
        raise InvalidCredentialsError()

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        current_app.logger.warning("Failed login for unknown email %s", email)
        raise InvalidCredentialsError()

    if not user.is_active:
        current_app.logger.warning("Login attempt on deactivated account user_id=%s", user.id)
        raise ValidationError("Account is deactivated")

    if not verify_password(password, user.password_hash):
        current_app.logger.warning("Failed login for user_id=%s", user.id)
        raise InvalidCredentialsError()

    if user.shop is not None and not user.shop.is_active:
        current_app.logger.warning("Login attempt for user_id=%s of inactive shop_id=%s", user.id, user.shop_id)
        raise ValidationError("Shop is deactivated")

    user.last_login_at = utcnow()
    db.session.commit()
    current_app.logger.info("User user_id=%s logged in", user.id)
    return user


def set_password(user: User, new_password: str) -> None:
    user.password_hash = hash_password(new_password)
    # A password change ends every refresh-token session
    user.refresh_token_hash = None
    db.session.commit()


def change_password(user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password or "", user.password_hash):
        raise ValidationError("Current password is incorrect")
    validate_password_length(new_password, field="newPassword")
    set_password(user, new_password)


def update_profile(user: User, *, name: str | None = None, phone: str | None = None) -> User:
    if name:
        user.name = _validate_name(name)
    if phone:
        user.phone = str(phone).strip()
    db.session.commit()
    return user
