# Overview: Service-layer operations for JWT access and refresh tokens.

"""
Token Service

WHY: Stateless access tokens keep per-request authentication to one
signature check and one account lookup, while a single stored refresh
token per account keeps long-lived sessions revocable.

DESIGN:
- Access token: HS256 JWT signed with JWT_SECRET, 15 minute expiry
- Refresh token: HS256 JWT signed with JWT_REFRESH_SECRET, 30 day expiry
- Payload: {userId, type, iat, exp, jti}; jti makes every token unique
- The SHA-256 of the live refresh token is stored on the account. Issuing
  a new pair overwrites it, which invalidates the previous refresh token.
- Refresh rotates: the presented token must match the stored hash, and a
  new pair replaces it.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

import jwt
from flask import current_app

from ..errors import AuthenticationError
from ..extensions import db
from ..models import User
from ..time_utils import utcnow


ACCESS = "access"
REFRESH = "refresh"


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _secret(kind: str) -> str:
    key = "JWT_SECRET" if kind == ACCESS else "JWT_REFRESH_SECRET"
    return current_app.config[key]


def _ttl(kind: str) -> timedelta:
    if kind == ACCESS:
        return timedelta(minutes=current_app.config.get("ACCESS_TOKEN_TTL_MINUTES", 15))
    return timedelta(days=current_app.config.get("REFRESH_TOKEN_TTL_DAYS", 30))


def _encode(user_id: int, kind: str) -> str:
    now = utcnow()
    payload = {
        "userId": user_id,
        "type": kind,
        "iat": now,
        "exp": now + _ttl(kind),
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, _secret(kind), algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"))


def decode_token(token: str, kind: str = ACCESS) -> dict | None:
    """Verify signature, expiry and token type. Returns the payload or None."""
    try:
        payload = jwt.decode(
            token,
            _secret(kind),
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get("type") != kind or not isinstance(payload.get("userId"), int):
        return None
    return payload


def issue_tokens(user: User) -> TokenPair:
    """Issue a fresh pair and store the refresh token hash (overwriting any previous one)."""
    pair = TokenPair(access_token=_encode(user.id, ACCESS), refresh_token=_encode(user.id, REFRESH))
    user.refresh_token_hash = hash_token(pair.refresh_token)
    db.session.commit()
    return pair


def authenticate_access_token(token: str | None) -> User:
    """
    Resolve an access token to an active account.

    SECURITY: Raises AuthenticationError (401) if:
    - No token
    - Invalid, expired or wrong-type token
    - Account missing or deactivated
    - Account's shop deactivated
    """
    if not token:
        raise AuthenticationError("No token provided, authorization denied")

    payload = decode_token(token, ACCESS)
    if not payload:
        raise AuthenticationError("Token is not valid")

    user = db.session.get(User, payload["userId"])
    if not user:
        raise AuthenticationError("Token is not valid")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")
    if user.shop is not None and not user.shop.is_active:
        raise AuthenticationError("Shop is deactivated")
    return user


def rotate_refresh_token(refresh_token: str | None) -> tuple[User, TokenPair]:
    """Exchange a valid, matching stored refresh token for a new pair."""
    if not refresh_token:
        raise AuthenticationError("Refresh token required")

    payload = decode_token(refresh_token, REFRESH)
    if not payload:
        raise AuthenticationError("Invalid refresh token")

    user = db.session.get(User, payload["userId"])
    if not user or not user.refresh_token_hash:
        raise AuthenticationError("Invalid refresh token")
    if not secrets.compare_digest(user.refresh_token_hash, hash_token(refresh_token)):
        current_app.logger.warning("Stale refresh token presented for user_id=%s", user.id)
        raise AuthenticationError("Invalid refresh token")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    if user.shop is not None and not user.shop.is_active:
        raise AuthenticationError("Shop is deactivated")

    pair = issue_tokens(user)
    current_app.logger.info("Rotated refresh token for user_id=%s", user.id)
    return user, pair


def revoke_refresh_token(user: User) -> None:
    user.refresh_token_hash = None
    db.session.commit()
