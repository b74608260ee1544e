from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class User(db.Model):
    """
    Staff and platform accounts.

    MULTI-TENANT: Every account except the platform admin belongs to exactly
    one shop (shop_id). Email is unique across the whole platform because it
    is the login identifier.

    PERMISSIONS: `permissions` and `accessible_pages` hold per-account
    overrides layered over the shop's role record by the permission resolver.
    NULL means "no override". JSON values are always reassigned, never
    mutated in place, so SQLAlchemy sees every change.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_shop_role", "shop_id", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False, default="optometrist")

    # MULTI-TENANT: nullable only for the platform admin
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=True, index=True)

    phone = db.Column(db.String(32), nullable=True)
    department = db.Column(db.String(100), nullable=True)
    license_number = db.Column(db.String(64), nullable=True)
    specialization = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # SHA-256 of the single live refresh token (see token_service)
    refresh_token_hash = db.Column(db.String(64), nullable=True)

    permissions = db.Column(db.JSON, nullable=True)
    accessible_pages = db.Column(db.JSON, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    shop = db.relationship("Shop", foreign_keys=[shop_id], backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
        }

    def to_dict(self, include_overrides: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "shop": self.shop.to_summary() if self.shop else None,
            "phone": self.phone,
            "department": self.department,
            "licenseNumber": self.license_number,
            "specialization": self.specialization,
            "notes": self.notes,
            "isActive": self.is_active,
            "lastLogin": to_utc_z(self.last_login_at) if self.last_login_at else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_overrides:
            data["permissions"] = self.permissions or {}
            data["accessiblePages"] = self.accessible_pages or []
        return data
