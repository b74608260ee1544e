from __future__ import annotations

from copy import deepcopy

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


SUBSCRIPTION_PLANS = ("basic", "professional", "enterprise")
SUBSCRIPTION_STATUSES = ("active", "inactive", "suspended", "canceled")
SHOP_STATUSES = ("active", "inactive", "suspended")

DEFAULT_SUBSCRIPTION_FEATURES = {
    "maxUsers": 5,
    "maxCustomers": 1000,
    "advancedReports": False,
    "customPermissions": False,
    "apiAccess": False,
}

DEFAULT_SHOP_SETTINGS = {
    "currency": "USD",
    "timezone": "America/New_York",
    "language": "en",
    "enableAdvancedPermissions": True,
    "defaultUserRole": "optometrist",
    "businessHours": {
        "monday": {"open": "09:00", "close": "17:00", "closed": False},
        "tuesday": {"open": "09:00", "close": "17:00", "closed": False},
        "wednesday": {"open": "09:00", "close": "17:00", "closed": False},
        "thursday": {"open": "09:00", "close": "17:00", "closed": False},
        "friday": {"open": "09:00", "close": "17:00", "closed": False},
        "saturday": {"open": "09:00", "close": "13:00", "closed": False},
        "sunday": {"open": None, "close": None, "closed": True},
    },
    "appointmentSettings": {
        "slotDuration": 30,
        "maxAppointmentsPerDay": 20,
        "allowOnlineBooking": False,
    },
    "notifications": {"email": True, "sms": False, "push": True},
    "dataRetention": {
        "customerRecords": 3650,
        "auditLogs": 365,
        "backupFrequency": "weekly",
    },
}

DEFAULT_ADDRESS = {
    "street": None,
    "city": None,
    "state": None,
    "zipCode": None,
    "country": "USA",
}


def merge_settings(base: dict, patch: dict | None) -> dict:
    """Recursive merge returning a new dict; patch values win, nested dicts merge."""
    merged = deepcopy(base)
    for key, value in (patch or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


class Shop(db.Model):
    """
    Tenant root: every clinic is a Shop.

    WHY: Shared-database multi-tenancy. Staff accounts, customers, records
    and the shop's permission registry all carry shop_id, and no data
    crosses shop boundaries except for the platform admin.

    LIFECYCLE:
    - Created by the platform admin (or by shop-owner self-registration)
    - Creation seeds the permission registry for all five roles
    - Deactivation (status inactive/suspended) is reversible; accounts of an
      inactive shop are rejected at authentication
    """
    __tablename__ = "shops"
    __table_args__ = (
        db.Index("ix_shops_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)

    owner_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", use_alter=True, name="fk_shops_owner_id"),
        nullable=True,
        index=True,
    )

    contact_email = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.JSON, nullable=False, default=lambda: deepcopy(DEFAULT_ADDRESS))

    subscription_plan = db.Column(db.String(32), nullable=False, default="basic")
    subscription_status = db.Column(db.String(32), nullable=False, default="active")
    subscription_start_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    subscription_end_date = db.Column(db.DateTime(timezone=True), nullable=True)
    subscription_features = db.Column(
        db.JSON, nullable=False, default=lambda: deepcopy(DEFAULT_SUBSCRIPTION_FEATURES)
    )

    settings = db.Column(db.JSON, nullable=False, default=lambda: deepcopy(DEFAULT_SHOP_SETTINGS))

    status = db.Column(db.String(16), nullable=False, default="active")
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_by_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", use_alter=True, name="fk_shops_created_by_id"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User", foreign_keys=[owner_id], post_update=True)
    created_by = db.relationship("User", foreign_keys=[created_by_id], post_update=True)

    def __repr__(self) -> str:
        return f"<Shop id={self.id} name={self.name!r} status={self.status}>"

    def effective_settings(self) -> dict:
        return merge_settings(DEFAULT_SHOP_SETTINGS, self.settings)

    @property
    def default_user_role(self) -> str:
        return self.effective_settings()["defaultUserRole"]

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "owner": self.owner.to_summary() if self.owner else None,
            "contact": {
                "email": self.contact_email,
                "phone": self.contact_phone,
                "address": merge_settings(DEFAULT_ADDRESS, self.address),
            },
            "subscription": {
                "plan": self.subscription_plan,
                "status": self.subscription_status,
                "startDate": to_utc_z(self.subscription_start_date),
                "endDate": to_utc_z(self.subscription_end_date),
                "features": merge_settings(DEFAULT_SUBSCRIPTION_FEATURES, self.subscription_features),
            },
            "settings": self.effective_settings(),
            "status": self.status,
            "isActive": self.is_active,
            "createdBy": self.created_by_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
