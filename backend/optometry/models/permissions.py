from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class PermissionRecord(db.Model):
    """
    Role default permissions for one shop.

    MULTI-TENANT RBAC:
    - One record per (shop, role); the pair is unique and every write is an
      atomic upsert on it (see permission_service)
    - `permissions` maps module -> {view, create, edit, delete, export, import, manage}
      with all seven capability keys present
    - `page_access` lists the pages the role may open
    - Inactive records are ignored by the resolver (fail closed)
    """
    __tablename__ = "permission_records"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "role", name="uq_permission_records_shop_role"),
        db.Index("ix_permission_records_shop_id", "shop_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False)
    role = db.Column(db.String(32), nullable=False)

    permissions = db.Column(db.JSON, nullable=False, default=dict)
    page_access = db.Column(db.JSON, nullable=False, default=list)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    shop = db.relationship("Shop", backref=db.backref("permission_records", lazy=True))
    created_by = db.relationship("User")

    def __repr__(self) -> str:
        return f"<PermissionRecord shop_id={self.shop_id} role={self.role} active={self.is_active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop": self.shop_id,
            "role": self.role,
            "permissions": self.permissions or {},
            "pageAccess": self.page_access or [],
            "isActive": self.is_active,
            "createdBy": self.created_by_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
