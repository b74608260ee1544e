from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


SEX_CHOICES = ("Male", "Female", "Other", "")


class Customer(db.Model):
    """
    Patient of a shop.

    MULTI-TENANT: Customers belong to exactly one shop. Deletion is soft
    (is_active=False) so that examination history stays attached.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_shop_name", "shop_id", "name"),
        db.Index("ix_customers_shop_phone", "shop_id", "phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer, nullable=True)
    sex = db.Column(db.String(16), nullable=True)
    phone = db.Column(db.String(15), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    address = db.Column(db.JSON, nullable=True)
    medical_history = db.Column(db.JSON, nullable=True)
    emergency_contact = db.Column(db.JSON, nullable=True)
    insurance = db.Column(db.JSON, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    last_visit_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    shop = db.relationship("Shop", backref=db.backref("customers", lazy=True))

    def __repr__(self) -> str:
        return f"<Customer id={self.id} shop_id={self.shop_id} name={self.name!r}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "sex": self.sex,
            "phone": self.phone,
            "email": self.email,
            "address": self.address or {},
        }

    def to_dict(self) -> dict:
        medical_history = {"allergies": [], "medications": [], "conditions": [], "notes": None}
        medical_history.update(self.medical_history or {})
        return {
            "id": self.id,
            "shop": self.shop_id,
            "name": self.name,
            "age": self.age,
            "sex": self.sex,
            "phone": self.phone,
            "email": self.email,
            "address": self.address or {},
            "medicalHistory": medical_history,
            "emergencyContact": self.emergency_contact or {},
            "insurance": self.insurance or {},
            "isActive": self.is_active,
            "lastVisit": to_utc_z(self.last_visit_at),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
