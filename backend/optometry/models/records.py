from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


EXAMINATION_TYPES = ("routine", "comprehensive", "contact_lens", "follow_up", "emergency", "other")
PRESCRIPTION_TYPES = ("distance", "reading", "bifocal", "progressive", "computer", "other")
LENS_TYPES = ("single_vision", "bifocal", "progressive", "office", "other")
RECORD_STATUSES = ("draft", "completed", "cancelled")

EYE_MEASUREMENT_KEYS = ("sph", "cyl", "axis", "va")


def empty_eye() -> dict:
    return {
        "dv": {key: "" for key in EYE_MEASUREMENT_KEYS},
        "add": {key: "" for key in EYE_MEASUREMENT_KEYS},
    }


class OptometryRecord(db.Model):
    """
    One eye examination of a customer.

    MULTI-TENANT: shop_id always equals the customer's shop_id; the record
    service derives it from the customer rather than trusting input.

    Eye data is stored per eye as {"dv": {...}, "add": {...}} with string
    measurements (sph, cyl, axis, va). Deletion is hard.
    """
    __tablename__ = "optometry_records"
    __table_args__ = (
        db.Index("ix_optometry_records_shop_customer", "shop_id", "customer_id"),
        db.Index("ix_optometry_records_shop_date", "shop_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    right_eye = db.Column(db.JSON, nullable=False, default=empty_eye)
    left_eye = db.Column(db.JSON, nullable=False, default=empty_eye)

    ph = db.Column(db.String(32), nullable=True)
    prism = db.Column(db.String(32), nullable=True)
    base = db.Column(db.String(32), nullable=True)
    pd = db.Column(db.String(32), nullable=True)

    optometrist = db.Column(db.String(100), nullable=True)
    assistant = db.Column(db.String(100), nullable=True)

    examination_type = db.Column(db.String(32), nullable=False, default="routine")

    chief_complaint = db.Column(db.Text, nullable=True)
    history = db.Column(db.Text, nullable=True)
    diagnosis = db.Column(db.Text, nullable=True)
    recommendations = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    prescription_type = db.Column(db.String(32), nullable=True)
    lens_type = db.Column(db.String(32), nullable=True)
    frame = db.Column(db.String(120), nullable=True)

    next_appointment = db.Column(db.DateTime(timezone=True), nullable=True)
    follow_up_notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="completed")

    signed_by = db.Column(db.String(100), nullable=True)
    signature_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    shop = db.relationship("Shop", backref=db.backref("records", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("records", lazy=True))

    def __repr__(self) -> str:
        return f"<OptometryRecord id={self.id} customer_id={self.customer_id} date={self.date}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop": self.shop_id,
            "customer": self.customer.to_summary() if self.customer else self.customer_id,
            "date": to_utc_z(self.date),
            "right_eye": self.right_eye or empty_eye(),
            "left_eye": self.left_eye or empty_eye(),
            "ph": self.ph,
            "prism": self.prism,
            "base": self.base,
            "pd": self.pd,
            "optometrist": self.optometrist,
            "assistant": self.assistant,
            "examinationType": self.examination_type,
            "chiefComplaint": self.chief_complaint,
            "history": self.history,
            "diagnosis": self.diagnosis,
            "recommendations": self.recommendations,
            "notes": self.notes,
            "prescriptionType": self.prescription_type,
            "lensType": self.lens_type,
            "frame": self.frame,
            "nextAppointment": to_utc_z(self.next_appointment),
            "followUpNotes": self.follow_up_notes,
            "status": self.status,
            "signedBy": self.signed_by,
            "signatureDate": to_utc_z(self.signature_date),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
