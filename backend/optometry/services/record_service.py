# Overview: Service-layer operations for optometry records; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, OptometryRecord
from ..models.records import (
    EXAMINATION_TYPES,
    EYE_MEASUREMENT_KEYS,
    LENS_TYPES,
    PRESCRIPTION_TYPES,
    RECORD_STATUSES,
)
from ..time_utils import parse_iso_datetime, start_of_day, start_of_month, utcnow
from ..validation import ModelValidationPolicy, validate_payload
from .tenant_service import get_scoped_or_404, scoped_query, shop_scope


RECORD_POLICY = ModelValidationPolicy(
    writable_fields={
        "date",
        "right_eye",
        "left_eye",
        "ph",
        "prism",
        "base",
        "pd",
        "optometrist",
        "assistant",
        "examinationType",
        "chiefComplaint",
        "history",
        "diagnosis",
        "recommendations",
        "notes",
        "prescriptionType",
        "lensType",
        "frame",
        "nextAppointment",
        "followUpNotes",
        "status",
        "signedBy",
        "signatureDate",
    },
    field_aliases={
        "examinationType": "examination_type",
        "chiefComplaint": "chief_complaint",
        "prescriptionType": "prescription_type",
        "lensType": "lens_type",
        "nextAppointment": "next_appointment",
        "followUpNotes": "follow_up_notes",
        "signedBy": "signed_by",
        "signatureDate": "signature_date",
    },
    # customer is resolved separately; the rest are read-only echoes
    ignored_fields={"id", "_id", "shop", "customer", "createdAt", "updatedAt"},
    choices={
        "examination_type": EXAMINATION_TYPES,
        "prescription_type": PRESCRIPTION_TYPES + ("",),
        "lens_type": LENS_TYPES + ("",),
        "status": RECORD_STATUSES,
    },
)


def normalize_eye(raw, field: str) -> dict:
    """
    Normalize one eye's measurements to {"dv": {...}, "add": {...}}.

    `nv` (near vision) is accepted as an alias of `add` and wins when both
    are present. Missing measurements become "".
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError("Validation error", [{"field": field, "message": f"{field} must be an object"}])

    def _section(*candidates) -> dict:
        out = {}
        for key in EYE_MEASUREMENT_KEYS:
            value = ""
            for candidate in candidates:
                if isinstance(candidate, dict) and candidate.get(key) not in (None, ""):
                    value = str(candidate[key]).strip()
                    break
            out[key] = value
        return out

    return {
        "dv": _section(raw.get("dv")),
        "add": _section(raw.get("nv"), raw.get("add")),
    }


def _clean(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=OptometryRecord, payload=payload, policy=RECORD_POLICY, partial=partial)
    for eye in ("right_eye", "left_eye"):
        if eye in patch:
            patch[eye] = normalize_eye(patch[eye], eye)
    return patch


def _resolve_customer(user, customer_id) -> Customer:
    if customer_id in (None, ""):
        raise ValidationError("Validation error", [{"field": "customer", "message": "Customer ID is required"}])
    try:
        customer_id = int(customer_id)
    except (TypeError, ValueError):
        raise ValidationError("Validation error", [{"field": "customer", "message": "Invalid customer ID"}])

    customer = scoped_query(Customer, user).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError("Customer not found or access denied")
    return customer


def list_records(user, *, customer_id=None, start_date=None, end_date=None):
    query = scoped_query(OptometryRecord, user)
    if customer_id not in (None, ""):
        try:
            query = query.filter(OptometryRecord.customer_id == int(customer_id))
        except ValueError:
            raise ValidationError("Validation error", [{"field": "customerId", "message": "Invalid customer ID"}])
    try:
        start = parse_iso_datetime(start_date) if start_date else None
        end = parse_iso_datetime(end_date) if end_date else None
    except ValueError:
        raise ValidationError("Validation error", [{"field": "startDate/endDate", "message": "Invalid date"}])
    if start:
        query = query.filter(OptometryRecord.date >= start)
    if end:
        query = query.filter(OptometryRecord.date <= end)
    return query.order_by(OptometryRecord.date.desc(), OptometryRecord.id.desc())


def get_record(user, record_id: int) -> OptometryRecord:
    return get_scoped_or_404(OptometryRecord, user, record_id, "Record not found")


def create_record(user, payload: dict) -> OptometryRecord:
    """
    Create a record for a customer of the caller's shop.

    The record's shop is always the customer's shop. The customer's last
    visit is stamped in the same commit.
    """
    payload = payload or {}
    customer = _resolve_customer(user, payload.get("customer"))
    patch = _clean(payload, partial=False)

    for eye in ("right_eye", "left_eye"):
        patch.setdefault(eye, normalize_eye(None, eye))

    record = OptometryRecord(shop_id=customer.shop_id, customer_id=customer.id, **patch)
    db.session.add(record)
    customer.last_visit_at = utcnow()
    db.session.commit()
    return record


def update_record(user, record_id: int, payload: dict) -> OptometryRecord:
    record = get_record(user, record_id)
    patch = _clean(payload or {}, partial=True)
    for key, value in patch.items():
        setattr(record, key, value)
    db.session.commit()
    return record


def delete_record(user, record_id: int) -> None:
    record = get_record(user, record_id)
    db.session.delete(record)
    db.session.commit()


def get_customer_records(user, customer_id: int) -> tuple[Customer, list[OptometryRecord]]:
    customer = _resolve_customer(user, customer_id)
    records = (
        db.session.query(OptometryRecord)
        .filter(OptometryRecord.customer_id == customer.id, OptometryRecord.shop_id == customer.shop_id)
        .order_by(OptometryRecord.date.desc(), OptometryRecord.id.desc())
        .all()
    )
    return customer, records


def get_record_stats(user) -> dict:
    shop_id = shop_scope(user)

    def _count(*criteria):
        query = db.session.query(func.count(OptometryRecord.id))
        if shop_id is not None:
            query = query.filter(OptometryRecord.shop_id == shop_id)
        return query.filter(*criteria).scalar()

    by_type = db.session.query(OptometryRecord.examination_type, func.count(OptometryRecord.id))
    if shop_id is not None:
        by_type = by_type.filter(OptometryRecord.shop_id == shop_id)
    by_type = by_type.group_by(OptometryRecord.examination_type).order_by(OptometryRecord.examination_type)

    return {
        "totalRecords": _count(),
        "recordsThisMonth": _count(OptometryRecord.date >= start_of_month()),
        "recordsToday": _count(OptometryRecord.date >= start_of_day()),
        "recordsByType": [
            {"examinationType": exam_type, "count": count} for exam_type, count in by_type.all()
        ],
    }
