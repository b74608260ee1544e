# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Customer, OptometryRecord
from ..models.customers import SEX_CHOICES
from ..time_utils import start_of_month
from ..validation import ModelValidationPolicy, normalize_email, validate_payload
from .tenant_service import get_scoped_or_404, resolve_target_shop, scoped_query, shop_scope


CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "age",
        "sex",
        "phone",
        "email",
        "address",
        "medicalHistory",
        "emergencyContact",
        "insurance",
        "isActive",
    },
    required_on_create={"name"},
    field_aliases={
        "medicalHistory": "medical_history",
        "emergencyContact": "emergency_contact",
        "isActive": "is_active",
    },
    # Echoed read-only fields from a previously fetched customer
    ignored_fields={"id", "_id", "shop", "lastVisit", "createdAt", "updatedAt"},
    choices={"sex": SEX_CHOICES},
    ranges={"age": (0, 150)},
    min_lengths={"name": 2, "phone": 10},
)


def _clean(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=partial)
    if patch.get("email"):
        patch["email"] = normalize_email(patch["email"])
    elif "email" in patch:
        patch["email"] = None
    if patch.get("phone") == "":
        patch["phone"] = None
    return patch


def list_customers(user, *, search: str = ""):
    query = scoped_query(Customer, user).filter(Customer.is_active.is_(True))
    search = (search or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Customer.name.ilike(pattern),
            Customer.phone.ilike(pattern),
            Customer.email.ilike(pattern),
        ))
    return query.order_by(Customer.name.asc(), Customer.id.asc())


def get_customer(user, customer_id: int) -> Customer:
    return get_scoped_or_404(Customer, user, customer_id, "Customer not found")


def create_customer(user, payload: dict) -> Customer:
    payload = dict(payload or {})
    requested_shop = payload.pop("shop", None)
    shop_id = resolve_target_shop(user, requested_shop)

    patch = _clean(payload, partial=False)
    customer = Customer(shop_id=shop_id, **patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(user, customer_id: int, payload: dict) -> Customer:
    customer = get_customer(user, customer_id)
    patch = _clean(payload, partial=True)
    for key, value in patch.items():
        setattr(customer, key, value)
    db.session.commit()
    return customer


def delete_customer(user, customer_id: int) -> Customer:
    """Soft delete: the customer disappears from lists but keeps its records."""
    customer = get_customer(user, customer_id)
    customer.is_active = False
    db.session.commit()
    return customer


def get_customer_stats(user) -> dict:
    shop_id = shop_scope(user)

    customers = db.session.query(func.count(Customer.id)).filter(Customer.is_active.is_(True))
    records = db.session.query(func.count(func.distinct(OptometryRecord.customer_id)))
    if shop_id is not None:
        customers = customers.filter(Customer.shop_id == shop_id)
        records = records.filter(OptometryRecord.shop_id == shop_id)

    return {
        "totalCustomers": customers.scalar(),
        "newCustomersThisMonth": customers.filter(Customer.created_at >= start_of_month()).scalar(),
        "customersWithRecords": records.scalar(),
    }
