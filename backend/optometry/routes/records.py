# Overview: Flask API routes for optometry records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission
from ..pagination import get_page_args, paginate
from ..services import record_service


records_bp = Blueprint("records", __name__, url_prefix="/api/records")


@records_bp.get("")
@require_auth
@require_permission("records", "view")
def list_records():
    """
    Paginated record list, newest examination first.

    Filters: customerId, startDate, endDate (ISO-8601, inclusive).
    """
    page, limit = get_page_args()
    query = record_service.list_records(
        g.current_user,
        customer_id=request.args.get("customerId"),
        start_date=request.args.get("startDate"),
        end_date=request.args.get("endDate"),
    )
    return jsonify(paginate(query, page=page, limit=limit, key="records"))


@records_bp.get("/stats")
@require_auth
@require_permission("dashboard", "view")
def record_stats():
    return jsonify(record_service.get_record_stats(g.current_user))


@records_bp.get("/customer/<int:customer_id>")
@require_auth
@require_permission("records", "view")
def customer_records(customer_id: int):
    customer, records = record_service.get_customer_records(g.current_user, customer_id)
    return jsonify({
        "customer": customer.to_dict(),
        "records": [record.to_dict() for record in records],
    })


@records_bp.get("/<int:record_id>")
@require_auth
@require_permission("records", "view")
def get_record(record_id: int):
    return jsonify(record_service.get_record(g.current_user, record_id).to_dict())


@records_bp.post("")
@require_auth
@require_permission("records", "create")
def create_record():
    data = request.get_json(silent=True) or {}
    record = record_service.create_record(g.current_user, data)
    return jsonify({"message": "Record created successfully", "record": record.to_dict()}), 201


@records_bp.put("/<int:record_id>")
@require_auth
@require_permission("records", "edit")
def update_record(record_id: int):
    data = request.get_json(silent=True) or {}
    record = record_service.update_record(g.current_user, record_id, data)
    return jsonify({"message": "Record updated successfully", "record": record.to_dict()})


@records_bp.delete("/<int:record_id>")
@require_auth
@require_permission("records", "delete")
def delete_record(record_id: int):
    record_service.delete_record(g.current_user, record_id)
    return jsonify({"message": "Record deleted successfully"})
