# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission
from ..pagination import get_page_args, paginate
from ..services import customer_service


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_permission("customers", "view")
def list_customers():
    page, limit = get_page_args()
    query = customer_service.list_customers(g.current_user, search=request.args.get("search", ""))
    return jsonify(paginate(query, page=page, limit=limit, key="customers"))


@customers_bp.get("/stats")
@require_auth
@require_permission("dashboard", "view")
def customer_stats():
    return jsonify(customer_service.get_customer_stats(g.current_user))


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("customers", "view")
def get_customer(customer_id: int):
    return jsonify(customer_service.get_customer(g.current_user, customer_id).to_dict())


@customers_bp.post("")
@require_auth
@require_permission("customers", "create")
def create_customer():
    data = request.get_json(silent=True) or {}
    customer = customer_service.create_customer(g.current_user, data)
    return jsonify({"message": "Customer created successfully", "customer": customer.to_dict()}), 201


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_permission("customers", "edit")
def update_customer(customer_id: int):
    data = request.get_json(silent=True) or {}
    customer = customer_service.update_customer(g.current_user, customer_id, data)
    return jsonify({"message": "Customer updated successfully", "customer": customer.to_dict()})


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission("customers", "delete")
def delete_customer(customer_id: int):
    customer_service.delete_customer(g.current_user, customer_id)
    return jsonify({"message": "Customer deleted successfully"})
