# Overview: Flask API routes for system health and status; parses input and returns JSON responses.

"""
System Health and Status Endpoints

WHY: Load balancers and uptime checks need a cheap way to tell whether the
API can reach its database and whether the permission registry has been
seeded.

Endpoints:
- GET /api/health: dependency checks (503 when the database is unreachable)
- GET /api/status: environment and row counts
- GET /: service banner
"""

import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import Customer, OptometryRecord, PermissionRecord, Shop, User
from ..time_utils import utcnow


system_bp = Blueprint("system", __name__)

SERVICE_NAME = "Optometry API"


def check_database_health() -> dict:
    """Check database connectivity with a trivial query."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database connection failed",
        }


def check_permission_registry_health() -> dict:
    """
    Every shop should carry registry records.

    Shops without any are degraded, not down: their staff are denied
    everything until the registry is initialized.
    """
    start_time = time.time()
    try:
        shop_count = db.session.query(Shop).count()
        seeded = db.session.query(PermissionRecord.shop_id).distinct().count()
        elapsed_ms = (time.time() - start_time) * 1000

        details = {
            "shops": shop_count,
            "shops_with_registry": seeded,
        }
        if seeded < shop_count:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": f"{shop_count - seeded} shop(s) without permission records",
                "details": details,
            }
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Permission registry health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Permission registry error",
        }


@system_bp.get("/api/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    registry_health = check_permission_registry_health()

    all_checks = [database_health, registry_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "permission_registry": registry_health,
        },
    }
    return response, http_status


@system_bp.get("/api/status")
def status():
    return {
        "service": SERVICE_NAME,
        "environment": current_app.config.get("ENV_NAME"),
        "timestamp": utcnow().isoformat() + "Z",
        "counts": {
            "shops": db.session.query(Shop).count(),
            "users": db.session.query(User).count(),
            "customers": db.session.query(Customer).count(),
            "records": db.session.query(OptometryRecord).count(),
        },
    }


@system_bp.get("/")
def index():
    return {"message": f"{SERVICE_NAME} is running", "status": "ok"}
