# backend/stockgrid/routes/system.py
"""
System health, version and business-day endpoints.

/api/day exposes the resolver so clients can see the exact UTC bounds a
date maps to.
"""

import time
from flask import Blueprint, current_app, jsonify, request
from ..business_day import resolve_day, today_local
from ..decorators import handle_ledger_errors
from ..extensions import db
from ..models import Cashier, Sheet
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        cashier_count = db.session.query(Cashier).count()
        sheet_count = db.session.query(Sheet).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "cashiers": cashier_count,
                "sheets": sheet_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 503 if database_health["status"] == "unhealthy" else 200

    response = {
        "status": database_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "business_date": today_local(),
        "checks": {
            "database": database_health,
        }
    }

    return response, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info."""
    import sys

    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }


@system_bp.get("/api/day")
@handle_ledger_errors
def business_day():
    """UTC bounds of ?date=YYYY-MM-DD (default: today at UTC+8)."""
    return jsonify(resolve_day(request.args.get("date")).to_dict()), 200
