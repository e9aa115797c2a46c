# backend/restopos/routes/system.py
"""
System health endpoint.

Reports database connectivity and the state of today's register.
"""

import time
from flask import Blueprint, current_app

from ..extensions import db
from ..models import DailyClosure, LedgerMovement
from ..services.business_day import get_register_status, today
from restopos.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Check database connectivity with a couple of cheap counts."""
    start_time = time.time()
    try:
        movement_count = db.session.query(LedgerMovement).count()
        closure_count = db.session.query(DailyClosure).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "ledger_movements": movement_count,
                "daily_closures": closure_count,
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
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()

    response = {
        "status": database_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {
            "database": database_health,
        }
    }

    if database_health["status"] == "healthy":
        response["register"] = {
            "date": today().isoformat(),
            "status": get_register_status(),
        }
        return response, 200

    return response, 503
