# Overview: Flask API routes for daily closure and reopen; parses input and returns JSON responses.

"""
Cash Register Closure API Routes

DESIGN:
- POST /close is idempotent: closing twice returns the same closure
- POST /reopen requires the reopen password
- Closure history is read-only
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import json_body
from ..services import closure_service
from ..services.closure_service import ClosureError, InvalidCredentialsError
from ..services.concurrency import PersistenceError
from ..validation import ValidationError, optional_text


register_bp = Blueprint("register", __name__, url_prefix="/api/register")


@register_bp.get("/status")
def register_status_route():
    """Open/closed state of today's register."""
    return jsonify({
        "date": closure_service.today().isoformat(),
        "status": closure_service.get_register_status(),
    }), 200


@register_bp.get("/cash-summary")
def cash_summary_route():
    """Expected till balance and excess to sweep."""
    return jsonify({"cash_summary": closure_service.calculate_cash_summary()}), 200


@register_bp.post("/close")
def close_register_route():
    """
    Close today's register.

    Request body (optional):
    {
        "created_by": "admin"
    }

    Returns the closure (the existing one if already closed).
    """
    try:
        data = json_body()
        closure = closure_service.close_register(
            created_by=optional_text(data, "created_by", max_length=64, default="system"),
        )
        return jsonify({"closure": closure.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to close register")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to close register")
        return jsonify({"error": "Internal server error"}), 500


@register_bp.post("/reopen")
def reopen_register_route():
    """
    Reopen today's register, reversing the cash sweep.

    Request body:
    {
        "password": "1234",
        "created_by": "admin"
    }

    Returns 403 on a wrong password. Reopening an open register is a
    successful no-op (nothing_to_reopen = true).
    """
    try:
        data = json_body()
        password = data.get("password")
        if not password or not isinstance(password, str):
            return jsonify({"error": "password required"}), 400

        result = closure_service.reopen_register(
            password,
            created_by=optional_text(data, "created_by", max_length=64, default="system"),
        )
        return jsonify(result.to_dict()), 200

    except InvalidCredentialsError as e:
        return jsonify({"error": str(e), "code": "INVALID_CREDENTIALS"}), 403
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to reopen register")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to reopen register")
        return jsonify({"error": "Internal server error"}), 500


@register_bp.get("/closures")
def list_closures_route():
    """
    Closure history, newest first.

    Query params:
        limit: optional
        include_snapshots: "true" to embed sales/expenses/payments
    """
    limit = request.args.get("limit", type=int)
    include_snapshots = request.args.get("include_snapshots", "false").lower() == "true"
    closures = closure_service.list_closures(limit=limit)
    return jsonify({
        "closures": [c.to_dict(include_snapshots=include_snapshots) for c in closures],
    }), 200


@register_bp.get("/closures/<int:closure_id>")
def get_closure_route(closure_id: int):
    try:
        closure = closure_service.get_closure(closure_id)
    except ClosureError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"closure": closure.to_dict()}), 200


@register_bp.get("/closures/month/<year_month>")
def monthly_closures_route(year_month: str):
    try:
        closures = closure_service.list_monthly_closures(year_month)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"closures": [c.to_dict() for c in closures]}), 200
