# Overview: Flask API routes for the major-cash ledger; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import json_body
from ..services import ledger_service
from ..services.concurrency import PersistenceError
from ..services.ledger_service import LedgerError
from ..validation import ValidationError, optional_text, parse_money, require_text


ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/ledger")


@ledger_bp.get("/summary")
def ledger_summary_route():
    """Balances of the transfer and saved cash accounts."""
    summary = ledger_service.get_summary()
    return jsonify({"summary": summary.to_dict()}), 200


@ledger_bp.get("/movements")
def list_movements_route():
    """
    List ledger movements, newest first.

    Query params:
        account: transfer | saved_cash (optional)
        limit: 1..500 (default 200)
    """
    account = request.args.get("account") or None
    limit = request.args.get("limit", default=200, type=int)
    limit = max(1, min(limit, 500))

    try:
        movements = ledger_service.list_movements(account=account, limit=limit)
    except LedgerError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "items": [m.to_dict() for m in movements],
        "limit": limit,
    }), 200


@ledger_bp.post("/movements")
def create_movement_route():
    """
    Post a manual adjustment.

    Request body:
    {
        "account": "transfer" | "saved_cash",
        "direction": "income" | "expense",
        "amount_cents": 15000,          (or "amount": "150.00")
        "description": "Depósito bancario",
        "notes": "optional",
        "created_by": "admin"
    }
    """
    try:
        data = json_body()
        amount_cents = parse_money(data, "amount")

        movement = ledger_service.post_movement(
            account=data.get("account"),
            description=require_text(data, "description"),
            amount_cents=amount_cents,
            direction=data.get("direction"),
            notes=optional_text(data, "notes", max_length=1000),
            created_by=optional_text(data, "created_by", max_length=64, default="system"),
        )

        return jsonify({"movement": movement.to_dict()}), 201

    except (ValidationError, LedgerError) as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to post ledger movement")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to post ledger movement")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.delete("/movements/<int:movement_id>")
def delete_movement_route(movement_id: int):
    """Permanently delete a movement (manual correction)."""
    try:
        ledger_service.delete_movement(movement_id)
        return jsonify({"deleted": movement_id}), 200

    except LedgerError as e:
        return jsonify({"error": str(e)}), 404 if e.not_found else 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to delete ledger movement")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to delete ledger movement")
        return jsonify({"error": "Internal server error"}), 500
