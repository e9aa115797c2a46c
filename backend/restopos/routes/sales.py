# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes. Writes are rejected while the register is closed."""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import json_body, require_open_register
from ..services import sales_service
from ..services.business_day import RegisterClosedError
from ..services.concurrency import PersistenceError
from ..services.sales_service import SaleError
from ..validation import ValidationError, optional_text, parse_money


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _closed_response(e: RegisterClosedError):
    return jsonify({"error": str(e), "code": "REGISTER_CLOSED", "date": e.day.isoformat()}), 409


@sales_bp.get("")
def list_sales_route():
    limit = max(1, min(request.args.get("limit", default=200, type=int), 500))
    return jsonify({"sales": [s.to_dict() for s in sales_service.list_sales(limit=limit)]}), 200


@sales_bp.get("/today")
def today_sales_route():
    """Today's completed sales."""
    return jsonify({"sales": [s.to_dict() for s in sales_service.get_today_sales()]}), 200


@sales_bp.post("")
@require_open_register
def create_sale_route():
    """
    Record a completed sale.

    Request body:
    {
        "items": [{"product_id": 1, "quantity": 2}, ...],
        "cash_amount_cents": 10000,
        "transfer_amount_cents": 5000,
        "cash_received_cents": 20000,    (optional, defaults to cash amount)
        "created_by": "cashier"
    }
    Amounts may also be given in currency units ("cash_amount": "100.00").
    """
    try:
        data = json_body()

        sale = sales_service.record_sale(
            items=data.get("items"),
            cash_amount_cents=parse_money(data, "cash_amount", required=False, allow_zero=True),
            transfer_amount_cents=parse_money(data, "transfer_amount", required=False, allow_zero=True),
            cash_received_cents=(
                parse_money(data, "cash_received", allow_zero=True)
                if data.get("cash_received_cents") is not None or data.get("cash_received") is not None
                else None
            ),
            created_by=optional_text(data, "created_by", max_length=64, default="system"),
        )

        return jsonify({"sale": sale.to_dict()}), 201

    except RegisterClosedError as e:
        return _closed_response(e)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/<int:sale_id>/cancel")
@require_open_register
def cancel_sale_route(sale_id: int):
    """
    Cancel a completed sale (restores stock, reverses any transfer).

    Request body:
    {
        "cancelled_by": "manager"
    }
    """
    try:
        data = json_body()
        sale = sales_service.cancel_sale(sale_id, optional_text(data, "cancelled_by", max_length=64, default="system"))
        return jsonify({"sale": sale.to_dict()}), 200

    except RegisterClosedError as e:
        return _closed_response(e)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 404 if e.not_found else 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to cancel sale")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to cancel sale")
        return jsonify({"error": "Internal server error"}), 500
