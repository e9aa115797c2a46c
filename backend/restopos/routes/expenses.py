# Overview: Flask API routes for expenses and employee payments; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import json_body, require_open_register
from ..services import expense_service, payroll_service
from ..services.business_day import RegisterClosedError
from ..services.concurrency import PersistenceError
from ..services.expense_service import ExpenseError
from ..services.payroll_service import PaymentError
from ..validation import ValidationError, coerce_bool, coerce_int, optional_text, parse_money, parse_payment_method, require_text


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")
payments_bp = Blueprint("employee_payments", __name__, url_prefix="/api/employee-payments")


def _closed_response(e: RegisterClosedError):
    return jsonify({"error": str(e), "code": "REGISTER_CLOSED", "date": e.day.isoformat()}), 409


def _limit() -> int:
    return max(1, min(request.args.get("limit", default=200, type=int), 500))


# =============================================================================
# EXPENSES
# =============================================================================

@expenses_bp.get("")
def list_expenses_route():
    return jsonify({"expenses": [e.to_dict() for e in expense_service.list_expenses(limit=_limit())]}), 200


@expenses_bp.get("/today")
def today_expenses_route():
    return jsonify({"expenses": [e.to_dict() for e in expense_service.get_today_expenses()]}), 200


@expenses_bp.post("")
@require_open_register
def create_expense_route():
    """
    Record an expense.

    Request body:
    {
        "description": "Gas",
        "amount_cents": 4500,             (or "amount": "45.00")
        "category": "servicios",
        "payment_method": "cash" | "transfer",
        "from_cash_register": true,
        "created_by": "admin"
    }
    """
    try:
        data = json_body()

        expense = expense_service.record_expense(
            description=require_text(data, "description"),
            amount_cents=parse_money(data, "amount"),
            payment_method=parse_payment_method(data.get("payment_method")),
            from_cash_register=coerce_bool("from_cash_register", data.get("from_cash_register", False)),
            category=optional_text(data, "category", max_length=64),
            created_by=optional_text(data, "created_by", max_length=64, default="system"),
        )

        return jsonify({"expense": expense.to_dict()}), 201

    except RegisterClosedError as e:
        return _closed_response(e)
    except (ValidationError, ExpenseError) as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to record expense")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to record expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.delete("/<int:expense_id>")
@require_open_register
def delete_expense_route(expense_id: int):
    try:
        deleted_by = request.args.get("deleted_by") or "system"
        expense_service.delete_expense(expense_id, deleted_by=deleted_by)
        return jsonify({"deleted": expense_id}), 200

    except RegisterClosedError as e:
        return _closed_response(e)
    except ExpenseError as e:
        return jsonify({"error": str(e)}), 404 if e.not_found else 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# EMPLOYEE PAYMENTS
# =============================================================================

@payments_bp.get("")
def list_payments_route():
    return jsonify({"payments": [p.to_dict() for p in payroll_service.list_payments(limit=_limit())]}), 200


@payments_bp.get("/today")
def today_payments_route():
    return jsonify({"payments": [p.to_dict() for p in payroll_service.get_today_employee_payments()]}), 200


@payments_bp.post("")
@require_open_register
def create_payment_route():
    """
    Record an employee shift payment.

    Request body:
    {
        "employee_name": "Ana",
        "employee_id": 3,                 (optional)
        "position": "Mesera",
        "base_amount_cents": 60000,       (optional, defaults to final amount)
        "final_amount_cents": 65000,      (or "final_amount": "650.00")
        "notes": "Turno doble",
        "payment_method": "cash" | "transfer",
        "from_cash_register": true,
        "created_by": "admin"
    }
    """
    try:
        data = json_body()

        payment = payroll_service.record_employee_payment(
            employee_name=require_text(data, "employee_name", max_length=128),
            final_amount_cents=parse_money(data, "final_amount"),
            payment_method=parse_payment_method(data.get("payment_method")),
            from_cash_register=coerce_bool("from_cash_register", data.get("from_cash_register", False)),
            base_amount_cents=parse_money(data, "base_amount", required=False, allow_zero=True, default=None),
            position=optional_text(data, "position", max_length=64),
            employee_id=coerce_int("employee_id", data["employee_id"]) if data.get("employee_id") is not None else None,
            notes=optional_text(data, "notes", max_length=1000),
            created_by=optional_text(data, "created_by", max_length=64, default="system"),
        )

        return jsonify({"payment": payment.to_dict()}), 201

    except RegisterClosedError as e:
        return _closed_response(e)
    except (ValidationError, PaymentError) as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to record employee payment")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to record employee payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.delete("/<int:payment_id>")
@require_open_register
def delete_payment_route(payment_id: int):
    try:
        deleted_by = request.args.get("deleted_by") or "system"
        payroll_service.delete_employee_payment(payment_id, deleted_by=deleted_by)
        return jsonify({"deleted": payment_id}), 200

    except RegisterClosedError as e:
        return _closed_response(e)
    except PaymentError as e:
        return jsonify({"error": str(e)}), 404 if e.not_found else 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to delete employee payment")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to delete employee payment")
        return jsonify({"error": "Internal server error"}), 500
