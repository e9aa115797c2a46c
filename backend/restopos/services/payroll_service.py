# Overview: Service-layer operations for employee shift payments.

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import EmployeePayment
from ..validation import PAYMENT_METHODS
from restopos.time_utils import utcnow
from . import ledger_service
from .business_day import bounds_for, ensure_register_open, today
from .concurrency import atomic


class PaymentError(Exception):
    """Raised for employee payment errors."""
    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.not_found = not_found


def record_employee_payment(
    employee_name: str,
    final_amount_cents: int,
    payment_method: str,
    from_cash_register: bool = False,
    base_amount_cents: int | None = None,
    position: str | None = None,
    employee_id: int | None = None,
    notes: str | None = None,
    created_by: str = "system",
) -> EmployeePayment:
    """
    Record a shift payment. Posting follows the same rule as expenses.

    base_amount is the employee's usual daily pay; final_amount is what was
    actually paid (bonuses, deductions) and is the amount that moves money.
    """
    ensure_register_open()

    if final_amount_cents <= 0:
        raise PaymentError("final_amount must be greater than zero")
    if payment_method not in PAYMENT_METHODS:
        raise PaymentError("payment_method must be 'cash' or 'transfer'")

    payment = EmployeePayment(
        employee_id=employee_id,
        employee_name=employee_name,
        position=position,
        base_amount_cents=base_amount_cents if base_amount_cents is not None else final_amount_cents,
        final_amount_cents=final_amount_cents,
        notes=notes,
        payment_method=payment_method,
        from_cash_register=bool(from_cash_register) and payment_method == "cash",
        created_by=created_by or "system",
        created_at=utcnow(),
    )
    with atomic("record employee payment"):
        db.session.add(payment)
        db.session.flush()
        ledger_service.post_employee_payment(payment, created_by=payment.created_by)
        ensure_register_open()

    return payment


def delete_employee_payment(payment_id: int, deleted_by: str = "system") -> None:
    ensure_register_open()

    with atomic("delete employee payment"):
        payment = db.session.get(EmployeePayment, payment_id)
        if not payment:
            raise PaymentError("Employee payment not found", not_found=True)
        ledger_service.post_employee_payment(payment, created_by=deleted_by, reverse=True)
        db.session.delete(payment)
        ensure_register_open()


def get_employee_payments_for(day: date) -> list[EmployeePayment]:
    start, end = bounds_for(day)
    return db.session.query(EmployeePayment).filter(
        EmployeePayment.created_at >= start,
        EmployeePayment.created_at < end,
    ).order_by(EmployeePayment.created_at.desc(), EmployeePayment.id.desc()).all()


def get_today_employee_payments() -> list[EmployeePayment]:
    return get_employee_payments_for(today())


def list_payments(limit: int = 200) -> list[EmployeePayment]:
    return (
        db.session.query(EmployeePayment)
        .order_by(EmployeePayment.created_at.desc(), EmployeePayment.id.desc())
        .limit(limit)
        .all()
    )
