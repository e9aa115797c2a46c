# Overview: Service-layer operations for expenses; encapsulates business logic and database work.

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import Expense
from ..validation import PAYMENT_METHODS
from restopos.time_utils import utcnow
from . import ledger_service
from .business_day import bounds_for, ensure_register_open, today
from .concurrency import atomic


class ExpenseError(Exception):
    """Raised for expense operation errors."""
    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.not_found = not_found


def record_expense(
    description: str,
    amount_cents: int,
    payment_method: str,
    from_cash_register: bool = False,
    category: str | None = None,
    created_by: str = "system",
) -> Expense:
    """
    Record an expense and post it to the ledger when it leaves a virtual account.

    - transfer: expense on the transfer account
    - cash, not from the register: expense on saved cash
    - cash from the register: till only, reconciled at closure
    """
    ensure_register_open()

    if amount_cents <= 0:
        raise ExpenseError("amount must be greater than zero")
    if payment_method not in PAYMENT_METHODS:
        raise ExpenseError("payment_method must be 'cash' or 'transfer'")

    expense = Expense(
        description=description,
        amount_cents=amount_cents,
        category=category,
        payment_method=payment_method,
        # Transfers never come out of the drawer
        from_cash_register=bool(from_cash_register) and payment_method == "cash",
        created_by=created_by or "system",
        created_at=utcnow(),
    )
    with atomic("record expense"):
        db.session.add(expense)
        db.session.flush()
        ledger_service.post_expense(expense, created_by=expense.created_by)
        ensure_register_open()

    return expense


def delete_expense(expense_id: int, deleted_by: str = "system") -> None:
    """
    Delete an expense and post the compensating ledger movement, if any.

    Blocked while the register is closed so a closure snapshot never
    disagrees with the rows it was taken from.
    """
    ensure_register_open()

    with atomic("delete expense"):
        expense = db.session.get(Expense, expense_id)
        if not expense:
            raise ExpenseError("Expense not found", not_found=True)
        ledger_service.post_expense(expense, created_by=deleted_by, reverse=True)
        db.session.delete(expense)
        ensure_register_open()


def get_expenses_for(day: date) -> list[Expense]:
    start, end = bounds_for(day)
    return db.session.query(Expense).filter(
        Expense.created_at >= start,
        Expense.created_at < end,
    ).order_by(Expense.created_at.desc(), Expense.id.desc()).all()


def get_today_expenses() -> list[Expense]:
    return get_expenses_for(today())


def list_expenses(limit: int = 200) -> list[Expense]:
    return db.session.query(Expense).order_by(Expense.created_at.desc(), Expense.id.desc()).limit(limit).all()
