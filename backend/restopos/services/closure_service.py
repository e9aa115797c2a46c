"""
Daily Closure Engine

WHY: At the end of the day the till is reconciled against what it should
hold, the day's activity is frozen into a snapshot, and every peso above the
daily base is swept into saved cash.

DESIGN PRINCIPLES:
- At most one closure per business date (unique constraint on date)
- Closing twice returns the existing closure; no second sweep
- The sweep movement and the closure row commit in one transaction
- Reopen reverses with the amount captured in the closure, never config
- Reopen's compensating movement and the closure delete are one transaction

TILL FORMULA:
    cash_before = daily_base + cash_sales - cash_expenses - cash_payments
    excess      = max(0, cash_before - daily_base)
cash_expenses / cash_payments only count cash taken from the register.
Customer change (cash_received / cash_returned) is informational only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import DailyClosure
from ..models.ledger import ACCOUNT_SAVED_CASH, DIRECTION_EXPENSE, DIRECTION_INCOME
from restopos.time_utils import month_bounds
from . import config_service, expense_service, inventory_service, ledger_service, payroll_service, sales_service
from .business_day import (  # noqa: F401  re-exported for callers of the closure API
    RegisterClosedError,
    ensure_register_open,
    get_register_status,
    has_closure_for_today,
    today,
)
from .concurrency import PersistenceError, atomic, lock_for_update


class ClosureError(Exception):
    """Raised for closure lookup errors."""
    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.not_found = not_found


class InvalidCredentialsError(Exception):
    """Raised when the reopen password does not match."""
    pass


@dataclass(frozen=True)
class ClosureTotals:
    total_sales_cents: int
    total_cash_cents: int
    total_transfer_cents: int
    total_expenses_cents: int
    total_payments_cents: int
    cash_expenses_cents: int
    cash_payments_cents: int
    daily_base_cents: int
    cash_received_cents: int
    cash_returned_cents: int

    @property
    def cash_before_closure_cents(self) -> int:
        return self.daily_base_cents + self.total_cash_cents - self.cash_expenses_cents - self.cash_payments_cents

    @property
    def excess_cash_cents(self) -> int:
        return max(0, self.cash_before_closure_cents - self.daily_base_cents)

    @property
    def cash_after_closure_cents(self) -> int:
        return self.cash_before_closure_cents - self.excess_cash_cents


@dataclass(frozen=True)
class ReopenResult:
    success: bool
    reverted_amount_cents: int
    nothing_to_reopen: bool
    message: str
    date: date

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "reverted_amount_cents": self.reverted_amount_cents,
            "nothing_to_reopen": self.nothing_to_reopen,
            "message": self.message,
            "date": self.date.isoformat(),
        }


def _from_till(record) -> bool:
    return record.payment_method == "cash" and bool(record.from_cash_register)


def compute_closure_totals(
    sales: Iterable,
    expenses: Iterable,
    payments: Iterable,
    daily_base_cents: int,
) -> ClosureTotals:
    """Pure aggregation over completed sales, expenses and employee payments."""
    sales = list(sales)
    expenses = list(expenses)
    payments = list(payments)
    return ClosureTotals(
        total_sales_cents=sum(s.total_cents for s in sales),
        total_cash_cents=sum(s.cash_amount_cents for s in sales),
        total_transfer_cents=sum(s.transfer_amount_cents for s in sales),
        total_expenses_cents=sum(e.amount_cents for e in expenses),
        total_payments_cents=sum(p.final_amount_cents for p in payments),
        cash_expenses_cents=sum(e.amount_cents for e in expenses if _from_till(e)),
        cash_payments_cents=sum(p.final_amount_cents for p in payments if _from_till(p)),
        daily_base_cents=daily_base_cents,
        cash_received_cents=sum(s.cash_received_cents for s in sales),
        cash_returned_cents=sum(s.cash_returned_cents for s in sales),
    )


def _gather(day: date):
    sales = sales_service.get_sales_for(day)
    expenses = expense_service.get_expenses_for(day)
    payments = payroll_service.get_employee_payments_for(day)
    return sales, expenses, payments


def _format_amount(cents: int) -> str:
    return f"${cents / 100:,.2f}"


# =============================================================================
# QUERIES
# =============================================================================

def get_closure_for_date(day: date) -> DailyClosure | None:
    return db.session.query(DailyClosure).filter_by(date=day).first()


def get_closure(closure_id: int) -> DailyClosure:
    closure = db.session.get(DailyClosure, closure_id)
    if not closure:
        raise ClosureError("Closure not found", not_found=True)
    return closure


def list_closures(limit: int | None = None) -> list[DailyClosure]:
    """Closure history, newest date first."""
    query = db.session.query(DailyClosure).order_by(DailyClosure.date.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def list_monthly_closures(year_month: str) -> list[DailyClosure]:
    first, following = month_bounds(year_month)
    return db.session.query(DailyClosure).filter(
        DailyClosure.date >= first,
        DailyClosure.date < following,
    ).order_by(DailyClosure.date).all()


def calculate_cash_summary() -> dict:
    """
    Live till figures for today.

    After closure the till holds cash_after_closure (normally the base the
    closure captured); before closure it holds cash_before.
    """
    day = today()
    closure = get_closure_for_date(day)
    sales, expenses, payments = _gather(day)

    if closure:
        daily_base = closure.daily_base_cents
    else:
        daily_base = config_service.get_config().daily_base_cents

    totals = compute_closure_totals(sales, expenses, payments, daily_base)

    return {
        "date": day.isoformat(),
        "status": "closed" if closure else "open",
        "daily_base_cents": daily_base,
        "cash_sales_cents": totals.total_cash_cents,
        "transfer_sales_cents": totals.total_transfer_cents,
        "cash_expenses_cents": totals.cash_expenses_cents,
        "cash_payments_cents": totals.cash_payments_cents,
        "expected_cash_cents": totals.cash_before_closure_cents,
        "excess_to_transfer_cents": totals.excess_cash_cents,
        "cash_received_cents": totals.cash_received_cents,
        "cash_returned_cents": totals.cash_returned_cents,
        "current_cash_cents": closure.cash_after_closure_cents if closure else totals.cash_before_closure_cents,
        "excess_transferred_cents": closure.cash_excess_transferred_cents if closure else 0,
    }


# =============================================================================
# CLOSE
# =============================================================================

def close_register(*, created_by: str = "system") -> DailyClosure:
    """
    Close today's register.

    Idempotent: if a closure already exists for today it is returned
    unchanged. Two concurrent closes both passing the existence check are
    resolved by the unique constraint on date; the loser's transaction
    (including its sweep) is rolled back and the winner's closure returned.

    Raises:
        PersistenceError: the store failed for any other reason
    """
    day = today()

    existing = get_closure_for_date(day)
    if existing:
        current_app.logger.info("Register already closed for %s (closure %s)", day, existing.id)
        return existing

    config = config_service.get_config()
    sales, expenses, payments = _gather(day)
    low_stock = inventory_service.get_low_stock_products()
    totals = compute_closure_totals(sales, expenses, payments, config.daily_base_cents)

    try:
        movement = None
        if totals.excess_cash_cents > 0:
            movement = ledger_service.post_movement(
                ACCOUNT_SAVED_CASH,
                f"Cierre diario {day.isoformat()} - Excedente a caja mayor",
                totals.excess_cash_cents,
                DIRECTION_INCOME,
                notes=(
                    "Transferencia automática de cierre. "
                    f"Base diaria: {_format_amount(totals.daily_base_cents)}, "
                    f"Excedente: {_format_amount(totals.excess_cash_cents)}"
                ),
                created_by="system",
                commit=False,
            )

        closure = DailyClosure(
            date=day,
            sales=[s.to_dict() for s in sales],
            expenses=[e.to_dict() for e in expenses],
            employee_payments=[p.to_dict() for p in payments],
            low_stock_products=low_stock,
            total_sales_cents=totals.total_sales_cents,
            total_cash_cents=totals.total_cash_cents,
            total_transfer_cents=totals.total_transfer_cents,
            total_expenses_cents=totals.total_expenses_cents,
            total_payments_cents=totals.total_payments_cents,
            cash_expenses_cents=totals.cash_expenses_cents,
            cash_payments_cents=totals.cash_payments_cents,
            cash_before_closure_cents=totals.cash_before_closure_cents,
            cash_after_closure_cents=totals.cash_after_closure_cents,
            daily_base_cents=totals.daily_base_cents,
            cash_excess_transferred_cents=totals.excess_cash_cents,
            excess_movement_id=movement.id if movement else None,
            created_by=created_by or "system",
        )
        db.session.add(closure)
        db.session.flush()
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        winner = get_closure_for_date(day)
        if winner is None:
            raise PersistenceError("Failed to close register") from exc
        current_app.logger.warning(
            "Concurrent close for %s resolved to existing closure %s", day, winner.id
        )
        return winner
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Failed to close register") from exc

    if movement:
        current_app.logger.info(
            "Closed register for %s; swept %s to saved cash (movement %s)",
            day, _format_amount(totals.excess_cash_cents), movement.id,
        )
    else:
        current_app.logger.info("Closed register for %s; no excess cash to sweep", day)

    return closure


# =============================================================================
# REOPEN
# =============================================================================

def reopen_register(password: str | None, *, created_by: str = "system") -> ReopenResult:
    """
    Undo today's closure.

    1. The password must match the stored bcrypt hash
    2. No closure today: benign success, nothing changes
    3. Swept excess is reversed with a saved_cash expense of the captured amount
    4. The closure row is hard-deleted
    Steps 3 and 4 commit together or not at all.

    Raises:
        InvalidCredentialsError: wrong password (no state change)
        PersistenceError: the store failed (no state change)
    """
    if not config_service.verify_reopen_password(password):
        current_app.logger.warning("Rejected register reopen: invalid password")
        raise InvalidCredentialsError("Invalid reopen password")

    day = today()

    if get_closure_for_date(day) is None:
        return ReopenResult(
            success=True,
            reverted_amount_cents=0,
            nothing_to_reopen=True,
            message="Register is already open",
            date=day,
        )

    reverted = 0
    with atomic("reopen register"):
        closure = lock_for_update(db.session.query(DailyClosure).filter_by(date=day)).first()
        if closure is not None:
            reverted = closure.cash_excess_transferred_cents or 0
            if reverted > 0:
                ledger_service.post_movement(
                    ACCOUNT_SAVED_CASH,
                    f"REAPERTURA - Reversión cierre {day.isoformat()}",
                    reverted,
                    DIRECTION_EXPENSE,
                    notes=f"Reversión por reapertura de caja. Monto original: {_format_amount(reverted)}",
                    created_by=created_by or "system",
                    commit=False,
                )
            db.session.delete(closure)

    current_app.logger.info(
        "Reopened register for %s; reverted %s from saved cash", day, _format_amount(reverted)
    )

    if reverted > 0:
        message = f"Register reopened. {_format_amount(reverted)} removed from saved cash"
    else:
        message = "Register reopened"

    return ReopenResult(
        success=True,
        reverted_amount_cents=reverted,
        nothing_to_reopen=False,
        message=message,
        date=day,
    )
