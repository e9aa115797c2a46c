# Overview: Service-layer operations for the major-cash ledger; encapsulates business logic and database work.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import case, func

from ..extensions import db
from ..models import LedgerMovement
from ..models.ledger import (
    ACCOUNTS,
    ACCOUNT_SAVED_CASH,
    ACCOUNT_TRANSFER,
    DIRECTIONS,
    DIRECTION_EXPENSE,
    DIRECTION_INCOME,
)
from restopos.time_utils import to_utc_z
from .concurrency import commit_or_rollback
"""
Major-Cash Ledger Invariants (authoritative)

- Append-only: movements are never updated, only created or hard-deleted.
- amount_cents > 0 always; the sign comes from direction.
- Balances are derived by folding all movements; nothing is cached.
- Posting helpers take commit=False so closure/reopen can compose a
  movement with other writes in a single DB transaction.
"""


class LedgerError(Exception):
    """Raised for ledger operation errors."""
    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.not_found = not_found


@dataclass(frozen=True)
class LedgerSummary:
    total_transfers_cents: int
    total_saved_cash_cents: int
    movement_count: int
    last_update: Optional[datetime]

    @property
    def total_major_cash_cents(self) -> int:
        return self.total_transfers_cents + self.total_saved_cash_cents

    def to_dict(self) -> dict:
        return {
            "total_transfers_cents": self.total_transfers_cents,
            "total_saved_cash_cents": self.total_saved_cash_cents,
            "total_major_cash_cents": self.total_major_cash_cents,
            "movement_count": self.movement_count,
            "last_update": to_utc_z(self.last_update),
        }


# =============================================================================
# MOVEMENTS
# =============================================================================

def post_movement(
    account: str,
    description: str,
    amount_cents: int,
    direction: str,
    notes: str | None = None,
    created_by: str = "system",
    *,
    commit: bool = True,
) -> LedgerMovement:
    """
    Append a movement to the ledger.

    No merging or netting happens at write time; every call is one row.

    Args:
        account: transfer or saved_cash
        description: Human readable reason (shown in the ledger list)
        amount_cents: Strictly positive amount
        direction: income (adds) or expense (subtracts)
        notes: Optional free text
        created_by: Acting user name, "system" for automatic postings
        commit: False to only flush, leaving the commit to the caller
    """
    if account not in ACCOUNTS:
        raise LedgerError(f"account must be one of: {', '.join(ACCOUNTS)}")
    if direction not in DIRECTIONS:
        raise LedgerError(f"direction must be one of: {', '.join(DIRECTIONS)}")
    if not isinstance(amount_cents, int) or isinstance(amount_cents, bool) or amount_cents <= 0:
        raise LedgerError("amount_cents must be a positive integer")
    if not isinstance(description, str) or not description.strip():
        raise LedgerError("description required")

    movement = LedgerMovement(
        account=account,
        direction=direction,
        amount_cents=amount_cents,
        description=description.strip()[:255],
        notes=notes,
        created_by=created_by or "system",
    )
    db.session.add(movement)

    if commit:
        commit_or_rollback("post ledger movement")
    else:
        db.session.flush()

    return movement


def list_movements(account: str | None = None, limit: int = 200) -> list[LedgerMovement]:
    """Movements newest first, optionally for a single account."""
    query = db.session.query(LedgerMovement)
    if account is not None:
        if account not in ACCOUNTS:
            raise LedgerError(f"account must be one of: {', '.join(ACCOUNTS)}")
        query = query.filter(LedgerMovement.account == account)
    return (
        query.order_by(LedgerMovement.created_at.desc(), LedgerMovement.id.desc())
        .limit(limit)
        .all()
    )


def delete_movement(movement_id: int) -> None:
    """
    Permanently remove a movement (manual correction).

    Independent of closure state: a closure's excess_movement_id may point
    at a deleted row afterwards, reopen reverses from the closure's own
    captured amount.
    """
    movement = db.session.get(LedgerMovement, movement_id)
    if not movement:
        raise LedgerError("Movement not found", not_found=True)

    db.session.delete(movement)
    commit_or_rollback("delete ledger movement")


def get_summary() -> LedgerSummary:
    """Fold every movement into the two account balances."""
    signed = case(
        (LedgerMovement.direction == DIRECTION_INCOME, LedgerMovement.amount_cents),
        else_=-LedgerMovement.amount_cents,
    )
    rows = db.session.query(
        LedgerMovement.account,
        func.coalesce(func.sum(signed), 0),
        func.count(LedgerMovement.id),
        func.max(LedgerMovement.created_at),
    ).group_by(LedgerMovement.account).all()

    balances = {account: 0 for account in ACCOUNTS}
    count = 0
    last_update = None
    for account, balance, row_count, latest in rows:
        balances[account] = int(balance)
        count += row_count
        if latest is not None and (last_update is None or latest > last_update):
            last_update = latest

    return LedgerSummary(
        total_transfers_cents=balances[ACCOUNT_TRANSFER],
        total_saved_cash_cents=balances[ACCOUNT_SAVED_CASH],
        movement_count=count,
        last_update=last_update,
    )


# =============================================================================
# POSTING RULES
# =============================================================================
#
# Till-internal cash (cash sales, cash spent from the drawer) never touches
# the ledger; the closure engine reconciles it. Only money that lives in the
# virtual accounts is posted here.

def posting_for_sale(transfer_amount_cents: int) -> tuple[str, str] | None:
    if transfer_amount_cents > 0:
        return ACCOUNT_TRANSFER, DIRECTION_INCOME
    return None


def posting_for_sale_cancellation(transfer_amount_cents: int) -> tuple[str, str] | None:
    if transfer_amount_cents > 0:
        return ACCOUNT_TRANSFER, DIRECTION_EXPENSE
    return None


def posting_for_outflow(payment_method: str, from_cash_register: bool) -> tuple[str, str] | None:
    """Expense and employee payment share one rule."""
    if payment_method == "transfer":
        return ACCOUNT_TRANSFER, DIRECTION_EXPENSE
    if payment_method == "cash" and not from_cash_register:
        return ACCOUNT_SAVED_CASH, DIRECTION_EXPENSE
    return None


posting_for_expense = posting_for_outflow
posting_for_employee_payment = posting_for_outflow


def _reverse(posting: tuple[str, str] | None) -> tuple[str, str] | None:
    if posting is None:
        return None
    account, direction = posting
    return account, DIRECTION_INCOME if direction == DIRECTION_EXPENSE else DIRECTION_EXPENSE


def _apply(
    posting: tuple[str, str] | None,
    amount_cents: int,
    description: str,
    notes: str | None,
    created_by: str,
) -> LedgerMovement | None:
    if posting is None or amount_cents <= 0:
        return None
    account, direction = posting
    return post_movement(
        account,
        description,
        amount_cents,
        direction,
        notes=notes,
        created_by=created_by,
        commit=False,
    )


def post_sale_income(sale, created_by: str = "system") -> LedgerMovement | None:
    return _apply(
        posting_for_sale(sale.transfer_amount_cents),
        sale.transfer_amount_cents,
        f"Venta #{sale.id}",
        "Transferencia de venta",
        created_by,
    )


def post_sale_cancellation(sale, created_by: str = "system") -> LedgerMovement | None:
    return _apply(
        posting_for_sale_cancellation(sale.transfer_amount_cents),
        sale.transfer_amount_cents,
        f"ANULACIÓN Venta #{sale.id}",
        "Reversión de transferencia por anulación",
        created_by,
    )


def post_expense(expense, created_by: str = "system", *, reverse: bool = False) -> LedgerMovement | None:
    posting = posting_for_expense(expense.payment_method, expense.from_cash_register)
    if reverse:
        return _apply(
            _reverse(posting),
            expense.amount_cents,
            f"ELIMINACIÓN Gasto: {expense.description}",
            f"Reversión del gasto #{expense.id}",
            created_by,
        )
    label = "Gasto" if expense.payment_method == "transfer" else "Gasto externo"
    return _apply(posting, expense.amount_cents, f"{label}: {expense.description}", None, created_by)


def post_employee_payment(payment, created_by: str = "system", *, reverse: bool = False) -> LedgerMovement | None:
    posting = posting_for_employee_payment(payment.payment_method, payment.from_cash_register)
    if reverse:
        return _apply(
            _reverse(posting),
            payment.final_amount_cents,
            f"ELIMINACIÓN Pago a {payment.employee_name}",
            f"Reversión del pago #{payment.id}",
            created_by,
        )
    label = "Pago a" if payment.payment_method == "transfer" else "Pago externo a"
    return _apply(posting, payment.final_amount_cents, f"{label} {payment.employee_name}", payment.notes, created_by)
