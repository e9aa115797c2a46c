"""
Daily closure and reopen tests.

Verifies:
- Till formula and sweep of the excess above the daily base
- Closing is idempotent (one closure, one sweep per day)
- Concurrent closes resolve to a single closure without a double sweep
- Reopen reverses exactly the captured sweep and deletes the closure
- Wrong password / nothing to reopen / store failures leave no partial state
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from restopos.models import DailyClosure, LedgerMovement
from restopos.services import (
    closure_service,
    config_service,
    expense_service,
    ledger_service,
    payroll_service,
    sales_service,
)
from restopos.services.closure_service import InvalidCredentialsError, compute_closure_totals
from restopos.services.concurrency import PersistenceError
from restopos.services.business_day import today


def _saved_cash():
    return ledger_service.get_summary().total_saved_cash_cents


# =============================================================================
# TILL FORMULA
# =============================================================================


class TestClosureTotals:

    def test_excess_is_cash_above_base(self, db_session, sell):
        sell(cash_cents=80000)
        sell(transfer_cents=20000)
        expense_service.record_expense("Hielo", 10000, "cash", from_cash_register=True)
        payroll_service.record_employee_payment("Ana", 20000, "cash", from_cash_register=True)
        # Not from the till: ignored by the till formula
        expense_service.record_expense("Gas", 5000, "cash", from_cash_register=False)

        summary = closure_service.calculate_cash_summary()

        assert summary["status"] == "open"
        assert summary["daily_base_cents"] == 50000
        assert summary["cash_sales_cents"] == 80000
        assert summary["transfer_sales_cents"] == 20000
        assert summary["cash_expenses_cents"] == 10000
        assert summary["cash_payments_cents"] == 20000
        assert summary["expected_cash_cents"] == 100000
        assert summary["excess_to_transfer_cents"] == 50000

    def test_spending_more_than_sales_leaves_no_excess(self):
        class Row:
            def __init__(self, **kw):
                self.__dict__.update(kw)

        sales = [Row(total_cents=30000, cash_amount_cents=30000, transfer_amount_cents=0,
                     cash_received_cents=30000, cash_returned_cents=0)]
        expenses = [Row(amount_cents=40000, payment_method="cash", from_cash_register=True)]

        totals = compute_closure_totals(sales, expenses, [], 50000)

        assert totals.cash_before_closure_cents == 40000
        assert totals.excess_cash_cents == 0
        assert totals.cash_after_closure_cents == 40000

    def test_zero_excess_at_boundary(self, db_session, sell):
        sell(cash_cents=30000)
        expense_service.record_expense("Carne", 30000, "cash", from_cash_register=True)

        closure = closure_service.close_register()

        assert closure.cash_before_closure_cents == 50000
        assert closure.cash_excess_transferred_cents == 0
        assert closure.excess_movement_id is None
        assert ledger_service.get_summary().movement_count == 0


# =============================================================================
# CLOSE
# =============================================================================


class TestCloseRegister:

    def test_close_sweeps_excess(self, db_session, sell, soda):
        sell(cash_cents=80000)
        soda.stock = 2
        db_session.commit()

        closure = closure_service.close_register(created_by="admin")

        assert closure.date == today()
        assert closure.total_sales_cents == 80000
        assert closure.cash_before_closure_cents == 130000
        assert closure.cash_after_closure_cents == 50000
        assert closure.cash_excess_transferred_cents == 80000
        assert closure.daily_base_cents == 50000
        assert len(closure.sales) == 1
        assert closure.low_stock_products == [{
            "product_id": soda.id,
            "product_name": "Gaseosa",
            "current_stock": 2,
            "min_stock": 5,
            "suggested_order": 8,
        }]

        movement = db_session.get(LedgerMovement, closure.excess_movement_id)
        assert movement.account == "saved_cash"
        assert movement.direction == "income"
        assert movement.amount_cents == 80000
        assert movement.description == f"Cierre diario {today().isoformat()} - Excedente a caja mayor"
        assert _saved_cash() == 80000
        assert closure_service.get_register_status() == "closed"

    def test_close_is_idempotent(self, db_session, sell):
        sell(cash_cents=80000)

        first = closure_service.close_register()
        second = closure_service.close_register()

        assert first.id == second.id
        assert db_session.query(DailyClosure).count() == 1
        assert _saved_cash() == 80000

    def test_close_with_no_activity(self, db_session):
        closure = closure_service.close_register()

        assert closure.total_sales_cents == 0
        assert closure.cash_before_closure_cents == 50000
        assert closure.cash_excess_transferred_cents == 0
        assert closure.sales == []

    def test_cancelled_sales_not_in_snapshot(self, db_session, sell):
        sell(cash_cents=10000)
        cancelled = sell(cash_cents=20000)
        sales_service.cancel_sale(cancelled.id, "manager")

        closure = closure_service.close_register()

        assert closure.total_sales_cents == 10000
        assert len(closure.sales) == 1
        assert cancelled.id not in [s["id"] for s in closure.sales]

    def test_concurrent_close_resolves_to_winner(self, db_session, sell, monkeypatch):
        sell(cash_cents=80000)

        # Another close commits between our existence check and our insert
        winner = DailyClosure(date=today(), created_by="other-terminal")
        db_session.add(winner)
        db_session.commit()
        winner_id = winner.id

        real_lookup = closure_service.get_closure_for_date
        calls = []

        def stale_lookup(day):
            calls.append(day)
            if len(calls) == 1:
                return None
            return real_lookup(day)

        monkeypatch.setattr(closure_service, "get_closure_for_date", stale_lookup)

        closure = closure_service.close_register()

        assert closure.id == winner_id
        assert db_session.query(DailyClosure).count() == 1
        # The loser's sweep was rolled back with its closure
        assert ledger_service.get_summary().movement_count == 0

    def test_store_failure_leaves_nothing(self, db_session, sell, monkeypatch):
        sell(cash_cents=80000)

        def boom(*args, **kwargs):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(ledger_service, "post_movement", boom)

        with pytest.raises(PersistenceError):
            closure_service.close_register()

        assert db_session.query(DailyClosure).count() == 0
        assert closure_service.get_register_status() == "open"

    def test_closure_captures_base_at_close_time(self, db_session, sell):
        sell(cash_cents=80000)
        closure = closure_service.close_register()

        config_service.update_config({"daily_base_cents": 10000})

        summary = closure_service.calculate_cash_summary()
        assert summary["status"] == "closed"
        assert summary["daily_base_cents"] == 50000
        assert summary["current_cash_cents"] == closure.cash_after_closure_cents
        assert summary["excess_transferred_cents"] == 80000


# =============================================================================
# REOPEN
# =============================================================================


class TestReopenRegister:

    def test_reopen_reverses_sweep(self, db_session, sell):
        sell(cash_cents=80000)
        closure_service.close_register()

        result = closure_service.reopen_register("1234", created_by="admin")

        assert result.success is True
        assert result.nothing_to_reopen is False
        assert result.reverted_amount_cents == 80000
        assert result.date == today()
        assert db_session.query(DailyClosure).count() == 0
        assert _saved_cash() == 0
        reversal = db_session.query(LedgerMovement).order_by(LedgerMovement.id.desc()).first()
        assert reversal.direction == "expense"
        assert reversal.description == f"REAPERTURA - Reversión cierre {today().isoformat()}"
        assert closure_service.get_register_status() == "open"

    def test_reopen_without_sweep_posts_nothing(self, db_session):
        closure_service.close_register()

        result = closure_service.reopen_register("1234")

        assert result.reverted_amount_cents == 0
        assert ledger_service.get_summary().movement_count == 0
        assert db_session.query(DailyClosure).count() == 0

    def test_reopen_uses_captured_amount_not_config(self, db_session, sell):
        sell(cash_cents=80000)
        closure_service.close_register()
        config_service.update_config({"daily_base_cents": 0})

        result = closure_service.reopen_register("1234")

        assert result.reverted_amount_cents == 80000
        assert _saved_cash() == 0

    def test_wrong_password_changes_nothing(self, db_session, sell):
        sell(cash_cents=80000)
        closure_service.close_register()

        with pytest.raises(InvalidCredentialsError):
            closure_service.reopen_register("0000")

        assert db_session.query(DailyClosure).count() == 1
        assert _saved_cash() == 80000

    def test_wrong_password_checked_before_state(self, db_session):
        with pytest.raises(InvalidCredentialsError):
            closure_service.reopen_register("0000")

    def test_nothing_to_reopen(self, db_session):
        result = closure_service.reopen_register("1234")

        assert result.success is True
        assert result.nothing_to_reopen is True
        assert result.reverted_amount_cents == 0
        assert ledger_service.get_summary().movement_count == 0

    def test_store_failure_keeps_closure(self, db_session, sell, monkeypatch):
        sell(cash_cents=80000)
        closure_service.close_register()

        def boom(*args, **kwargs):
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(ledger_service, "post_movement", boom)

        with pytest.raises(PersistenceError):
            closure_service.reopen_register("1234")

        assert db_session.query(DailyClosure).count() == 1
        assert _saved_cash() == 80000

    def test_close_reopen_close_round_trip(self, db_session, sell):
        sell(cash_cents=80000)
        closure_service.close_register()
        closure_service.reopen_register("1234")

        sell(cash_cents=10000)
        closure = closure_service.close_register()

        assert closure.total_sales_cents == 90000
        assert closure.cash_excess_transferred_cents == 90000
        assert _saved_cash() == 90000
        assert db_session.query(DailyClosure).count() == 1


# =============================================================================
# BOUNDARY SCENARIOS
# =============================================================================


class TestBoundaries:

    def test_sweep_of_300_over_base_of_500(self, db_session, sell):
        sell(cash_cents=30000)

        closure = closure_service.close_register()
        assert closure.cash_before_closure_cents == 80000
        assert closure.cash_excess_transferred_cents == 30000
        assert _saved_cash() == 30000

        result = closure_service.reopen_register("1234")
        assert result.reverted_amount_cents == 30000
        assert _saved_cash() == 0
        assert closure_service.has_closure_for_today() is False

    def test_till_below_base_sweeps_nothing(self, db_session, sell):
        sell(cash_cents=10000)
        expense_service.record_expense("Proveedor", 40000, "cash", from_cash_register=True)

        closure = closure_service.close_register()
        assert closure.cash_before_closure_cents == 20000
        assert closure.cash_excess_transferred_cents == 0

        closure_service.reopen_register("1234")
        assert ledger_service.get_summary().movement_count == 0

    def test_register_cash_payment_only_affects_closure(self, db_session):
        payroll_service.record_employee_payment("Ana", 20000, "cash", from_cash_register=True)
        assert ledger_service.get_summary().movement_count == 0

        closure = closure_service.close_register()
        assert closure.cash_payments_cents == 20000
        assert closure.total_payments_cents == 20000
        assert len(closure.employee_payments) == 1
