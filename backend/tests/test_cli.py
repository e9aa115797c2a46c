"""
CLI command tests.

Runs the flask command groups through the app's CLI runner against the
test database.
"""

import pytest

from restopos.models import DailyClosure, LedgerMovement
from restopos.services import closure_service, config_service, ledger_service


@pytest.fixture(scope='function')
def runner(app):
    return app.test_cli_runner()


# =============================================================================
# REGISTER
# =============================================================================


class TestRegisterCommands:

    def test_close_then_reopen(self, runner, db_session, sell):
        sell(cash_cents=80000)

        result = runner.invoke(args=["register", "close"])
        assert result.exit_code == 0, result.output
        assert "Register closed" in result.output
        assert "swept $800.00" in result.output
        assert closure_service.has_closure_for_today()
        assert ledger_service.get_summary().total_saved_cash_cents == 80000

        result = runner.invoke(args=["register", "reopen", "--password", "1234"])
        assert result.exit_code == 0, result.output
        assert "reverted $800.00" in result.output
        assert not closure_service.has_closure_for_today()
        assert ledger_service.get_summary().total_saved_cash_cents == 0

    def test_close_twice_sweeps_once(self, runner, db_session, sell):
        sell(cash_cents=80000)

        runner.invoke(args=["register", "close"])
        result = runner.invoke(args=["register", "close"])

        assert result.exit_code == 0, result.output
        assert db_session.query(DailyClosure).count() == 1
        assert db_session.query(LedgerMovement).count() == 1

    def test_reopen_wrong_password(self, runner, db_session):
        runner.invoke(args=["register", "close"])

        result = runner.invoke(args=["register", "reopen", "--password", "0000"])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert closure_service.has_closure_for_today()

    def test_reopen_when_open(self, runner, db_session):
        result = runner.invoke(args=["register", "reopen", "--password", "1234"])
        assert result.exit_code == 0, result.output
        assert "already open" in result.output

    def test_status(self, runner, db_session, sell):
        sell(cash_cents=12000)

        result = runner.invoke(args=["register", "status"])

        assert result.exit_code == 0, result.output
        assert "OPEN" in result.output
        assert "$120.00" in result.output


# =============================================================================
# LEDGER AND CONFIG
# =============================================================================


class TestLedgerCommands:

    def test_add_and_summary(self, runner, db_session):
        result = runner.invoke(args=[
            "ledger", "add",
            "--account", "saved_cash",
            "--direction", "income",
            "--amount", "150.00",
            "--description", "Depósito",
        ])
        assert result.exit_code == 0, result.output

        movement = db_session.query(LedgerMovement).one()
        assert movement.amount_cents == 15000
        assert movement.created_by == "cli"

        result = runner.invoke(args=["ledger", "summary"])
        assert "Saved cash:  $150.00" in result.output

    @pytest.mark.parametrize("amount", ["abc", "1.005", "1e999999"])
    def test_add_rejects_bad_amount(self, runner, db_session, amount):
        result = runner.invoke(args=[
            "ledger", "add",
            "--account", "transfer",
            "--direction", "income",
            "--amount", amount,
            "--description", "Ajuste",
        ])
        assert result.exit_code == 1
        assert db_session.query(LedgerMovement).count() == 0


class TestConfigCommands:

    def test_set_daily_base(self, runner, db_session):
        result = runner.invoke(args=["config", "set-daily-base", "300.50"])
        assert result.exit_code == 0, result.output
        assert config_service.get_config().daily_base_cents == 30050
