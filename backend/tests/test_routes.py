"""
HTTP surface tests.

Verifies status codes and payload shapes for the register, ledger,
sales, expense, payment, configuration and report endpoints.
"""

import pytest


def _sale_body(cash_cents=0, transfer_cents=0):
    return {
        "items": [{"product_name": "Menú del día", "quantity": 1, "unit_price_cents": cash_cents + transfer_cents}],
        "cash_amount_cents": cash_cents,
        "transfer_amount_cents": transfer_cents,
        "created_by": "cashier",
    }


# =============================================================================
# SYSTEM
# =============================================================================


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["register"]["status"] == "open"


# =============================================================================
# REGISTER
# =============================================================================


class TestRegisterRoutes:

    def test_close_and_reopen_flow(self, client, db_session):
        resp = client.post("/api/sales", json=_sale_body(cash_cents=80000))
        assert resp.status_code == 201

        resp = client.post("/api/register/close", json={"created_by": "admin"})
        assert resp.status_code == 200
        closure = resp.json["closure"]
        assert closure["cash_excess_transferred_cents"] == 80000
        assert closure["created_by"] == "admin"

        assert client.get("/api/register/status").json["status"] == "closed"
        assert client.get("/api/ledger/summary").json["summary"]["total_saved_cash_cents"] == 80000

        # Closing again returns the same closure
        again = client.post("/api/register/close", json={})
        assert again.json["closure"]["id"] == closure["id"]

        resp = client.post("/api/register/reopen", json={"password": "1234"})
        assert resp.status_code == 200
        assert resp.json["success"] is True
        assert resp.json["reverted_amount_cents"] == 80000

        assert client.get("/api/register/status").json["status"] == "open"
        assert client.get("/api/ledger/summary").json["summary"]["total_saved_cash_cents"] == 0

    def test_reopen_wrong_password(self, client, db_session):
        client.post("/api/register/close", json={})

        resp = client.post("/api/register/reopen", json={"password": "nope"})
        assert resp.status_code == 403
        assert resp.json["code"] == "INVALID_CREDENTIALS"
        assert client.get("/api/register/status").json["status"] == "closed"

    def test_reopen_requires_password(self, client, db_session):
        resp = client.post("/api/register/reopen", json={})
        assert resp.status_code == 400

    def test_reopen_when_open(self, client, db_session):
        resp = client.post("/api/register/reopen", json={"password": "1234"})
        assert resp.status_code == 200
        assert resp.json["nothing_to_reopen"] is True

    def test_cash_summary(self, client, db_session):
        client.post("/api/sales", json=_sale_body(cash_cents=60000))

        summary = client.get("/api/register/cash-summary").json["cash_summary"]
        assert summary["expected_cash_cents"] == 110000
        assert summary["excess_to_transfer_cents"] == 60000

    def test_closure_history(self, client, db_session):
        closure_id = client.post("/api/register/close", json={}).json["closure"]["id"]

        listed = client.get("/api/register/closures").json["closures"]
        assert [c["id"] for c in listed] == [closure_id]
        assert "sales" not in listed[0]

        detail = client.get(f"/api/register/closures/{closure_id}")
        assert detail.status_code == 200
        assert "sales" in detail.json["closure"]

        assert client.get("/api/register/closures/999999").status_code == 404
        assert client.get("/api/register/closures/month/2026-13").status_code == 400


# =============================================================================
# WRITES WHILE CLOSED
# =============================================================================


class TestClosedRegisterRoutes:

    @pytest.mark.parametrize(
        "path,body",
        [
            ("/api/sales", _sale_body(cash_cents=1000)),
            ("/api/expenses", {"description": "Gas", "amount_cents": 100, "payment_method": "cash"}),
            ("/api/employee-payments", {"employee_name": "Ana", "final_amount_cents": 100, "payment_method": "cash"}),
        ],
    )
    def test_writes_rejected_with_409(self, client, db_session, path, body):
        client.post("/api/register/close", json={})

        resp = client.post(path, json=body)
        assert resp.status_code == 409
        assert resp.json["code"] == "REGISTER_CLOSED"

    def test_ledger_adjustments_allowed_while_closed(self, client, db_session):
        client.post("/api/register/close", json={})

        resp = client.post("/api/ledger/movements", json={
            "account": "saved_cash",
            "direction": "expense",
            "amount": "150.00",
            "description": "Depósito bancario",
        })
        assert resp.status_code == 201
        assert resp.json["movement"]["amount_cents"] == 15000


# =============================================================================
# LEDGER
# =============================================================================


class TestLedgerRoutes:

    def test_create_list_delete(self, client, db_session):
        resp = client.post("/api/ledger/movements", json={
            "account": "transfer",
            "direction": "income",
            "amount_cents": 2500,
            "description": "Ajuste",
        })
        assert resp.status_code == 201
        movement_id = resp.json["movement"]["id"]

        items = client.get("/api/ledger/movements?account=transfer").json["items"]
        assert [m["id"] for m in items] == [movement_id]

        assert client.delete(f"/api/ledger/movements/{movement_id}").status_code == 200
        assert client.delete(f"/api/ledger/movements/{movement_id}").status_code == 404

    @pytest.mark.parametrize(
        "body",
        [
            {"account": "transfer", "direction": "income", "description": "x"},
            {"account": "transfer", "direction": "income", "amount": "1.005", "description": "x"},
            {"account": "transfer", "direction": "income", "amount_cents": -5, "description": "x"},
            {"account": "vault", "direction": "income", "amount_cents": 5, "description": "x"},
            {"account": "transfer", "direction": "income", "amount": "1e999999", "description": "x"},
            {"account": "transfer", "direction": "income", "amount": [100], "description": "x"},
            {"account": "transfer", "direction": "income", "amount_cents": 100, "description": 123},
            {"account": "transfer", "direction": "income", "amount_cents": 100, "description": "x", "notes": {"a": 1}},
        ],
    )
    def test_invalid_movement(self, client, db_session, body):
        assert client.post("/api/ledger/movements", json=body).status_code == 400

    def test_unknown_account_filter(self, client, db_session):
        assert client.get("/api/ledger/movements?account=vault").status_code == 400


# =============================================================================
# SALES / EXPENSES / PAYMENTS
# =============================================================================


class TestSalesRoutes:

    def test_create_in_units_and_cancel(self, client, db_session):
        body = {
            "items": [{"product_name": "Bandeja", "quantity": 2, "unit_price_cents": 1250}],
            "cash_amount": "10.00",
            "transfer_amount": "15.00",
        }
        resp = client.post("/api/sales", json=body)
        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["payment_method"] == "mixed"
        assert sale["total_cents"] == 2500

        today = client.get("/api/sales/today").json["sales"]
        assert [s["id"] for s in today] == [sale["id"]]

        resp = client.post(f"/api/sales/{sale['id']}/cancel", json={"cancelled_by": "manager"})
        assert resp.status_code == 200
        assert resp.json["sale"]["status"] == "cancelled"
        assert client.get("/api/sales/today").json["sales"] == []

    def test_mismatched_payment(self, client, db_session):
        body = _sale_body(cash_cents=1000)
        body["cash_amount_cents"] = 500
        resp = client.post("/api/sales", json=body)
        assert resp.status_code == 400
        assert resp.json["details"]["total_cents"] == 1000

    def test_cancel_missing_sale(self, client, db_session):
        assert client.post("/api/sales/999999/cancel", json={}).status_code == 404


class TestExpenseAndPaymentRoutes:

    def test_expense_lifecycle(self, client, db_session):
        resp = client.post("/api/expenses", json={
            "description": "Gas",
            "amount": "45.00",
            "payment_method": "cash",
            "from_cash_register": False,
            "category": "servicios",
        })
        assert resp.status_code == 201
        expense_id = resp.json["expense"]["id"]
        assert client.get("/api/ledger/summary").json["summary"]["total_saved_cash_cents"] == -4500

        assert [e["id"] for e in client.get("/api/expenses/today").json["expenses"]] == [expense_id]

        assert client.delete(f"/api/expenses/{expense_id}").status_code == 200
        assert client.delete(f"/api/expenses/{expense_id}").status_code == 404
        assert client.get("/api/ledger/summary").json["summary"]["total_saved_cash_cents"] == 0

    def test_expense_validation(self, client, db_session):
        resp = client.post("/api/expenses", json={"description": "Gas", "amount_cents": 100, "payment_method": "card"})
        assert resp.status_code == 400
        resp = client.post("/api/expenses", json={"amount_cents": 100, "payment_method": "cash"})
        assert resp.status_code == 400
        resp = client.post("/api/expenses", json={"description": "Gas", "amount_cents": 100, "payment_method": "cash", "category": 7})
        assert resp.status_code == 400

    def test_payment_lifecycle(self, client, db_session):
        resp = client.post("/api/employee-payments", json={
            "employee_name": "Ana",
            "position": "Mesera",
            "base_amount_cents": 60000,
            "final_amount_cents": 65000,
            "payment_method": "transfer",
        })
        assert resp.status_code == 201
        payment = resp.json["payment"]
        assert payment["base_amount_cents"] == 60000
        assert client.get("/api/ledger/summary").json["summary"]["total_transfers_cents"] == -65000

        assert client.delete(f"/api/employee-payments/{payment['id']}").status_code == 200
        assert client.get("/api/employee-payments/today").json["payments"] == []


# =============================================================================
# CONFIG AND REPORTS
# =============================================================================


class TestConfigRoutes:

    def test_get_and_patch(self, client, db_session):
        config = client.get("/api/config").json["config"]
        assert config["daily_base_cents"] == 50000
        assert "reopen_password_hash" not in config

        resp = client.patch("/api/config", json={"daily_base": "300.50", "business_name": "La Fonda"})
        assert resp.status_code == 200
        assert resp.json["config"]["daily_base_cents"] == 30050
        assert resp.json["config"]["business_name"] == "La Fonda"

    def test_patch_rejects_password_field(self, client, db_session):
        resp = client.patch("/api/config", json={"reopen_password_hash": "x"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("daily_base", ["1e999999", "abc", {"units": 5}])
    def test_patch_rejects_unparseable_base(self, client, db_session, daily_base):
        resp = client.patch("/api/config", json={"daily_base": daily_base})
        assert resp.status_code == 400
        assert client.get("/api/config").json["config"]["daily_base_cents"] == 50000

    def test_change_reopen_password(self, client, db_session):
        resp = client.post("/api/config/reopen-password", json={"current_password": "1234", "new_password": "5678"})
        assert resp.status_code == 200

        client.post("/api/register/close", json={})
        assert client.post("/api/register/reopen", json={"password": "1234"}).status_code == 403
        assert client.post("/api/register/reopen", json={"password": "5678"}).status_code == 200

    def test_change_reopen_password_wrong_current(self, client, db_session):
        resp = client.post("/api/config/reopen-password", json={"current_password": "0000", "new_password": "5678"})
        assert resp.status_code == 400


class TestReportRoutes:

    def test_daily_and_monthly(self, client, db_session):
        client.post("/api/sales", json=_sale_body(cash_cents=1000))

        days = client.get("/api/reports/daily?days=7").json["days"]
        assert len(days) == 7
        assert days[-1]["total_sales_cents"] == 1000

        months = client.get("/api/reports/monthly?months=2").json["months"]
        assert len(months) == 2

        assert client.get("/api/reports/daily?days=0").status_code == 400

    def test_product_reports(self, client, db_session):
        resp = client.get("/api/reports/top-products?period=2026-01")
        assert resp.status_code == 200
        assert resp.json["products"] == []
        assert resp.json["n"] == 10

        assert client.get("/api/reports/bottom-products?n=3").status_code == 200
        assert client.get("/api/reports/top-products?period=bad").status_code == 400

    def test_month_summary(self, client, db_session):
        resp = client.get("/api/reports/month/2026-01")
        assert resp.status_code == 200
        assert resp.json["closure_count"] == 0
        assert client.get("/api/reports/month/January").status_code == 400
