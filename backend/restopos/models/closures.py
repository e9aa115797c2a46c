from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z, utcnow


class DailyClosure(db.Model):
    """
    End-of-day cash register closure.

    WHY: Freezes the day's activity (embedded copies, not references) and
    records how much cash was swept from the till into saved cash.

    LIFECYCLE:
    - Created once per business date by the closure engine
    - Deleted wholesale by reopen, never mutated

    The unique constraint on date is what makes concurrent closes safe.
    """
    __tablename__ = "daily_closures"
    __table_args__ = (
        db.UniqueConstraint("date", name="uq_daily_closures_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False)

    # Snapshots
    sales = db.Column(db.JSON, nullable=False, default=list)
    expenses = db.Column(db.JSON, nullable=False, default=list)
    employee_payments = db.Column(db.JSON, nullable=False, default=list)
    low_stock_products = db.Column(db.JSON, nullable=False, default=list)

    # Totals (all amounts in cents)
    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    total_transfer_cents = db.Column(db.Integer, nullable=False, default=0)
    total_expenses_cents = db.Column(db.Integer, nullable=False, default=0)
    total_payments_cents = db.Column(db.Integer, nullable=False, default=0)

    # Till detail
    cash_expenses_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_payments_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_before_closure_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_after_closure_cents = db.Column(db.Integer, nullable=False, default=0)

    # Config captured at close time; reopen reverses with these values
    daily_base_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_excess_transferred_cents = db.Column(db.Integer, nullable=False, default=0)
    excess_movement_id = db.Column(db.Integer, nullable=True)

    created_by = db.Column(db.String(64), nullable=False, default="system")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<DailyClosure id={self.id} date={self.date}>"

    def to_dict(self, include_snapshots: bool = True) -> dict:
        data = {
            "id": self.id,
            "date": self.date.isoformat(),
            "total_sales_cents": self.total_sales_cents,
            "total_cash_cents": self.total_cash_cents,
            "total_transfer_cents": self.total_transfer_cents,
            "total_expenses_cents": self.total_expenses_cents,
            "total_payments_cents": self.total_payments_cents,
            "cash_expenses_cents": self.cash_expenses_cents,
            "cash_payments_cents": self.cash_payments_cents,
            "cash_before_closure_cents": self.cash_before_closure_cents,
            "cash_after_closure_cents": self.cash_after_closure_cents,
            "daily_base_cents": self.daily_base_cents,
            "cash_excess_transferred_cents": self.cash_excess_transferred_cents,
            "excess_movement_id": self.excess_movement_id,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
        if include_snapshots:
            data["sales"] = self.sales or []
            data["expenses"] = self.expenses or []
            data["employee_payments"] = self.employee_payments or []
            data["low_stock_products"] = self.low_stock_products or []
        return data
