from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z, utcnow


class Expense(db.Model):
    """
    Business expense.

    from_cash_register only matters for cash expenses: True means the money
    came out of the till, False means it came from saved cash.
    """
    __tablename__ = "expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(64), nullable=True)

    payment_method = db.Column(db.String(16), nullable=False)  # cash, transfer
    from_cash_register = db.Column(db.Boolean, nullable=False, default=False)

    created_by = db.Column(db.String(64), nullable=False, default="system")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "category": self.category,
            "payment_method": self.payment_method,
            "from_cash_register": self.from_cash_register,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class EmployeePayment(db.Model):
    """
    Shift payment to an employee.

    Employee name and position are copied at payment time so the record
    stays readable after the employee changes.
    """
    __tablename__ = "employee_payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, nullable=True, index=True)
    employee_name = db.Column(db.String(128), nullable=False)
    position = db.Column(db.String(64), nullable=True)

    base_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    final_amount_cents = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    payment_method = db.Column(db.String(16), nullable=False)  # cash, transfer
    from_cash_register = db.Column(db.Boolean, nullable=False, default=False)

    created_by = db.Column(db.String(64), nullable=False, default="system")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "position": self.position,
            "base_amount_cents": self.base_amount_cents,
            "final_amount_cents": self.final_amount_cents,
            "notes": self.notes,
            "payment_method": self.payment_method,
            "from_cash_register": self.from_cash_register,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
