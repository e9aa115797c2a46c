from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z, utcnow

ACCOUNT_TRANSFER = "transfer"
ACCOUNT_SAVED_CASH = "saved_cash"
ACCOUNTS = (ACCOUNT_TRANSFER, ACCOUNT_SAVED_CASH)

DIRECTION_INCOME = "income"
DIRECTION_EXPENSE = "expense"
DIRECTIONS = (DIRECTION_INCOME, DIRECTION_EXPENSE)


class LedgerMovement(db.Model):
    """
    Major-cash ledger movement.

    WHY: Money that leaves the physical till (bank transfers, cash stored
    elsewhere) is tracked as movements on two virtual accounts. Balances are
    never stored; they are folded from the movements on every read.

    APPEND-ONLY: Rows are never updated. Corrections are either a new
    compensating movement or an explicit admin delete.
    """
    __tablename__ = "ledger_movements"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_ledger_movements_amount_positive"),
        db.CheckConstraint("account IN ('transfer', 'saved_cash')", name="ck_ledger_movements_account"),
        db.CheckConstraint("direction IN ('income', 'expense')", name="ck_ledger_movements_direction"),
        db.Index("ix_ledger_movements_account_created", "account", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    account = db.Column(db.String(16), nullable=False, index=True)  # transfer, saved_cash
    direction = db.Column(db.String(16), nullable=False)  # income, expense
    amount_cents = db.Column(db.Integer, nullable=False)

    description = db.Column(db.String(255), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.String(64), nullable=False, default="system")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    @property
    def signed_amount_cents(self) -> int:
        if self.direction == DIRECTION_INCOME:
            return self.amount_cents
        return -self.amount_cents

    def __repr__(self) -> str:
        return f"<LedgerMovement id={self.id} {self.account} {self.direction} {self.amount_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account": self.account,
            "direction": self.direction,
            "amount_cents": self.amount_cents,
            "signed_amount_cents": self.signed_amount_cents,
            "description": self.description,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
