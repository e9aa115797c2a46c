from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z, utcnow

SALE_COMPLETED = "completed"
SALE_CANCELLED = "cancelled"

PAYMENT_CASH = "cash"
PAYMENT_TRANSFER = "transfer"
PAYMENT_MIXED = "mixed"


class Sale(db.Model):
    """
    Completed restaurant sale.

    WHY: Sales carry the split between cash and transfer; the cash part feeds
    the till balance, the transfer part feeds the transfer ledger account.

    cash_received/cash_returned describe change-making only. They never
    enter the till reconciliation, cash_amount_cents is the net cash kept.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Line snapshots: product_id, product_name, quantity, unit_price_cents, total_cents
    items = db.Column(db.JSON, nullable=False, default=list)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    transfer_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_received_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_returned_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False)  # cash, transfer, mixed
    status = db.Column(db.String(16), nullable=False, default=SALE_COMPLETED, index=True)

    created_by = db.Column(db.String(64), nullable=False, default="system")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_by = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "items": self.items or [],
            "subtotal_cents": self.subtotal_cents,
            "total_cents": self.total_cents,
            "cash_amount_cents": self.cash_amount_cents,
            "transfer_amount_cents": self.transfer_amount_cents,
            "cash_received_cents": self.cash_received_cents,
            "cash_returned_cents": self.cash_returned_cents,
            "payment_method": self.payment_method,
            "status": self.status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "cancelled_by": self.cancelled_by,
        }
