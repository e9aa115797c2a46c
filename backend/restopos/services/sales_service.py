"""
Sales Service - recording and cancelling restaurant sales

WHY: A sale splits its total between cash (stays in the till) and transfer
(lands in the transfer ledger account). Stock is decremented for
inventory-controlled products only.

All writes for a sale (sale row, stock, ledger movement) commit together.
"""

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import Product, Sale
from ..models.sales import (
    PAYMENT_CASH,
    PAYMENT_MIXED,
    PAYMENT_TRANSFER,
    SALE_CANCELLED,
    SALE_COMPLETED,
)
from ..validation import ValidationError, coerce_int
from restopos.time_utils import utcnow
from . import inventory_service, ledger_service
from .business_day import bounds_for, ensure_register_open, today
from .concurrency import atomic, lock_for_update


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None, not_found: bool = False):
        super().__init__(message)
        self.details = details or {}
        self.not_found = not_found


def derive_payment_method(cash_amount_cents: int, transfer_amount_cents: int) -> str:
    if cash_amount_cents > 0 and transfer_amount_cents > 0:
        return PAYMENT_MIXED
    if transfer_amount_cents > 0:
        return PAYMENT_TRANSFER
    return PAYMENT_CASH


def _normalize_items(items: list[dict]) -> list[dict]:
    """
    Resolve sale lines into snapshots.

    A line names a product_id and quantity; name and unit price default to
    the product's current values but may be overridden (open-price items).
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")

        quantity = coerce_int(f"items[{index}].quantity", item.get("quantity"))
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")

        product = None
        if item.get("product_id") is not None:
            product_id = coerce_int(f"items[{index}].product_id", item["product_id"])
            product = db.session.get(Product, product_id)
            if not product:
                raise SaleError("Product not found", details={"product_id": product_id})
            if not product.is_active:
                raise SaleError("Product is not active", details={"product_id": product_id})

        if item.get("unit_price_cents") is not None:
            unit_price = coerce_int(f"items[{index}].unit_price_cents", item["unit_price_cents"])
        elif product is not None:
            unit_price = product.price_cents
        else:
            raise ValidationError(f"items[{index}] requires product_id or unit_price_cents")
        if unit_price < 0:
            raise ValidationError(f"items[{index}].unit_price_cents cannot be negative")

        name = item.get("product_name") or (product.name if product else None)
        if not name:
            raise ValidationError(f"items[{index}].product_name required")

        lines.append({
            "product_id": product.id if product else None,
            "product_name": str(name),
            "quantity": quantity,
            "unit_price_cents": unit_price,
            "total_cents": unit_price * quantity,
        })
    return lines


def record_sale(
    items: list[dict],
    cash_amount_cents: int,
    transfer_amount_cents: int,
    cash_received_cents: int | None = None,
    created_by: str = "system",
) -> Sale:
    """
    Record a completed sale.

    cash_amount + transfer_amount must equal the sum of the lines.
    cash_received defaults to cash_amount (exact change); any excess is
    returned to the customer and recorded as cash_returned.

    Raises:
        RegisterClosedError: today's register is already closed
        SaleError / ValidationError: invalid sale
    """
    ensure_register_open()

    lines = _normalize_items(items)
    total = sum(line["total_cents"] for line in lines)

    if cash_amount_cents < 0 or transfer_amount_cents < 0:
        raise ValidationError("Payment amounts cannot be negative")
    if cash_amount_cents + transfer_amount_cents != total:
        raise SaleError(
            "Payment does not match sale total",
            details={
                "total_cents": total,
                "cash_amount_cents": cash_amount_cents,
                "transfer_amount_cents": transfer_amount_cents,
            },
        )

    if cash_received_cents is None:
        cash_received_cents = cash_amount_cents
    if cash_received_cents < cash_amount_cents:
        raise SaleError("cash_received cannot be less than the cash amount")

    sale = Sale(
        items=lines,
        subtotal_cents=total,
        total_cents=total,
        cash_amount_cents=cash_amount_cents,
        transfer_amount_cents=transfer_amount_cents,
        cash_received_cents=cash_received_cents,
        cash_returned_cents=max(0, cash_received_cents - cash_amount_cents),
        payment_method=derive_payment_method(cash_amount_cents, transfer_amount_cents),
        status=SALE_COMPLETED,
        created_by=created_by or "system",
    )
    with atomic("record sale"):
        db.session.add(sale)
        db.session.flush()
        inventory_service.apply_sale_items(lines)
        ledger_service.post_sale_income(sale, created_by="system")
        # A close may have committed since the first check
        ensure_register_open()

    return sale


def cancel_sale(sale_id: int, cancelled_by: str) -> Sale:
    """
    Cancel a completed sale, restoring stock and reversing its transfer.

    Blocked while the register is closed: the closure snapshot already
    counted the sale.
    """
    ensure_register_open()

    with atomic("cancel sale"):
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise SaleError("Sale not found", not_found=True)
        if sale.status != SALE_COMPLETED:
            raise SaleError(f"Cannot cancel sale with status {sale.status}")

        sale.status = SALE_CANCELLED
        sale.cancelled_at = utcnow()
        sale.cancelled_by = cancelled_by or "system"

        inventory_service.apply_sale_items(sale.items or [], restore=True)
        ledger_service.post_sale_cancellation(sale, created_by=sale.cancelled_by)
        ensure_register_open()

    return sale


def get_sales_for(day: date, *, completed_only: bool = True) -> list[Sale]:
    start, end = bounds_for(day)
    query = db.session.query(Sale).filter(Sale.created_at >= start, Sale.created_at < end)
    if completed_only:
        query = query.filter(Sale.status == SALE_COMPLETED)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def get_today_sales() -> list[Sale]:
    """Today's completed sales."""
    return get_sales_for(today())


def list_sales(limit: int = 200) -> list[Sale]:
    return db.session.query(Sale).order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
