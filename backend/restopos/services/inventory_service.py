# Overview: Stock bookkeeping for inventory-controlled menu products.

from __future__ import annotations

from ..extensions import db
from ..models import Product
from .concurrency import lock_for_update


def suggested_order(stock: int, min_stock: int) -> int:
    return max(min_stock * 2 - stock, min_stock)


def get_low_stock_products() -> list[dict]:
    """
    Active, inventory-controlled products at or below their minimum.

    Returned as plain dicts because the closure embeds them as a snapshot.
    """
    products = db.session.query(Product).filter(
        Product.is_active.is_(True),
        Product.has_inventory_control.is_(True),
        Product.stock <= Product.min_stock,
    ).order_by(Product.name).all()

    return [
        {
            "product_id": p.id,
            "product_name": p.name,
            "current_stock": p.stock,
            "min_stock": p.min_stock,
            "suggested_order": suggested_order(p.stock, p.min_stock),
        }
        for p in products
    ]


def apply_sale_items(items: list[dict], *, restore: bool = False) -> None:
    """
    Decrement (or restore, on cancellation) stock for sold lines.

    Products without inventory control are skipped. Stock may go negative:
    the kitchen has already served the dish by the time it is rung up.
    Does not commit.
    """
    for item in items:
        product_id = item.get("product_id")
        if product_id is None:
            continue
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product or not product.has_inventory_control:
            continue
        quantity = int(item.get("quantity", 0))
        product.stock = product.stock + quantity if restore else product.stock - quantity

    db.session.flush()
