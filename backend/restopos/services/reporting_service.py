# Overview: Service-layer operations for reporting; aggregates closure history and today's live data.

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import DailyClosure, Product
from restopos.time_utils import month_bounds
from .business_day import today
from .closure_service import list_monthly_closures
from .expense_service import get_expenses_for
from .payroll_service import get_employee_payments_for
from .sales_service import get_sales_for


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _live_totals(day: date) -> dict:
    return {
        "total_sales_cents": sum(s.total_cents for s in get_sales_for(day)),
        "total_expenses_cents": sum(e.amount_cents for e in get_expenses_for(day)),
        "total_payments_cents": sum(p.final_amount_cents for p in get_employee_payments_for(day)),
    }


def _closure_totals(closure: DailyClosure | None) -> dict:
    if closure is None:
        return {"total_sales_cents": 0, "total_expenses_cents": 0, "total_payments_cents": 0}
    return {
        "total_sales_cents": closure.total_sales_cents,
        "total_expenses_cents": closure.total_expenses_cents,
        "total_payments_cents": closure.total_payments_cents,
    }


def _shift_month(day: date, months_back: int) -> date:
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def _closures_for_period(period: str | None) -> list[DailyClosure]:
    """period: None (all), "YYYY-MM" or "YYYY-MM-DD"."""
    if not period:
        return db.session.query(DailyClosure).order_by(DailyClosure.date).all()
    if len(period) == 10:
        try:
            day = date.fromisoformat(period)
        except ValueError:
            raise ReportError("period must be YYYY-MM or YYYY-MM-DD")
        return db.session.query(DailyClosure).filter_by(date=day).all()
    try:
        return list_monthly_closures(period)
    except ValueError:
        raise ReportError("period must be YYYY-MM or YYYY-MM-DD")


def daily_stats(days: int = 30) -> list[dict]:
    """
    Per-day totals for the last `days` days, oldest first.

    Past days come from their closure (zero when never closed); today always
    comes from live data so the figure moves during the day.
    """
    if days < 1 or days > 366:
        raise ReportError("days must be between 1 and 366")

    current = today()
    first = date.fromordinal(current.toordinal() - (days - 1))
    closures = {
        c.date: c
        for c in db.session.query(DailyClosure).filter(
            DailyClosure.date >= first,
            DailyClosure.date <= current,
        ).all()
    }

    rows = []
    for offset in range(days - 1, -1, -1):
        day = date.fromordinal(current.toordinal() - offset)
        totals = _live_totals(day) if day == current else _closure_totals(closures.get(day))
        rows.append({"date": day.isoformat(), **totals})
    return rows


def monthly_stats(months: int = 12) -> list[dict]:
    """
    Per-month totals for the last `months` months, oldest first.

    Today's closure (if any) is skipped and replaced by today's live data so
    the current day is never counted twice.
    """
    if months < 1 or months > 120:
        raise ReportError("months must be between 1 and 120")

    current = today()
    live = _live_totals(current)

    rows = []
    for offset in range(months - 1, -1, -1):
        month_start = _shift_month(current, offset)
        year_month = f"{month_start.year:04d}-{month_start.month:02d}"
        totals = {"total_sales_cents": 0, "total_expenses_cents": 0, "total_payments_cents": 0}

        for closure in list_monthly_closures(year_month):
            if closure.date == current:
                continue
            for key, value in _closure_totals(closure).items():
                totals[key] += value

        if offset == 0:
            for key, value in live.items():
                totals[key] += value

        rows.append({"month": year_month, **totals})
    return rows


def _product_stats(closures: list[DailyClosure]) -> dict:
    stats: dict = {}
    for closure in closures:
        for sale in closure.sales or []:
            for item in sale.get("items", []):
                key = item.get("product_id") or item.get("product_name")
                entry = stats.setdefault(key, {
                    "product_id": item.get("product_id"),
                    "product_name": item.get("product_name"),
                    "total_quantity": 0,
                    "total_revenue_cents": 0,
                })
                entry["total_quantity"] += int(item.get("quantity", 0))
                entry["total_revenue_cents"] += int(item.get("total_cents", 0))
    return stats


def top_products(n: int = 10, period: str | None = None) -> list[dict]:
    """Best sellers by quantity, from closed days only."""
    stats = _product_stats(_closures_for_period(period))
    return sorted(stats.values(), key=lambda s: s["total_quantity"], reverse=True)[:n]


def bottom_products(n: int = 10, period: str | None = None) -> list[dict]:
    """
    Worst sellers by quantity. Active products that never sold are
    included with zero so they surface first.
    """
    stats = {
        p.id: {"product_id": p.id, "product_name": p.name, "total_quantity": 0, "total_revenue_cents": 0}
        for p in db.session.query(Product).filter(Product.is_active.is_(True)).all()
    }
    for key, entry in _product_stats(_closures_for_period(period)).items():
        if key in stats:
            stats[key]["total_quantity"] += entry["total_quantity"]
            stats[key]["total_revenue_cents"] += entry["total_revenue_cents"]
    return sorted(stats.values(), key=lambda s: s["total_quantity"])[:n]


def monthly_summary(year_month: str) -> dict:
    """Closures of a month and their summed totals."""
    try:
        month_bounds(year_month)
    except ValueError as exc:
        raise ReportError(str(exc))

    closures = list_monthly_closures(year_month)
    totals = {
        "total_sales_cents": 0,
        "total_cash_cents": 0,
        "total_transfer_cents": 0,
        "total_expenses_cents": 0,
        "total_payments_cents": 0,
        "cash_excess_transferred_cents": 0,
    }
    for closure in closures:
        for key in totals:
            totals[key] += getattr(closure, key)

    return {
        "month": year_month,
        "closure_count": len(closures),
        "totals": totals,
        "closures": [c.to_dict(include_snapshots=False) for c in closures],
    }
