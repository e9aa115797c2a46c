# Overview: Flask API routes for sales and cash reports; parses input and returns JSON responses.

"""
Reporting API Routes

Reports are read-only. Past days come from closure snapshots; the
current day comes from live data.
"""

from flask import Blueprint, request, jsonify

from ..services import config_service, reporting_service
from ..services.reporting_service import ReportError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/daily")
def daily_report_route():
    """
    Query params:
        days: 1..366 (default 30)
    """
    try:
        rows = reporting_service.daily_stats(days=request.args.get("days", default=30, type=int))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"days": rows}), 200


@reports_bp.get("/monthly")
def monthly_report_route():
    """
    Query params:
        months: 1..120 (default 12)
    """
    try:
        rows = reporting_service.monthly_stats(months=request.args.get("months", default=12, type=int))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"months": rows}), 200


def _product_report(fn):
    n = request.args.get("n", type=int) or config_service.get_config().top_n or 10
    n = max(1, min(n, 100))
    try:
        products = fn(n=n, period=request.args.get("period") or None)
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"products": products, "n": n}), 200


@reports_bp.get("/top-products")
def top_products_route():
    """
    Query params:
        n: how many (default: configured top_n)
        period: YYYY-MM or YYYY-MM-DD (optional, default all time)
    """
    return _product_report(reporting_service.top_products)


@reports_bp.get("/bottom-products")
def bottom_products_route():
    return _product_report(reporting_service.bottom_products)


@reports_bp.get("/month/<year_month>")
def month_summary_route(year_month: str):
    try:
        summary = reporting_service.monthly_summary(year_month)
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(summary), 200
