# Overview: Business-day helpers and the open/closed register gate.

"""
A register is Open for a business date while no DailyClosure exists for it,
and Closed once one does. Every sale, expense and employee payment write
path calls ensure_register_open() before touching the database.
"""

from __future__ import annotations

from datetime import date, datetime

from flask import current_app

from ..extensions import db
from ..models import DailyClosure
from restopos.time_utils import business_today, day_bounds_utc


class RegisterClosedError(Exception):
    """Raised when a write is attempted while today's closure exists."""
    def __init__(self, day: date):
        super().__init__(f"Cash register is closed for {day.isoformat()}. Reopen it to record new activity.")
        self.day = day


def today() -> date:
    return business_today(current_app.config.get("BUSINESS_TIMEZONE", "UTC"))


def bounds_for(day: date) -> tuple[datetime, datetime]:
    return day_bounds_utc(day, current_app.config.get("BUSINESS_TIMEZONE", "UTC"))


def has_closure_for(day: date) -> bool:
    return db.session.query(DailyClosure.id).filter_by(date=day).first() is not None


def has_closure_for_today() -> bool:
    return has_closure_for(today())


def get_register_status() -> str:
    return "closed" if has_closure_for_today() else "open"


def ensure_register_open() -> date:
    """Return today's date, or raise RegisterClosedError."""
    day = today()
    if has_closure_for(day):
        raise RegisterClosedError(day)
    return day
