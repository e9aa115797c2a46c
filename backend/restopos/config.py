# backend/restopos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/restopos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///restopos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Calendar used to decide what "today" means for closures
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", "UTC")

    # Seed values for the system_config row (created on first read)
    DEFAULT_DAILY_BASE_CENTS = int(os.environ.get("DEFAULT_DAILY_BASE_CENTS", "50000"))
    DEFAULT_REOPEN_PASSWORD = os.environ.get("DEFAULT_REOPEN_PASSWORD", "1234")
    DEFAULT_BUSINESS_NAME = os.environ.get("DEFAULT_BUSINESS_NAME", "Mi Restaurante")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
