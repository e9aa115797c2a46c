# Overview: Service-layer operations for register configuration.

"""
Register configuration service.

The business runs a single register configuration row. It is created on
first read from the Flask config defaults, so a fresh database is usable
without a bootstrap step.

SECURITY NOTES:
- The reopen code is hashed with bcrypt; plaintext is never stored
- Verification uses bcrypt.checkpw (constant-time comparison)
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import SystemConfig
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_config,
    validate_payload,
)
from .concurrency import commit_or_rollback


CONFIG_POLICY = ModelValidationPolicy(
    writable_fields={
        "business_name",
        "business_address",
        "business_phone",
        "business_tax_id",
        "alert_email",
        "top_n",
        "daily_base_cents",
    },
)

MIN_REOPEN_PASSWORD_LENGTH = 4


def hash_reopen_password(password: str) -> str:
    if not isinstance(password, str) or len(password) < MIN_REOPEN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Reopen password must be at least {MIN_REOPEN_PASSWORD_LENGTH} characters long"
        )
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def get_config() -> SystemConfig:
    """Return the configuration row, creating it with defaults if missing."""
    config = db.session.query(SystemConfig).order_by(SystemConfig.id).first()
    if config:
        return config

    config = SystemConfig(
        business_name=current_app.config.get("DEFAULT_BUSINESS_NAME", "Mi Restaurante"),
        daily_base_cents=current_app.config.get("DEFAULT_DAILY_BASE_CENTS", 50000),
        reopen_password_hash=hash_reopen_password(
            current_app.config.get("DEFAULT_REOPEN_PASSWORD", "1234")
        ),
        top_n=10,
    )
    db.session.add(config)
    commit_or_rollback("create register configuration")
    current_app.logger.info("Created default register configuration")
    return config


def update_config(payload: dict) -> SystemConfig:
    """
    Patch writable configuration fields.

    daily_base changes apply to the next closure only; existing closures keep
    the base captured when they were created.
    """
    patch = validate_payload(model=SystemConfig, payload=payload, policy=CONFIG_POLICY, partial=True)
    enforce_rules_config(patch)

    config = get_config()
    for key, value in patch.items():
        setattr(config, key, value)

    commit_or_rollback("update register configuration")
    return config


def set_reopen_password(new_password: str, current_password: str | None = None) -> None:
    """
    Replace the reopen code.

    When current_password is given it must match the stored hash.
    """
    config = get_config()
    if current_password is not None and not verify_reopen_password(current_password):
        raise ValidationError("Current reopen password is incorrect")

    config.reopen_password_hash = hash_reopen_password(new_password)
    commit_or_rollback("update reopen password")


def verify_reopen_password(password: str | None) -> bool:
    if not password or not isinstance(password, str):
        return False
    config = get_config()
    try:
        return bcrypt.checkpw(password.encode("utf-8"), config.reopen_password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        current_app.logger.error("Stored reopen password hash is not a valid bcrypt hash")
        return False
