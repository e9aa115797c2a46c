from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, DecimalException
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum single amount: $9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999

PAYMENT_METHODS = ("cash", "transfer")


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no", ""):
        return False
    if isinstance(value, int):
        return bool(value)
    raise ValidationError(f"{key} must be a boolean")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        return coerce_bool(col.key, value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def units_to_cents(key: str, value: Any) -> int:
    """
    Convert a currency amount ("12.50", 12.5, 12) to integer cents exactly.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    approximation. More than two decimal places is rejected.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{key} must be a number")
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValidationError(f"{key} must be a number")
        cents = amount * 100
        exact = cents == cents.to_integral_value()
    except (DecimalException, ValueError):
        # Exponents past the decimal context range overflow on scaling
        raise ValidationError(f"{key} must be a number")
    if not exact:
        raise ValidationError(f"{key} cannot have more than 2 decimal places")
    return int(cents)


def parse_money(
    payload: dict,
    key: str,
    *,
    required: bool = True,
    allow_zero: bool = False,
    default: int = 0,
) -> int:
    """
    Read an amount either as "<key>_cents" (integer) or "<key>" (currency units).

    Returns cents. Amounts are never negative; zero only when allow_zero.
    """
    cents_key = f"{key}_cents"
    if payload.get(cents_key) is not None:
        cents = coerce_int(cents_key, payload[cents_key])
    elif payload.get(key) is not None:
        cents = units_to_cents(key, payload[key])
    elif required:
        raise ValidationError(f"{cents_key} or {key} required")
    else:
        return default

    if cents < 0:
        raise ValidationError(f"{key} cannot be negative")
    if cents == 0 and not allow_zero:
        raise ValidationError(f"{key} must be greater than zero")
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT_CENTS} cents (${MAX_AMOUNT_CENTS / 100:,.2f})")
    return cents


def parse_payment_method(value: Any) -> str:
    method = str(value or "").strip().lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError("payment_method must be 'cash' or 'transfer'")
    return method


def require_text(payload: dict, key: str, *, max_length: int = 255) -> str:
    text = optional_text(payload, key, max_length=max_length)
    if text is None:
        raise ValidationError(f"{key} required")
    return text


def optional_text(payload: dict, key: str, *, max_length: int = 255, default: str | None = None) -> str | None:
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    text = value.strip()
    if not text:
        return default
    if len(text) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return text


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = [f for f in required if f not in payload]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(sorted(missing))}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_config(patch: dict) -> None:
    if "daily_base_cents" in patch:
        base = patch["daily_base_cents"]
        if base < 0:
            raise ValidationError("daily_base_cents must be >= 0")
        if base > MAX_AMOUNT_CENTS:
            raise ValidationError(f"daily_base_cents cannot exceed {MAX_AMOUNT_CENTS}")

    if "top_n" in patch and patch["top_n"] is not None:
        if patch["top_n"] < 1 or patch["top_n"] > 100:
            raise ValidationError("top_n must be between 1 and 100")
