# Overview: Request decorators for API routes.

from functools import wraps
from flask import jsonify, request

from .services import business_day


def require_open_register(f):
    """
    Reject writes while today's register is closed.

    Returns 409 before the request body is even parsed. The services enforce
    the same gate, so this only saves the round trip through validation.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if business_day.has_closure_for_today():
            return jsonify({
                "error": "Cash register is closed",
                "code": "REGISTER_CLOSED",
                "date": business_day.today().isoformat(),
            }), 409

        return f(*args, **kwargs)

    return decorated_function


def json_body() -> dict:
    """Request JSON as a dict ({} when missing or not an object)."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
