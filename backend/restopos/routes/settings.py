# Overview: Flask API routes for register configuration; parses input and returns JSON responses.

from flask import Blueprint, jsonify, current_app

from ..decorators import json_body
from ..services import config_service
from ..services.concurrency import PersistenceError
from ..validation import ValidationError, units_to_cents


settings_bp = Blueprint("settings", __name__, url_prefix="/api/config")


@settings_bp.get("")
def get_config_route():
    return jsonify({"config": config_service.get_config().to_dict()}), 200


@settings_bp.patch("")
def update_config_route():
    """
    Update business details and the daily cash base.

    Request body (any subset):
    {
        "business_name": "La Fonda",
        "daily_base_cents": 50000,        (or "daily_base": "500.00")
        "top_n": 10
    }

    The reopen password cannot be changed here.
    """
    try:
        data = dict(json_body())
        if "daily_base" in data:
            data["daily_base_cents"] = units_to_cents("daily_base", data.pop("daily_base"))

        config = config_service.update_config(data)
        return jsonify({"config": config.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to update configuration")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to update configuration")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.post("/reopen-password")
def change_reopen_password_route():
    """
    Replace the reopen password.

    Request body:
    {
        "current_password": "1234",
        "new_password": "9876"
    }
    """
    try:
        data = json_body()
        current_password = data.get("current_password")
        if not current_password:
            return jsonify({"error": "current_password required"}), 400

        config_service.set_reopen_password(data.get("new_password"), current_password=current_password)
        current_app.logger.info("Reopen password changed")
        return jsonify({"updated": True}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError as e:
        current_app.logger.exception("Failed to change reopen password")
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to change reopen password")
        return jsonify({"error": "Internal server error"}), 500
