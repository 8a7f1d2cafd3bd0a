"""
Client preferences stored as cookies (no account state).

The dark-mode flag is the only preference; it is "true"/"false" in the
darkMode cookie so the client can read it before the first API call.
"""

from flask import Blueprint, current_app, jsonify, request


preferences_bp = Blueprint("preferences", __name__, url_prefix="/api/preferences")

ONE_YEAR = 60 * 60 * 24 * 365


@preferences_bp.get("/dark-mode")
def get_dark_mode():
    cookie = request.cookies.get(current_app.config["DARK_MODE_COOKIE"])
    return jsonify({"dark_mode": cookie == "true"}), 200


@preferences_bp.put("/dark-mode")
def set_dark_mode():
    payload = request.get_json(silent=True) or {}
    value = payload.get("dark_mode")
    if not isinstance(value, bool):
        return jsonify({"error": "dark_mode must be true or false"}), 400

    response = jsonify({"dark_mode": value})
    response.set_cookie(
        current_app.config["DARK_MODE_COOKIE"],
        "true" if value else "false",
        max_age=ONE_YEAR,
        samesite="Lax",
    )
    return response, 200
