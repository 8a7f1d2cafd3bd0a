# Overview: Response helpers shared by the API blueprints.

from io import BytesIO

from flask import current_app, jsonify, send_file

from ..services.export_service import XLSX_MIMETYPE


def xlsx_response(filename: str, data: bytes):
    return send_file(
        BytesIO(data),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=filename,
    )


def load_failed(key: str, exc: Exception):
    """
    A list read failed: 200 with an empty list and load_error.

    Lets the client tell "no rows" apart from "could not fetch".
    """
    current_app.logger.error("Failed to load %s: %s", key, exc)
    return jsonify({key: [], "load_error": str(exc)}), 200


def write_failed(action: str, exc: Exception):
    """A gateway write failed; nothing was changed."""
    current_app.logger.error("Failed to %s: %s", action, exc)
    return jsonify({"error": f"Failed to {action}", "details": str(exc)}), 502
