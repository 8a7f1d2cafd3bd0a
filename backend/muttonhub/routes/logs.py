# Overview: Flask API routes for the audit log view (owner only).

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_section
from ..gateway import GatewayError
from ..services import audit_service, export_service
from ..validation import ValidationError, parse_date_field
from .helpers import load_failed, write_failed, xlsx_response


logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


def _filters() -> dict:
    """
    Query params:
    - action: CREATE / UPDATE / DELETE
    - table: table_name
    - date_from, date_to: ISO dates, both inclusive
    """
    action = (request.args.get("action") or "").strip().upper() or None
    if action and action not in audit_service.ACTIONS:
        raise ValidationError(f"action must be one of: {', '.join(audit_service.ACTIONS)}")
    return {
        "action": action,
        "table_name": (request.args.get("table") or "").strip() or None,
        "date_from": parse_date_field(request.args.get("date_from"), "date_from"),
        "date_to": parse_date_field(request.args.get("date_to"), "date_to"),
    }


@logs_bp.get("")
@require_auth
@require_section("logs")
def list_logs():
    try:
        filters = _filters()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    try:
        entries = audit_service.list_logs(**filters)
    except GatewayError as e:
        return load_failed("logs", e)
    return jsonify({"logs": [entry.to_dict() for entry in entries]}), 200


@logs_bp.get("/export")
@require_auth
@require_section("logs")
def export_logs():
    try:
        filters = _filters()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    try:
        entries = audit_service.list_logs(**filters)
    except GatewayError as e:
        return write_failed("load logs for export", e)
    filename, data = export_service.export_audit_logs(entries)
    return xlsx_response(filename, data)
