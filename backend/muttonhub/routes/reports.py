from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_section
from ..gateway import GatewayError
from ..services import export_service, reporting_service
from .helpers import xlsx_response


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

EXPORT_KINDS = ("buyers", "sellers", "combined")


def _load_report():
    start, end = reporting_service.parse_range(request.args.get("start"), request.args.get("end"))
    return reporting_service.transaction_report(start, end)


@reports_bp.get("")
@require_auth
@require_section("reports")
def transaction_report():
    """Buyer/seller totals, pending amounts and net position for [start, end]."""
    try:
        report = _load_report()
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except GatewayError as exc:
        current_app.logger.error("Failed to load report: %s", exc)
        return jsonify({"error": "Failed to load report", "load_error": str(exc)}), 502
    return jsonify(report.to_dict()), 200


@reports_bp.get("/export/<kind>")
@require_auth
@require_section("reports")
def export_report(kind: str):
    if kind not in EXPORT_KINDS:
        return jsonify({"error": f"kind must be one of: {', '.join(EXPORT_KINDS)}"}), 404

    try:
        report = _load_report()
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except GatewayError as exc:
        current_app.logger.error("Failed to load report for export: %s", exc)
        return jsonify({"error": "Failed to load report", "load_error": str(exc)}), 502

    if kind == "buyers":
        filename, data = export_service.export_buyer_transactions(
            report.buyer_transactions, report.start, report.end
        )
    elif kind == "sellers":
        filename, data = export_service.export_seller_transactions(
            report.seller_transactions, report.start, report.end
        )
    else:
        filename, data = export_service.export_combined_report(report)

    return xlsx_response(filename, data)
