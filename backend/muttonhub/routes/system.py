# backend/muttonhub/routes/system.py
"""
System endpoints: health, configuration status, retry and connection test.

These stay reachable while the app is in configuration-error mode so the
client can show the remediation checklist and a Retry button.
"""

from flask import Blueprint, current_app, jsonify

from ..config import REMEDIATION_CHECKLIST, ConfigurationError, missing_settings, reload_from_environment
from ..gateway import GatewayError, app_gateway, reset_gateway

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def configuration_payload(missing: list[str]) -> dict:
    return {
        "configured": not missing,
        "gateway": current_app.config.get("GATEWAY"),
        "missing": missing,
        "checklist": REMEDIATION_CHECKLIST if missing else [],
        "retry": "/api/system/retry",
    }


@system_bp.get("/health")
def health():
    missing = missing_settings(current_app.config)
    return jsonify({
        "status": "ok" if not missing else "misconfigured",
        "gateway": current_app.config.get("GATEWAY"),
    }), 200


@system_bp.get("/config-status")
def config_status():
    missing = missing_settings(current_app.config)
    return jsonify(configuration_payload(missing)), 200 if not missing else 503


@system_bp.post("/retry")
def retry_configuration():
    """Re-read the environment and drop the cached gateway."""
    reload_from_environment(current_app.config)
    reset_gateway(current_app)
    missing = missing_settings(current_app.config)
    if missing:
        current_app.logger.warning("Configuration still incomplete: %s", ", ".join(missing))
        return jsonify(configuration_payload(missing)), 503
    current_app.logger.info("Configuration complete; gateway=%s", current_app.config.get("GATEWAY"))
    return jsonify(configuration_payload(missing)), 200


@system_bp.get("/connection-test")
def connection_test():
    """Count-only query against user_roles through the gateway."""
    try:
        count = app_gateway().ping()
    except ConfigurationError as e:
        return jsonify({"ok": False, "error": str(e), "missing": e.missing}), 503
    except GatewayError as e:
        current_app.logger.error("Connection test failed: %s", e)
        return jsonify({"ok": False, "error": str(e)}), 502
    return jsonify({"ok": True, "user_roles": count}), 200
