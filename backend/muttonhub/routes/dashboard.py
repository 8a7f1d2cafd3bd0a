from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_auth, require_section
from ..gateway import GatewayError
from ..permissions import visible_nav
from ..services import reporting_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
@require_section("dashboard")
def dashboard():
    """Summary tiles plus the navigation visible to the caller's role."""
    payload = {
        "role": g.role,
        "role_degraded": g.role_degraded,
        "navigation": [item.to_dict() for item in visible_nav(g.role)],
    }
    try:
        payload["tiles"] = reporting_service.dashboard_summary()
    except GatewayError as e:
        current_app.logger.error("Failed to load dashboard tiles: %s", e)
        payload["tiles"] = None
        payload["load_error"] = str(e)
    return jsonify(payload), 200
