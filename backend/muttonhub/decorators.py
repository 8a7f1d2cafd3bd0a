# Overview: Request decorators for authentication and role-gated sections.

from functools import wraps
from flask import request, jsonify, g, current_app

from .gateway import GatewayError, app_gateway
from .permissions import can_view
from .services import auth_service
from .services.auth_service import RoleResolutionError


def _is_authenticated() -> bool:
    return hasattr(g, 'identity') and hasattr(g, 'role')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid gateway session and resolve the caller's role.

    Sets the following Flask g attributes:
    - g.access_token: the bearer token (gateway calls act on its behalf)
    - g.identity: the authenticated Identity
    - g.role: owner / admin / accountant
    - g.role_degraded: True when the role lookup failed and the default
      role was granted

    Returns 401 for a missing/invalid token, 503 if the gateway is
    unreachable or the role cannot be resolved with fail-open disabled.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        try:
            identity = app_gateway().get_user(token)
        except GatewayError:
            current_app.logger.exception("Session lookup failed")
            return jsonify({"error": "Authentication service unavailable"}), 503

        if identity is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.access_token = token
        g.identity = identity

        try:
            resolved = auth_service.resolve_role(identity)
        except RoleResolutionError as e:
            return jsonify({"error": str(e)}), 503

        g.role = resolved.role
        g.role_degraded = resolved.degraded

        return f(*args, **kwargs)

    return decorated_function


def require_section(section: str):
    """
    Require the caller's role to be on the navigation allow-list for section.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not can_view(g.role, section):
                return jsonify({
                    "error": "Permission denied",
                    "section": section,
                    "role": g.role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
