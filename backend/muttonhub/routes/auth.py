# Overview: Flask API routes for sign-up, sign-in, sign-out and the current session.

# backend/muttonhub/routes/auth.py
"""
Authentication API routes

- Sign-up requires the shared security code
- Gateway auth errors are returned verbatim
- The session endpoint reports the resolved role and visible navigation
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..gateway import AuthError, GatewayError
from ..permissions import Role
from ..services import auth_service
from ..services.auth_service import RoleResolutionError
from ..time_utils import to_utc_z
from ..validation import ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/sign-up")
def sign_up_route():
    """
    Create an account with a role.

    Body: email, password, security_code, role (default accountant).
    """
    data = request.get_json(silent=True) or {}
    try:
        identity = auth_service.sign_up(
            email=data.get("email") or "",
            password=data.get("password") or "",
            security_code=data.get("security_code"),
            role=data.get("role") or Role.ACCOUNTANT,
        )
    except (AuthError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except GatewayError as e:
        current_app.logger.error("Sign-up failed: %s", e)
        return jsonify({"error": str(e)}), 502

    return jsonify({
        "user": identity.to_dict(),
        "message": "Account created. Please sign in.",
    }), 201


@auth_bp.post("/sign-in")
def sign_in_route():
    """Exchange email/password for an access token."""
    data = request.get_json(silent=True) or {}
    try:
        session = auth_service.sign_in(data)
    except (AuthError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except GatewayError as e:
        current_app.logger.error("Sign-in failed: %s", e)
        return jsonify({"error": str(e)}), 502

    g.access_token = session.access_token
    try:
        resolved = auth_service.resolve_role(session.identity)
    except RoleResolutionError as e:
        return jsonify({"error": str(e)}), 503

    payload = auth_service.session_payload(session.identity, resolved)
    payload.update({
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": to_utc_z(session.expires_at),
    })
    return jsonify(payload), 200


@auth_bp.post("/sign-out")
@require_auth
def sign_out_route():
    try:
        auth_service.sign_out(g.access_token)
    except (AuthError, GatewayError) as e:
        current_app.logger.error("Sign-out failed: %s", e)
        return jsonify({"error": str(e)}), 502
    return jsonify({"message": "Signed out"}), 200


@auth_bp.get("/session")
@require_auth
def session_route():
    resolved = auth_service.ResolvedRole(role=g.role, degraded=g.role_degraded)
    return jsonify(auth_service.session_payload(g.identity, resolved)), 200
