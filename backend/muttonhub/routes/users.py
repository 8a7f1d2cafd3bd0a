# Overview: Flask API routes for user role management (owner only).

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_section
from ..gateway import GatewayError
from ..services import role_service
from ..services.role_service import OwnerRoleProtectedError, RoleNotFoundError
from ..validation import ValidationError
from .helpers import load_failed, write_failed


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_section("users")
def list_users():
    try:
        assignments = role_service.list_assignments()
    except GatewayError as e:
        return load_failed("users", e)
    return jsonify({"users": [a.to_dict() for a in assignments]}), 200


@users_bp.post("")
@require_auth
@require_section("users")
def create_user_route():
    """Accounts are created through sign-up, not here."""
    return jsonify({"error": role_service.USER_CREATION_MESSAGE}), 400


@users_bp.put("/<user_id>/role")
@require_auth
@require_section("users")
def change_role_route(user_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        assignment = role_service.change_role(user_id, payload.get("role"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except RoleNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except GatewayError as e:
        return write_failed("update role", e)
    except Exception:
        current_app.logger.exception("Failed to update role for %s", user_id)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"user": assignment.to_dict()}), 200


@users_bp.delete("/<user_id>")
@require_auth
@require_section("users")
def remove_user_route(user_id: str):
    """Remove a user's role assignment. Owners cannot be removed."""
    try:
        role_service.remove_assignment(user_id)
    except OwnerRoleProtectedError as e:
        return jsonify({"error": str(e)}), 400
    except RoleNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except GatewayError as e:
        return write_failed("remove user", e)
    except Exception:
        current_app.logger.exception("Failed to remove user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"message": "User removed"}), 200
