# Overview: Service-layer operations for sign-up, sign-in and role resolution.

"""
Authentication Flows

WHY: Accounts live in the gateway's auth service; this module adds the two
rules the dashboard layers on top of it.

SECURITY NOTES:
- Sign-up requires the shared SECURITY_CODE. A wrong code is rejected
  before the gateway is contacted, so no account is created
- Gateway auth errors are surfaced verbatim (they are written for users)
- Role resolution FAILS OPEN: if the user_roles lookup errors or finds no
  row, the session gets DEFAULT_ROLE (accountant) and is flagged degraded.
  Set ROLE_FETCH_FAIL_OPEN = False to refuse such sessions instead
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass

from flask import current_app

from ..gateway import AuthError, AuthSession, GatewayError, Identity, app_gateway, get_gateway
from ..permissions import Role, is_valid_role, visible_nav
from ..validation import ValidationError, require_text
from . import role_service


INVALID_SECURITY_CODE = "Invalid security code"


class RoleResolutionError(Exception):
    """Role lookup failed and fail-open is disabled."""
    pass


@dataclass
class ResolvedRole:
    role: str
    degraded: bool = False


def check_security_code(code) -> bool:
    expected = str(current_app.config["SECURITY_CODE"])
    return hmac.compare_digest(str(code or "").strip().encode("utf-8"), expected.encode("utf-8"))


def sign_up(email: str, password: str, security_code, role: str = Role.ACCOUNTANT) -> Identity:
    """
    Create an account and its role assignment.

    Raises AuthError("Invalid security code") without calling the gateway
    when the code does not match. A failure to write the role row is
    logged, not raised: the account exists and will resolve to the
    default role.
    """
    if not check_security_code(security_code):
        raise AuthError(INVALID_SECURITY_CODE)
    if not is_valid_role(role):
        raise ValidationError("role must be one of: owner, admin, accountant")

    gateway = app_gateway()
    identity = gateway.sign_up(email, password)

    try:
        role_service.assign_role(identity.id, role, gateway=gateway)
    except (GatewayError, ValidationError):
        current_app.logger.exception("Failed to assign role %s to new user %s", role, identity.id)

    return identity


def sign_in(payload: dict) -> AuthSession:
    payload = payload or {}
    email = require_text(payload, "email")
    password = payload.get("password") or ""
    if not password:
        raise ValidationError("password is required")
    return app_gateway().sign_in_with_password(email, password)


def sign_out(access_token: str) -> None:
    app_gateway().sign_out(access_token)


def resolve_role(identity: Identity) -> ResolvedRole:
    """
    Role for an authenticated identity.

    Lookup errors and missing rows fall back to DEFAULT_ROLE when
    ROLE_FETCH_FAIL_OPEN is set; otherwise RoleResolutionError.
    """
    try:
        role = role_service.fetch_role(get_gateway(), identity.id)
    except GatewayError:
        current_app.logger.warning("Role lookup failed for user %s", identity.id, exc_info=True)
        role = None

    if is_valid_role(role):
        return ResolvedRole(role=role)

    if not current_app.config.get("ROLE_FETCH_FAIL_OPEN", True):
        raise RoleResolutionError(f"Could not resolve a role for user {identity.id}")

    default_role = current_app.config.get("DEFAULT_ROLE", Role.ACCOUNTANT)
    current_app.logger.warning(
        "No usable role for user %s (got %r); defaulting to %s", identity.id, role, default_role
    )
    return ResolvedRole(role=default_role, degraded=True)


def session_payload(identity: Identity, resolved: ResolvedRole) -> dict:
    return {
        "user": identity.to_dict(),
        "role": resolved.role,
        "role_degraded": resolved.degraded,
        "navigation": [item.to_dict() for item in visible_nav(resolved.role)],
    }
