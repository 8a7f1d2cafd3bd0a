# Overview: Gateway selection and per-request binding.

from __future__ import annotations

from datetime import timedelta

from flask import current_app, g, has_app_context

from ..config import ConfigurationError, missing_settings
from .base import (
    AuthError,
    AuthSession,
    DataGateway,
    Filter,
    GatewayError,
    Identity,
    eq,
    gte,
    lte,
)

EXTENSION_KEY = "muttonhub_gateway"
# g attribute holding the gateway bound for the current request
BOUND_KEY = "muttonhub_bound_gateway"


def _log_auth_event(event: str, session: AuthSession | None) -> None:
    email = session.identity.email if session else None
    current_app.logger.info("Auth state changed: %s %s", event, email or "")


def build_gateway(config) -> DataGateway:
    """
    Construct the gateway selected by config["GATEWAY"].

    Raises ConfigurationError when its settings are missing.
    """
    missing = missing_settings(config)
    if missing:
        raise ConfigurationError(missing)

    kind = config["GATEWAY"].strip().lower()
    if kind == "sql":
        from .sql_gateway import SqlGateway
        return SqlGateway(
            bcrypt_rounds=config.get("BCRYPT_ROUNDS", 12),
            session_ttl=timedelta(hours=config.get("SESSION_TTL_HOURS", 24)),
            min_password_length=config.get("MIN_PASSWORD_LENGTH", 6),
        )

    from .supabase_gateway import SupabaseGateway
    return SupabaseGateway(config["SUPABASE_URL"], config["SUPABASE_ANON_KEY"])


def install_gateway(app, gateway: DataGateway) -> DataGateway:
    gateway.on_auth_state_change(_log_auth_event)
    app.extensions[EXTENSION_KEY] = gateway
    return gateway


def reset_gateway(app) -> None:
    """Forget the app-wide gateway; the next request rebuilds it from config."""
    app.extensions.pop(EXTENSION_KEY, None)
    if has_app_context():
        g.pop(BOUND_KEY, None)


def app_gateway(app=None) -> DataGateway:
    """The app-wide (unbound) gateway, built on first use."""
    app = app or current_app
    gateway = app.extensions.get(EXTENSION_KEY)
    if gateway is None:
        gateway = install_gateway(app, build_gateway(app.config))
    return gateway


def get_gateway() -> DataGateway:
    """
    Gateway bound to the current request's access token, if any.

    Bound once per request and reused until the token changes.
    """
    source = app_gateway()
    token = getattr(g, "access_token", None)
    cached = g.get(BOUND_KEY)
    if cached is not None and cached[0] is source and cached[1] == token:
        return cached[2]
    bound = source.with_token(token)
    setattr(g, BOUND_KEY, (source, token, bound))
    return bound


def release_gateway(exc=None) -> None:
    """teardown_request hook: drop the request's bound gateway."""
    g.pop(BOUND_KEY, None)


__all__ = [
    "AuthError", "AuthSession", "DataGateway", "Filter", "GatewayError", "Identity",
    "eq", "gte", "lte",
    "build_gateway", "install_gateway", "reset_gateway", "app_gateway", "get_gateway",
    "release_gateway",
]
