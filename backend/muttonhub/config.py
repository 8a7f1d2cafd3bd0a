# backend/muttonhub/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class ConfigurationError(RuntimeError):
    """Required settings for the selected gateway are missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing configuration: {', '.join(missing)}")


# =============================================================================
# REMEDIATION (shown on the configuration error response)
# =============================================================================

REMEDIATION_CHECKLIST = [
    "Check that a .env file exists in the backend directory",
    "Verify SUPABASE_URL is set",
    "Verify SUPABASE_ANON_KEY is set",
    "Confirm the Supabase project is active",
    "Confirm the database schema has been applied",
]

# Config keys re-read from the environment on POST /api/system/retry
RELOADABLE_SETTINGS = {
    "GATEWAY": "MUTTONHUB_GATEWAY",
    "SUPABASE_URL": "SUPABASE_URL",
    "SUPABASE_ANON_KEY": "SUPABASE_ANON_KEY",
    "SQLALCHEMY_DATABASE_URI": "DATABASE_URL",
}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # "supabase" (hosted) or "sql" (local Flask-SQLAlchemy store)
    GATEWAY = os.environ.get("MUTTONHUB_GATEWAY", "supabase")

    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY")

    # Used by the sql gateway; stored in backend/instance/muttonhub.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///muttonhub.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Shared registration code; sign-up is refused without it
    SECURITY_CODE = os.environ.get("MUTTONHUB_SECURITY_CODE", "7904116719")

    DEFAULT_ROLE = "accountant"
    # When the role lookup fails, grant DEFAULT_ROLE instead of refusing access
    ROLE_FETCH_FAIL_OPEN = _env_flag("MUTTONHUB_ROLE_FAIL_OPEN", True)

    BCRYPT_ROUNDS = 12
    SESSION_TTL_HOURS = 24
    MIN_PASSWORD_LENGTH = 6

    DARK_MODE_COOKIE = "darkMode"


def reload_from_environment(config) -> None:
    """Re-read gateway settings from os.environ into a live app config."""
    for key, env_name in RELOADABLE_SETTINGS.items():
        value = os.environ.get(env_name)
        if value is not None:
            config[key] = value


def missing_settings(config) -> list[str]:
    """
    Names of environment variables the selected gateway still needs.

    Empty list means the app can serve requests.
    """
    gateway = (config.get("GATEWAY") or "").strip().lower()
    if gateway == "supabase":
        missing = []
        if not config.get("SUPABASE_URL"):
            missing.append("SUPABASE_URL")
        if not config.get("SUPABASE_ANON_KEY"):
            missing.append("SUPABASE_ANON_KEY")
        return missing
    if gateway == "sql":
        return [] if config.get("SQLALCHEMY_DATABASE_URI") else ["DATABASE_URL"]
    return ["MUTTONHUB_GATEWAY"]
