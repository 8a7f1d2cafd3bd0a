# backend/muttonhub/__init__.py
from flask import Flask, jsonify, request

from .config import REMEDIATION_CHECKLIST, Config, missing_settings
from .extensions import db, migrate
from .gateway import release_gateway

# Reachable while required settings are missing
CONFIG_EXEMPT_PREFIXES = ("/api/system", "/api/preferences")


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    # Overrides must land before extensions read the config
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions (used by the sql gateway)
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.dashboard import dashboard_bp
    from .routes.parties import buyers_bp, sellers_bp
    from .routes.reports import reports_bp
    from .routes.logs import logs_bp
    from .routes.users import users_bp
    from .routes.preferences import preferences_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(buyers_bp)
    app.register_blueprint(sellers_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(logs_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(preferences_bp)

    missing = missing_settings(app.config)
    if missing:
        app.logger.error(
            "Missing configuration: %s. Serving configuration errors until fixed.",
            ", ".join(missing),
        )

    @app.before_request
    def require_configuration():
        if request.method == "OPTIONS" or request.path.startswith(CONFIG_EXEMPT_PREFIXES):
            return None
        missing = missing_settings(app.config)
        if missing:
            return jsonify({
                "error": "Application is not configured",
                "missing": missing,
                "checklist": REMEDIATION_CHECKLIST,
                "retry": "/api/system/retry",
            }), 503
        return None

    app.teardown_request(release_gateway)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
            response.headers["Access-Control-Allow-Credentials"] = "true"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
