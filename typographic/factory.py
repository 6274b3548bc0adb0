# -*- coding: utf-8 -*-
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from typographic.config import REQUIRED_SETTINGS, Config
from typographic.database import db
from typographic.middleware.errors import register_error_handlers
from typographic.services.billing_provider import StripeBillingProvider

# Observability imports
from typographic.services.metrics import init_metrics
from typographic.services.request_context import init_request_context
from typographic.services.structured_logging import init_logging


def create_app(config: Optional[dict] = None, provider=None) -> Flask:
    """
    Build the app.

    ``config`` overrides the environment-driven settings; ``provider``
    replaces the Stripe billing provider (tests pass a fake).
    """
    app = Flask(__name__)
    app.url_map.strict_slashes = False

    settings = Config()
    app.config.update(settings.as_flask_config())
    if config:
        app.config.update(config)

    # --- JWT config ---
    # Bearer tokens only; idle expiry is enforced by the sessions table
    if not app.config.get("JWT_SECRET_KEY") and app.config.get("TESTING"):
        app.config["JWT_SECRET_KEY"] = "test-jwt-secret-key-with-32-bytes-or-more"
    app.config["JWT_ALGORITHM"] = "HS256"
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = False

    db.init_app(app)
    JWTManager(app)

    # --- CORS ---
    CORS(app, resources={
        r"/api/*": {
            "origins": app.config.get("CORS_ALLOWED_ORIGINS") or [],
            "methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": False,
            "max_age": 600,
        },
        r"/auth/*": {
            "origins": app.config.get("CORS_ALLOWED_ORIGINS") or [],
            "methods": ["POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": False,
            "max_age": 600,
        }}
    )

    # --- Initialize observability ---
    init_logging(app)
    init_request_context(app)
    init_metrics(app)

    register_error_handlers(app)

    # --- Billing provider ---
    if provider is None:
        provider = StripeBillingProvider(app.config.get("STRIPE_SECRET_KEY"))
    app.extensions['billing_provider'] = provider

    # --- Mount blueprints ---
    from typographic.routes import auth, billing, health
    app.register_blueprint(auth.auth_bp)
    app.register_blueprint(billing.billing_bp)
    app.register_blueprint(health.health_bp)

    from typographic.cli import setup_command
    app.cli.add_command(setup_command)

    # --- DB init ---
    with app.app_context():
        # Only auto-create tables in testing or if explicitly enabled
        is_testing = app.config.get("TESTING") or os.getenv("TESTING", "false").lower() == "true"
        if is_testing or os.getenv("TYPOGRAPHIC_DB_AUTOCREATE", "false").lower() == "true":
            db.create_all()

    missing = [name for name in REQUIRED_SETTINGS if not app.config.get(name)]
    if missing and not app.config.get("TESTING"):
        app.logger.warning(
            f"Missing settings: {', '.join(missing)}. "
            "Set them in the environment (see .env.example).")

    return app
