# app.py
from __future__ import annotations

import logging
import os

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config import CONFIGS, AuthSettings, Config
from db import db, migrate
from errors import PortalError

# Ensure models are imported so Flask-Migrate sees them
import models  # noqa: F401

# Blueprints
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.favorites import favorites_bp
from routes.notifications import notifications_bp
from routes.orders import orders_bp
from routes.products import products_bp
from routes.profile import profile_bp

from services.device_trust import DeviceTrustManager
from services.tokens import TokenIssuer
from utils.mail import Mailer


def _config_from_env() -> type[Config]:
    env = (os.environ.get("APP_ENV") or os.environ.get("FLASK_ENV") or "development").lower()
    return CONFIGS.get(env, Config)


def create_app(config_class: type[Config] | None = None) -> Flask:
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    app.config.from_object(config_class or _config_from_env())
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Credentialed CORS: the session travels in a cookie
    origins = app.config.get("CORS_ORIGINS") or "*"
    if isinstance(origins, str) and origins != "*":
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    CORS(app, resources={r"/api/*": {"origins": origins}}, supports_credentials=True)

    db.init_app(app)
    migrate.init_app(app, db)

    # Auth collaborators, shared by routes and the guard
    settings = AuthSettings.from_config(app.config)
    app.extensions["auth_settings"] = settings
    app.extensions["tokens"] = TokenIssuer(settings.jwt_secret, ttl_days=settings.session_ttl_days)
    app.extensions["device_trust"] = DeviceTrustManager(
        settings.device_trust_secret,
        max_age=settings.device_trust_max_age,
        secure=settings.cookie_secure,
    )
    app.extensions["mailer"] = Mailer.from_config(app.config, logger=app.logger)

    with app.app_context():
        db.create_all()

    # Health check
    @app.route("/")
    def health_check():
        return jsonify(status="ok"), 200

    @app.errorhandler(PortalError)
    def handle_portal_error(e: PortalError):
        db.session.rollback()
        if e.status_code >= 500:
            app.logger.error("[app] %s %s -> %s %s", request.method, request.path, e.status_code, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(error="Not Found", path=request.path), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify(error="Internal server error"), 500

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(favorites_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(admin_bp)

    # CLI: idempotent admin + product seed
    @app.cli.command("seed")
    def seed_cmd():
        from seed import run_seed
        created = run_seed()
        print(f"Seed complete: {created}")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=bool(os.environ.get("FLASK_DEBUG", "")),
    )
