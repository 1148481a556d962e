from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, g, jsonify, render_template, request
from werkzeug.exceptions import HTTPException

from marinecatalog.app.config import Config
from marinecatalog.app.extensions import db, migrate, cors
from marinecatalog.app.common.errors import ApiError
from marinecatalog.app.common.request_context import attach_request_id, init_request_id
from marinecatalog.app.api.register import register_api_blueprints
from marinecatalog.app.cli import cli_bp
from marinecatalog.app.ui import ui_bp
from marinecatalog.modules.catalog.sessions import init_catalog
from marinecatalog.modules.commerce.client import CommerceClient


def create_app(config_object: type[Config] = Config, commerce_client: Optional[CommerceClient] = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Basic logging (enough for tracing store calls)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS") or "*"}})

    # Commerce backend + per-session catalog views
    init_catalog(app, commerce_client)

    # Request id
    @app.before_request
    def _before_request():
        init_request_id()

    app.after_request(attach_request_id)

    # Health endpoint (for Docker)
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    # Register API blueprints
    register_api_blueprints(app)

    # CLI (flask seed / flask init-db)
    app.register_blueprint(cli_bp)

    # Server-rendered catalog
    app.register_blueprint(ui_bp)

    # Error handlers
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        return jsonify(err.to_dict(getattr(g, "request_id", None))), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        if not request.path.startswith("/api"):
            return render_template("pages/error.html", code=err.code, message=err.description), err.code or 500

        # Normalize Werkzeug errors into our JSON shape
        payload = {
            "error": {
                "code": "http_error",
                "message": err.description,
                "details": {"name": err.name},
                "request_id": getattr(g, "request_id", None),
            }
        }
        return jsonify(payload), err.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        app.logger.exception("Unhandled exception")
        if not request.path.startswith("/api"):
            return render_template("pages/error.html", code=500, message="Unexpected server error"), 500

        payload = {
            "error": {
                "code": "internal_error",
                "message": "Internal server error",
                "details": {},
                "request_id": getattr(g, "request_id", None),
            }
        }
        return jsonify(payload), 500

    return app
