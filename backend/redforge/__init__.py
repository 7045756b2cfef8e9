# redforge/__init__.py
"""
App factory.

Configuration (environment):
    CORS_ORIGINS                 comma-separated allowed origins; an https://
                                 value also switches to production logging
    REDFORGE_PROBE_CONCURRENCY   max in-flight probe requests per scan (default 10)

create_app(config) overrides take precedence over the environment. Tests use
it to inject SCAN_TRANSPORT (an httpx transport) and STAGE_CONFIG.
"""

from __future__ import annotations

import logging
import os
import re
import traceback
from typing import Any, Dict, Optional

from flask import Flask, jsonify
from flask_cors import CORS

from redforge.extensions import init_extensions
from redforge.scans import scans_bp

error_logger = logging.getLogger("redforge.errors")


def _is_production() -> bool:
    """Detect production by checking CORS_ORIGINS for https."""
    return os.getenv("CORS_ORIGINS", "").startswith("https://")


def create_app(config: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)

    is_prod = _is_production()

    # ── Logging ──────────────────────────────────────────────────────
    if is_prod:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        app.logger.setLevel(logging.INFO)
    else:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )
        app.logger.setLevel(logging.DEBUG)

    logging.getLogger("werkzeug").setLevel(logging.INFO)
    # Quieten noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    # ─────────────────────────────────────────────────────────────────

    # ── CORS ────────────────────────────────────────────────────────
    cors_env = os.getenv("CORS_ORIGINS")
    if cors_env:
        cors_origins = [o.strip() for o in cors_env.split(",") if o.strip()]
    else:
        cors_origins = [
            "http://localhost:1420",
            "http://localhost:5173",
            re.compile(r"http://127\.0\.0\.1:\d+"),
        ]

    CORS(app, resources={
        r"/*": {
            "origins": cors_origins,
            "allow_headers": ["Content-Type"],
            "methods": ["GET", "POST", "OPTIONS"],
        }
    })

    # ── Scanner settings ─────────────────────────────────────────────
    app.config["PROBE_CONCURRENCY"] = int(os.getenv("REDFORGE_PROBE_CONCURRENCY", "10"))
    app.config["SCAN_TRANSPORT"] = None
    app.config["STAGE_CONFIG"] = None
    if config:
        app.config.update(config)

    # ── Extensions ───────────────────────────────────────────────────
    init_extensions(app)

    # ── Blueprints ───────────────────────────────────────────────────
    app.register_blueprint(scans_bp)

    # ── Global Error Handlers ────────────────────────────────────────
    # Return clean JSON for all errors, never tracebacks.

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({
            "error": "Bad request",
            "message": str(e.description) if hasattr(e, "description") else "The request was malformed or invalid.",
        }), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({
            "error": "Not found",
            "message": "The requested resource was not found.",
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({
            "error": "Method not allowed",
            "message": "This HTTP method is not allowed for this endpoint.",
        }), 405

    @app.errorhandler(500)
    def internal_error(e):
        error_logger.error(
            "500 Internal Server Error:\n%s", traceback.format_exc()
        )
        return jsonify({
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
        }), 500

    # ─────────────────────────────────────────────────────────────────

    # Health check
    @app.get("/health")
    def health():
        return jsonify(status="ok"), 200

    return app
