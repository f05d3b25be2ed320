"""Application factory and blueprint registration."""

import importlib
import inspect
import logging
import os
import pkgutil
from typing import Any, Dict, Optional

from flask import Blueprint, Flask, jsonify

from .config import Config
from .errors import AuthenticationError, ConfigurationError, UpstreamError
from .utils.logger import init_logging


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # sane defaults for deployment environments that omit config
    app.config.setdefault("LOG_DIR", os.path.join(os.path.dirname(__file__), "..", "logs"))
    app.config.setdefault("TZ", "Asia/Kolkata")
    app.config.setdefault("CALENDAR_ID", "primary")
    app.config.setdefault("EVENT_SOURCE_TAG", "ipm-tracker")

    # Initialise logging with a fallback so deploys never fail on logging
    try:
        init_logging(app)
    except Exception:  # pragma: no cover - only hit during catastrophic logging failure
        logging.basicConfig(level=logging.INFO)
        app.logger.exception("init_logging failed; using basic logging fallback")

    # Basic routes ---------------------------------------------------------
    @app.get("/healthz")
    def healthz():
        """Lightweight liveness probe."""

        return "ok", 200

    # Blueprint auto-discovery ---------------------------------------------
    def register_all_blueprints() -> None:
        base_pkg = f"{__name__}.routes"
        try:
            pkg = importlib.import_module(base_pkg)
        except Exception as exc:
            app.logger.warning("Could not import %s: %s", base_pkg, exc)
            return

        for modinfo in pkgutil.iter_modules(pkg.__path__):
            name = f"{base_pkg}.{modinfo.name}"
            try:
                module = importlib.import_module(name)
            except Exception as exc:
                app.logger.warning("Skipping %s (import error): %s", name, exc)
                continue

            blueprints = [
                obj
                for _, obj in inspect.getmembers(module)
                if isinstance(obj, Blueprint)
            ]
            if not blueprints:
                continue

            url_prefix = getattr(module, "URL_PREFIX", None)
            for bp in blueprints:
                prefix = url_prefix or f"/{modinfo.name}"
                try:
                    app.register_blueprint(bp, url_prefix=prefix)
                    app.logger.info("Registered %s at %s", bp.name, prefix)
                except Exception as exc:
                    app.logger.warning("Failed registering %s at %s: %s", bp.name, prefix, exc)

    register_all_blueprints()

    # Error handlers -------------------------------------------------------
    @app.errorhandler(AuthenticationError)
    def _handle_unauthenticated(error):
        app.logger.warning("Unauthenticated request: %s", error)
        return jsonify({"error": "Unauthorized"}), 401

    @app.errorhandler(ConfigurationError)
    def _handle_configuration(error):
        app.logger.error("Configuration error: %s", error)
        return jsonify({"error": "Configuration Error"}), 500

    @app.errorhandler(UpstreamError)
    def _handle_upstream(error):
        app.logger.error("Upstream failure: %s", error)
        return jsonify({"error": str(error)}), 502

    @app.errorhandler(404)
    def _handle_404(error):
        return jsonify({"error": "Not Found"}), 404

    @app.errorhandler(500)
    def _handle_500(error):
        app.logger.exception("500: %s", error)
        return jsonify({"error": "Internal Server Error"}), 500

    return app
