"""Flask application configuration and blueprint registration."""

from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify

from msgsource.cache import MessageCache
from msgsource.config import load_config
from msgsource.core.repository import CatalogueStore
from msgsource.exceptions import StorageError
from msgsource.logger import get_logger
from msgsource.source import MessageSource

from .routes.catalogues import EXTENSION_KEY, catalogues_bp

logger = get_logger(__name__)


def build_app(store: Optional[CatalogueStore] = None, cache: Optional[MessageCache] = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Ensure JSON responses keep Unicode data.
    app.config["JSON_AS_ASCII"] = False
    app.json.ensure_ascii = False

    config = load_config()
    app.extensions[EXTENSION_KEY] = MessageSource(
        store=store,
        cache=cache,
        locale=config["default_locale"],
        catalogue=config["default_catalogue"],
        author=config["author"],
    )

    register_blueprints(app)
    register_default_routes(app)

    return app


def register_blueprints(app: Flask) -> None:
    """Register Flask blueprints."""
    app.register_blueprint(catalogues_bp, url_prefix="/api/catalogues")


def register_default_routes(app: Flask) -> None:
    """Register default health route and error handlers."""

    @app.get("/health")
    def health_check():
        logger.debug("Health check requested")
        return jsonify({"status": "ok"})

    @app.errorhandler(StorageError)
    def storage_error(e):
        """Storage faults are operational errors, reported without a traceback."""
        logger.error(f"Catalogue storage error: {e}")
        return jsonify({"error": "Catalogue storage is unavailable", "code": e.code}), 500

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    def internal_error(e):
        logger.exception("Internal server error: %s", e)
        return jsonify({"error": "Unexpected error occurred"}), 500
