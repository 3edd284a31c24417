"""caselink REST API: Flask app factory."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

import caselink.state as _state
from caselink.db import LinkDatabase
from caselink.errors import ApiError, EntityNotFoundError

logger = logging.getLogger(__name__)


def create_app(db_path: Path | str | None = None) -> Flask:
    """Create and configure the Flask API app.

    ``db_path`` overrides ``CASELINK_DB_PATH``; tests pass a temporary file.
    """
    app = Flask(__name__)

    # Trust reverse-proxy headers when deployed behind one
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # The SPA is served from a different origin
    CORS(app)

    app.config["DATABASE"] = str(db_path or _state.DB_PATH)
    app.config["API_PREFIX"] = _state.API_PREFIX
    app.json.sort_keys = False
    app.json.ensure_ascii = False

    def get_db() -> LinkDatabase:
        """Open the configured database; callers close it."""
        path = Path(app.config["DATABASE"])
        if not path.exists():
            raise FileNotFoundError(
                f"Database '{path}' not found. Run 'caselink init' first."
            )
        return LinkDatabase(path).open()

    app.get_db = get_db

    from caselink.dashboard.routes.cases import bp as cases_bp
    from caselink.dashboard.routes.graph import bp as graph_bp
    from caselink.dashboard.routes.links import bp as links_bp
    from caselink.dashboard.routes.persons import bp as persons_bp
    from caselink.dashboard.routes.samples import bp as samples_bp
    from caselink.dashboard.routes.search import bp as search_bp
    from caselink.dashboard.routes.stats import bp as stats_bp

    prefix = app.config["API_PREFIX"].rstrip("/")
    app.register_blueprint(cases_bp, url_prefix=f"{prefix}/cases")
    app.register_blueprint(persons_bp, url_prefix=f"{prefix}/persons")
    app.register_blueprint(samples_bp, url_prefix=f"{prefix}/samples")
    app.register_blueprint(links_bp, url_prefix=f"{prefix}/links")
    app.register_blueprint(graph_bp, url_prefix=f"{prefix}/graph")
    app.register_blueprint(search_bp, url_prefix=f"{prefix}/search")
    app.register_blueprint(stats_bp, url_prefix=f"{prefix}/stats")

    @app.route("/health")
    def health():
        return jsonify({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        return jsonify(error.to_dict()), error.status

    @app.errorhandler(EntityNotFoundError)
    def handle_missing_entity(error: EntityNotFoundError):
        return jsonify(ApiError(str(error), 404).to_dict()), 404

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        message = "Not found" if error.code == 404 else error.description
        return jsonify(ApiError(message, error.code).to_dict()), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception(f"Unhandled error: {error}")
        return jsonify(ApiError(str(error) or "Internal server error").to_dict()), 500

    return app
