import logging
from typing import Any, Mapping, Optional

from flask import Flask

from vve_governance.config import Config
from vve_governance.extensions import db, migrate, cors, limiter, swagger
from vve_governance.routes import register_routes
from vve_governance.services.governance_service import governance_service
from vve_governance.services.unit_service import unit_service

logger = logging.getLogger(__name__)


def _configure_logging(app: Flask) -> None:
    logging.basicConfig(level=app.config["LOG_LEVEL"], format=app.config["LOG_FORMAT"])
    logging.getLogger("vve_governance").setLevel(app.config["LOG_LEVEL"])


def create_app(config_overrides: Optional[Mapping[str, Any]] = None, config_class=Config):
    """Creates and configures the Flask application."""
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    if config_overrides:
        app.config.from_mapping(config_overrides)

    _configure_logging(app)

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})
    limiter.init_app(app)
    swagger.init_app(app)
    logger.info("✅ Core Flask extensions initialized.")

    governance_service.init_app(app, db)
    unit_service.init_app(app, db)

    # Register blueprints
    register_routes(app)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}, 200

    logger.info("🚀 Flask app created successfully!")
    return app
