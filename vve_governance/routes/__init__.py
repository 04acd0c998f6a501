# vve_governance/routes/__init__.py
"""
This module imports all blueprint instances from the route modules
and provides a function to register them on the Flask app.
"""
import logging
from flask import Flask, jsonify

from vve_governance.exceptions import GovernanceError

from .governance_routes import governance_bp
from .unit_routes import units_bp

logger = logging.getLogger(__name__)


def _handle_governance_error(e: GovernanceError):
    logger.warning(f"🚫 API: {e.code}: {e}")
    return jsonify(e.to_dict()), e.http_status


def register_routes(app: Flask):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(governance_bp)
    app.register_blueprint(units_bp)

    # Every governance error kind carries its own HTTP status.
    app.register_error_handler(GovernanceError, _handle_governance_error)

    logger.info("✅ All application blueprints registered.")
