import os
import secrets


def _split_origins(raw: str):
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Config:
    """
    Configuration for development and production environments.
    Reads settings primarily from environment variables, with sensible defaults.
    """

    # --- General & Security ---
    SECRET_KEY = os.environ.get('SECRET_KEY', secrets.token_hex(16))
    FLASK_ENV = os.environ.get("FLASK_ENV", "development").lower()
    DEBUG = FLASK_ENV != "production"
    TESTING = False

    # --- Logging ---
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # --- Database Configuration ---
    # Local fallback: different SQLite DB for dev vs prod
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or (
        "sqlite:///vve_governance_dev.db" if DEBUG else "sqlite:///vve_governance.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Rate Limiting ---
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.environ.get("RATELIMIT_DEFAULT", "200 per hour;30 per minute")
    VOTE_RATE_LIMIT = os.environ.get("VOTE_RATE_LIMIT", "20 per minute")

    # --- CORS Origins ---
    CORS_ORIGINS = _split_origins(
        os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://localhost:8080")
    )

    # --- API docs ---
    SWAGGER = {
        "title": "VvE Governance API",
        "uiversion": 3,
    }


class TestingConfig(Config):
    """In-memory database, no rate limits. Used by the test suite."""

    TESTING = True
    DEBUG = False
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RATELIMIT_ENABLED = False
    LOG_LEVEL = "WARNING"
