"""Application configuration classes.

Supports multiple environments via class inheritance.
DATABASE_URL can be set via environment variable; defaults to SQLite for local dev.
"""

import os

from flask import current_app, has_app_context


class BaseConfig:
    """Base configuration shared across all environments."""

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # Batch mutations flush and clear the session every N entities.
    DAO_FLUSH_INTERVAL = 50
    # Delete-by-id issues one IN (...) statement per chunk.
    DAO_DELETE_CHUNK_SIZE = 980
    # Used when a page is requested with limit <= 0.
    DAO_DEFAULT_PAGE_LIMIT = 20


class DevelopmentConfig(BaseConfig):
    """Local development, file-backed SQLite unless DATABASE_URL is set."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///dev.db",
    )


class TestingConfig(BaseConfig):
    """Test runs against an in-memory SQLite database."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"


class ProductionConfig(BaseConfig):
    """Production; DATABASE_URL must be set."""

    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "")


CONFIG_MAP = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_setting(name: str):
    """Read a DAO setting from the active Flask app, else the defaults."""
    if has_app_context():
        return current_app.config.get(name, getattr(BaseConfig, name))
    return getattr(BaseConfig, name)
