"""SQLAlchemy data-access support.

Abstract DAO base classes for generic CRUD, batch writes, property queries
and offset/limit pagination, plus a Flask application factory that wires
the Flask-SQLAlchemy extension the bundled Flask supports rely on.
"""

import logging
import os

from flask import Flask

from daosupport.config.settings import CONFIG_MAP
from daosupport.exceptions import DaoArgumentError, DaoError, QueryRewriteError
from daosupport.extensions import db
from daosupport.repositories.base import BaseSuperDao
from daosupport.repositories.entity_support import AbstractEntityDaoSupport
from daosupport.repositories.flask_support import FlaskDaoSupport, FlaskEntityDaoSupport
from daosupport.repositories.orm_support import AbstractDaoSupport
from daosupport.repositories.sql_support import AbstractSqlDaoSupport
from daosupport.schemas.page import Page

__all__ = [
    "AbstractDaoSupport",
    "AbstractEntityDaoSupport",
    "AbstractSqlDaoSupport",
    "BaseSuperDao",
    "DaoArgumentError",
    "DaoError",
    "FlaskDaoSupport",
    "FlaskEntityDaoSupport",
    "Page",
    "QueryRewriteError",
    "create_app",
    "db",
]


def create_app(config_name: str | None = None) -> Flask:
    """Build a Flask application with the database extension initialized.

    Args:
        config_name: One of 'development', 'testing', 'production'.
                     Defaults to the FLASK_ENV environment variable.
    """
    app = Flask(__name__)

    # --- Configuration ---
    config_name = config_name or os.getenv("FLASK_ENV", "development")
    app.config.from_object(CONFIG_MAP[config_name])

    # --- Extensions ---
    db.init_app(app)

    # --- Logging ---
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    _register_error_handlers(app)

    return app


def _register_error_handlers(app: Flask) -> None:
    """Map data-access errors raised inside views to JSON responses."""
    from daosupport.schemas.response import error_response

    @app.errorhandler(DaoArgumentError)
    def handle_argument_error(error: DaoArgumentError):
        return error_response(error.message, error.error_code, 400)

    @app.errorhandler(DaoError)
    def handle_dao_error(error: DaoError):
        logging.getLogger(__name__).exception("Data access failed")
        return error_response(error.message, error.error_code, 500)
