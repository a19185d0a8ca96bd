"""DAO supports bound to the Flask-SQLAlchemy extension.

Both classes need an active application context, exactly like
``db.session`` itself.
"""

from typing import TypeVar

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from daosupport.extensions import db
from daosupport.repositories.entity_support import AbstractEntityDaoSupport
from daosupport.repositories.orm_support import AbstractDaoSupport

E = TypeVar("E")


class FlaskDaoSupport(AbstractDaoSupport):
    """Untyped DAO over ``db.session``."""

    def get_session(self) -> Session:
        return db.session

    def get_engine(self) -> Engine:
        return db.engine


class FlaskEntityDaoSupport(AbstractEntityDaoSupport[E]):
    """Entity DAO over ``db.session``; parameterize with the entity class."""

    def get_session(self) -> Session:
        return db.session

    def get_engine(self) -> Engine:
        return db.engine
